"""One API class per Compute Engine resource collection."""

from .aggregated import AggregatedListApi
from .base import ReadOnlyApi, ResourceApi
from .disks import DiskApi, DiskTypeApi, SnapshotApi
from .images import ImageApi
from .instances import InstanceApi
from .load_balancing import (
    BackendServiceApi,
    ForwardingRuleApi,
    HttpHealthCheckApi,
    TargetHttpProxyApi,
    TargetInstanceApi,
    TargetPoolApi,
    UrlMapApi,
)
from .machine_types import MachineTypeApi
from .networks import AddressApi, FirewallApi, NetworkApi, RouteApi, SubnetworkApi
from .operations import OperationApi
from .projects import ProjectApi, RegionApi, ZoneApi

__all__ = [
    "AddressApi",
    "AggregatedListApi",
    "BackendServiceApi",
    "DiskApi",
    "DiskTypeApi",
    "FirewallApi",
    "ForwardingRuleApi",
    "HttpHealthCheckApi",
    "ImageApi",
    "InstanceApi",
    "MachineTypeApi",
    "NetworkApi",
    "OperationApi",
    "ProjectApi",
    "ReadOnlyApi",
    "RegionApi",
    "ResourceApi",
    "RouteApi",
    "SnapshotApi",
    "SubnetworkApi",
    "TargetHttpProxyApi",
    "TargetInstanceApi",
    "TargetPoolApi",
    "UrlMapApi",
    "ZoneApi",
]
