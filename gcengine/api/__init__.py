"""Typed async bindings for the Compute Engine v1 REST API."""

from .client import ApiClient
from .facade import GoogleComputeEngineApi
from .options import (
    AddressCreationOptions,
    AttachDiskOptions,
    AttachedDiskSpec,
    DeprecateOptions,
    DiskCreationOptions,
    FirewallOptions,
    FirewallRuleSpec,
    ForwardingRuleCreationOptions,
    HttpHealthCheckCreationOptions,
    ListOptions,
    NetworkInterfaceSpec,
    NewInstance,
    RouteOptions,
    SchedulingOptions,
    TargetPoolCreationOptions,
    filter_by,
)
from .pages import AggregatedListPage, ListPage, collect, iterate_pages
from .uris import Resources

__all__ = [
    "AddressCreationOptions",
    "AggregatedListPage",
    "ApiClient",
    "AttachDiskOptions",
    "AttachedDiskSpec",
    "DeprecateOptions",
    "DiskCreationOptions",
    "FirewallOptions",
    "FirewallRuleSpec",
    "ForwardingRuleCreationOptions",
    "GoogleComputeEngineApi",
    "HttpHealthCheckCreationOptions",
    "ListOptions",
    "ListPage",
    "NetworkInterfaceSpec",
    "NewInstance",
    "Resources",
    "RouteOptions",
    "SchedulingOptions",
    "TargetPoolCreationOptions",
    "collect",
    "filter_by",
    "iterate_pages",
]
