"""Entry point to every Compute Engine feature API.

Example:
    from gcengine import GCE, GoogleComputeEngineApi
    from gcengine.infra import BearerAuth

    async with GoogleComputeEngineApi(GCE(project="my-project"), BearerAuth(token)) as api:
        operation = await api.instances_in_zone("us-central1-a").stop("web-1")
        await api.operations().wait_done(operation, raise_on_error=True)
"""

from __future__ import annotations

from typing import Any

from gcengine.config import GCE
from gcengine.infra.http import Auth, HttpClient

from .client import ApiClient
from .features import (
    AddressApi,
    AggregatedListApi,
    BackendServiceApi,
    DiskApi,
    DiskTypeApi,
    FirewallApi,
    ForwardingRuleApi,
    HttpHealthCheckApi,
    ImageApi,
    InstanceApi,
    MachineTypeApi,
    NetworkApi,
    OperationApi,
    ProjectApi,
    RegionApi,
    RouteApi,
    SnapshotApi,
    SubnetworkApi,
    TargetHttpProxyApi,
    TargetInstanceApi,
    TargetPoolApi,
    UrlMapApi,
    ZoneApi,
)
from .uris import Resources


class GoogleComputeEngineApi:
    """Feature APIs bound to one project, grouped by scope."""

    def __init__(
        self,
        config: GCE,
        auth: Auth | None = None,
        *,
        http: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.client = ApiClient(config, auth, http=http)

    @property
    def project(self) -> str:
        return self.client.project

    @property
    def resources(self) -> Resources:
        return self.client.resources

    # ─── Zone scope ──────────────────────────────────────────────────

    def instances_in_zone(self, zone: str) -> InstanceApi:
        return InstanceApi(self.client, self.resources.zonal(zone, "instances"))

    def disks_in_zone(self, zone: str) -> DiskApi:
        return DiskApi(self.client, self.resources.zonal(zone, "disks"))

    def disk_types_in_zone(self, zone: str) -> DiskTypeApi:
        return DiskTypeApi(self.client, self.resources.zonal(zone, "diskTypes"))

    def machine_types_in_zone(self, zone: str) -> MachineTypeApi:
        return MachineTypeApi(self.client, self.resources.zonal(zone, "machineTypes"))

    def target_instances_in_zone(self, zone: str) -> TargetInstanceApi:
        return TargetInstanceApi(self.client, self.resources.zonal(zone, "targetInstances"))

    # ─── Region scope ────────────────────────────────────────────────

    def addresses_in_region(self, region: str) -> AddressApi:
        return AddressApi(self.client, self.resources.regional(region, "addresses"))

    def forwarding_rules_in_region(self, region: str) -> ForwardingRuleApi:
        return ForwardingRuleApi(self.client, self.resources.regional(region, "forwardingRules"))

    def target_pools_in_region(self, region: str) -> TargetPoolApi:
        return TargetPoolApi(self.client, self.resources.regional(region, "targetPools"))

    def subnetworks_in_region(self, region: str) -> SubnetworkApi:
        return SubnetworkApi(self.client, self.resources.regional(region, "subnetworks"))

    # ─── Global scope ────────────────────────────────────────────────

    def images(self, project: str | None = None) -> ImageApi:
        """Images of ``project``; defaults to the configured one."""
        resources = self.resources.in_project(project) if project else self.resources
        return ImageApi(self.client, resources.global_uri("images"))

    def firewalls(self) -> FirewallApi:
        return FirewallApi(self.client, self.resources.global_uri("firewalls"))

    def networks(self) -> NetworkApi:
        return NetworkApi(self.client, self.resources.global_uri("networks"))

    def routes(self) -> RouteApi:
        return RouteApi(self.client, self.resources.global_uri("routes"))

    def snapshots(self) -> SnapshotApi:
        return SnapshotApi(self.client, self.resources.global_uri("snapshots"))

    def global_forwarding_rules(self) -> ForwardingRuleApi:
        return ForwardingRuleApi(self.client, self.resources.global_uri("forwardingRules"))

    def http_health_checks(self) -> HttpHealthCheckApi:
        return HttpHealthCheckApi(self.client, self.resources.global_uri("httpHealthChecks"))

    def backend_services(self) -> BackendServiceApi:
        return BackendServiceApi(self.client, self.resources.global_uri("backendServices"))

    def url_maps(self) -> UrlMapApi:
        return UrlMapApi(self.client, self.resources.global_uri("urlMaps"))

    def target_http_proxies(self) -> TargetHttpProxyApi:
        return TargetHttpProxyApi(
            self.client, self.resources.global_uri("targetHttpProxies"), self.resources.project_uri
        )

    def regions(self) -> RegionApi:
        return RegionApi(self.client, f"{self.resources.project_uri}/regions")

    def zones(self) -> ZoneApi:
        return ZoneApi(self.client, f"{self.resources.project_uri}/zones")

    # ─── Cross-scope ─────────────────────────────────────────────────

    def operations(self) -> OperationApi:
        return OperationApi(self.client)

    def projects(self) -> ProjectApi:
        return ProjectApi(self.client)

    def aggregated_list(self) -> AggregatedListApi:
        return AggregatedListApi(self.client)

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> GoogleComputeEngineApi:
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
