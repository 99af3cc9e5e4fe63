from __future__ import annotations

from typing import Any, Literal

from ..client import ApiClient
from ..options import (
    ForwardingRuleCreationOptions,
    HttpHealthCheckCreationOptions,
    TargetPoolCreationOptions,
)
from ..types import (
    BackendService,
    BackendServiceGroupHealth,
    ForwardingRule,
    HttpHealthCheck,
    Operation,
    TargetHttpProxy,
    TargetInstance,
    TargetPool,
    TargetPoolHealth,
    UrlMap,
    UrlMapValidateResponse,
)
from .base import ResourceApi

# =============================================================================
# Network load balancing
# =============================================================================


class TargetPoolApi(ResourceApi[TargetPool]):
    """Target pools of one region."""

    async def create(self, name: str, options: TargetPoolCreationOptions) -> Operation:
        return await self._insert(options.to_json(name))

    async def add_instance(self, name: str, instances: list[str]) -> Operation:
        body = {"instances": [{"instance": uri} for uri in instances]}
        return await self._post(f"{self.uri(name)}/addInstance", body)

    async def remove_instance(self, name: str, instances: list[str]) -> Operation:
        body = {"instances": [{"instance": uri} for uri in instances]}
        return await self._post(f"{self.uri(name)}/removeInstance", body)

    async def add_health_check(self, name: str, health_checks: list[str]) -> Operation:
        body = {"healthChecks": [{"healthCheck": uri} for uri in health_checks]}
        return await self._post(f"{self.uri(name)}/addHealthCheck", body)

    async def remove_health_check(self, name: str, health_checks: list[str]) -> Operation:
        body = {"healthChecks": [{"healthCheck": uri} for uri in health_checks]}
        return await self._post(f"{self.uri(name)}/removeHealthCheck", body)

    async def set_backup(
        self, name: str, target_uri: str, failover_ratio: float | None = None
    ) -> Operation:
        return await self._post(
            f"{self.uri(name)}/setBackup",
            {"target": target_uri},
            {"failoverRatio": failover_ratio},
        )

    async def get_health(self, name: str, instance_uri: str) -> TargetPoolHealth:
        return await self._post(f"{self.uri(name)}/getHealth", {"instance": instance_uri})  # type: ignore[return-value]


class TargetInstanceApi(ResourceApi[TargetInstance]):
    """Target instances of one zone."""

    async def create(
        self,
        name: str,
        instance_uri: str,
        nat_policy: Literal["NO_NAT"] = "NO_NAT",
        description: str | None = None,
    ) -> Operation:
        body: dict[str, Any] = {"name": name, "instance": instance_uri, "natPolicy": nat_policy}
        if description:
            body["description"] = description
        return await self._insert(body)


class ForwardingRuleApi(ResourceApi[ForwardingRule]):
    """Forwarding rules, regional or global depending on the collection."""

    async def create(self, name: str, options: ForwardingRuleCreationOptions) -> Operation:
        return await self._insert(options.to_json(name))

    async def set_target(self, name: str, target_uri: str) -> Operation:
        return await self._post(f"{self.uri(name)}/setTarget", {"target": target_uri})


# =============================================================================
# HTTP load balancing
# =============================================================================


class HttpHealthCheckApi(ResourceApi[HttpHealthCheck]):
    async def create(
        self, name: str, options: HttpHealthCheckCreationOptions | None = None
    ) -> Operation:
        return await self._insert((options or HttpHealthCheckCreationOptions()).to_json(name))

    async def update(self, name: str, options: HttpHealthCheckCreationOptions) -> Operation:
        return await self._put(name, options.to_json(name))

    async def patch(self, name: str, options: HttpHealthCheckCreationOptions) -> Operation:
        return await self._patch(name, options.to_json())


class BackendServiceApi(ResourceApi[BackendService]):
    async def create(self, backend_service: BackendService) -> Operation:
        return await self._insert(dict(backend_service))

    async def update(self, name: str, backend_service: BackendService) -> Operation:
        return await self._put(name, dict(backend_service))

    async def patch(self, name: str, backend_service: BackendService) -> Operation:
        return await self._patch(name, dict(backend_service))

    async def get_health(self, name: str, group_uri: str) -> BackendServiceGroupHealth:
        return await self._post(f"{self.uri(name)}/getHealth", {"group": group_uri})  # type: ignore[return-value]


class UrlMapApi(ResourceApi[UrlMap]):
    async def create(self, url_map: UrlMap) -> Operation:
        return await self._insert(dict(url_map))

    async def update(self, name: str, url_map: UrlMap) -> Operation:
        return await self._put(name, dict(url_map))

    async def patch(self, name: str, url_map: UrlMap) -> Operation:
        return await self._patch(name, dict(url_map))

    async def validate(self, name: str, url_map: UrlMap) -> UrlMapValidateResponse:
        """Run the map's tests server-side without applying it."""
        return await self._post(f"{self.uri(name)}/validate", {"resource": dict(url_map)})  # type: ignore[return-value]


class TargetHttpProxyApi(ResourceApi[TargetHttpProxy]):
    def __init__(self, client: ApiClient, collection_uri: str, project_uri: str) -> None:
        super().__init__(client, collection_uri)
        self._project_uri = project_uri

    async def create(self, name: str, url_map_uri: str, description: str | None = None) -> Operation:
        body: dict[str, Any] = {"name": name, "urlMap": url_map_uri}
        if description:
            body["description"] = description
        return await self._insert(body)

    async def set_url_map(self, name: str, url_map_uri: str) -> Operation:
        # setUrlMap lives outside the global/ collection path
        return await self._post(
            f"{self._project_uri}/targetHttpProxies/{name}/setUrlMap", {"urlMap": url_map_uri}
        )
