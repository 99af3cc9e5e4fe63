from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from gcengine.errors import ResourceNotFoundError

from ..client import ApiClient
from ..options import ListOptions
from ..pages import AggregatedListPage, collect, iterate_pages
from ..types import (
    Address,
    Disk,
    DiskType,
    ForwardingRule,
    Instance,
    MachineType,
    Operation,
    Subnetwork,
    TargetInstance,
    TargetPool,
)


class AggregatedListApi:
    """Lists across every zone or region of the project in one paged call.

    ``collection`` is the API name (``instances``, ``machineTypes``...), used
    both in the path and as the per-scope key of the response.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def page(
        self,
        collection: str,
        page_token: str | None = None,
        options: ListOptions | None = None,
    ) -> AggregatedListPage[Any]:
        uri = f"{self._client.resources.project_uri}/aggregated/{collection}"
        try:
            data = await self._client.request(
                "GET", uri, params=(options or ListOptions()).to_params(page_token)
            )
        except ResourceNotFoundError:
            return AggregatedListPage()
        return AggregatedListPage.from_json(data, collection)

    def pages(
        self, collection: str, options: ListOptions | None = None
    ) -> AsyncIterator[AggregatedListPage[Any]]:
        return iterate_pages(lambda token: self.page(collection, token, options))

    async def list(self, collection: str, options: ListOptions | None = None) -> list[Any]:
        return await collect(self.pages(collection, options))

    # ─── Per-resource views ──────────────────────────────────────────

    def instances(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[Instance]]:
        return self.pages("instances", options)

    def machine_types(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[MachineType]]:
        return self.pages("machineTypes", options)

    def disks(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[Disk]]:
        return self.pages("disks", options)

    def disk_types(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[DiskType]]:
        return self.pages("diskTypes", options)

    def addresses(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[Address]]:
        return self.pages("addresses", options)

    def forwarding_rules(
        self, options: ListOptions | None = None
    ) -> AsyncIterator[AggregatedListPage[ForwardingRule]]:
        return self.pages("forwardingRules", options)

    def target_pools(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[TargetPool]]:
        return self.pages("targetPools", options)

    def target_instances(
        self, options: ListOptions | None = None
    ) -> AsyncIterator[AggregatedListPage[TargetInstance]]:
        return self.pages("targetInstances", options)

    def subnetworks(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[Subnetwork]]:
        return self.pages("subnetworks", options)

    def operations(self, options: ListOptions | None = None) -> AsyncIterator[AggregatedListPage[Operation]]:
        return self.pages("operations", options)
