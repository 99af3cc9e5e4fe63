"""Get-or-create for networks, shared by concurrent callers."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.api.types import Network
from gcengine.infra.cache import SingleFlightCache
from gcengine.infra.wait import wait_for_ready

DEFAULT_INTERNAL_RANGE = "10.0.0.0/8"

log = logger.bind(component="networks")


@dataclass(frozen=True, slots=True)
class NetworkAndAddressRange:
    name: str
    ipv4_range: str = DEFAULT_INTERNAL_RANGE
    gateway: str | None = None


class NetworkCreator:
    """Returns the network for a key, inserting it first when it does not exist.

    Concurrent requests for the same key share one insert. Created networks
    stay cached until ``invalidate``.
    """

    def __init__(self, api: GoogleComputeEngineApi) -> None:
        self._api = api
        self._cache: SingleFlightCache[NetworkAndAddressRange, Network] = SingleFlightCache(
            self._get_or_create, name="networks"
        )

    async def get_or_create(self, key: NetworkAndAddressRange) -> Network:
        return await self._cache.get(key)

    def invalidate(self, key: NetworkAndAddressRange) -> None:
        self._cache.invalidate(key)

    async def _get_or_create(self, key: NetworkAndAddressRange) -> Network:
        networks = self._api.networks()
        if (existing := await networks.get(key.name)) is not None:
            return existing

        log.info("Creating network {name} ({range})", name=key.name, range=key.ipv4_range)
        operation = await networks.create_in_ipv4_range(key.name, key.ipv4_range, key.gateway)
        await self._api.operations().wait_done(operation, raise_on_error=True)

        config = self._api.config
        return await wait_for_ready(
            lambda: networks.get(key.name),
            lambda _: True,
            timeout=config.operation_complete_timeout,
            interval=config.operation_complete_interval,
            description=f"network {key.name}",
        )
