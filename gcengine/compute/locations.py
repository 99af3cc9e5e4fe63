from __future__ import annotations

from gcengine.api.facade import GoogleComputeEngineApi
from gcengine.errors import AuthorizationError
from gcengine.infra.cache import Memoized

from .functions import region_and_zones_to_locations
from .model import Location


class LocationSupplier:
    """Regions and zones of the project, loaded once per ``regions_cache_ttl``.

    Loading retries timeouts up to ``region_load_attempts`` times. An
    authorization failure is remembered until ``invalidate()``.
    """

    def __init__(self, api: GoogleComputeEngineApi) -> None:
        config = api.config
        self._api = api
        self._cache: Memoized[tuple[Location, ...]] = Memoized(
            self._load,
            ttl=config.regions_cache_ttl,
            attempts=config.region_load_attempts,
            retry_on=TimeoutError,
            never_retry_on=AuthorizationError,
            wait=config.retry_base_delay,
            name="regions",
        )

    async def _load(self) -> tuple[Location, ...]:
        return region_and_zones_to_locations(await self._api.regions().list())

    async def locations(self) -> tuple[Location, ...]:
        return await self._cache.get()

    async def regions(self) -> tuple[Location, ...]:
        return tuple(loc for loc in await self.locations() if loc.scope == "REGION")

    async def zones(self) -> tuple[Location, ...]:
        return tuple(loc for loc in await self.locations() if loc.scope == "ZONE")

    async def find_zone(self, id: str) -> Location | None:
        return next((z for z in await self.zones() if z.id == id), None)

    async def zone(self, id: str) -> Location:
        if (found := await self.find_zone(id)) is None:
            raise LookupError(f"zone {id} not found")
        return found

    def invalidate(self) -> None:
        self._cache.invalidate()
