"""Operation lookup, listing and polling.

Every mutating call returns an Operation living in the global, region or
zone scope of the resource it changes. ``wait_done`` polls its selfLink at a
fixed interval until the status is DONE; failures are reported through the
DONE operation's error fields, which callers inspect (or ask to have raised).
"""

from __future__ import annotations

from loguru import logger

from gcengine.errors import OperationFailedError, OperationTimeoutError
from gcengine.infra.wait import wait_for_ready

from ..client import ApiClient
from ..types import Operation, has_failed, is_done, operation_scope
from .base import ReadOnlyApi, delete_or_none, fetch_or_none

log = logger.bind(component="operations")


class OperationApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._resources = client.resources

    # ─── Lookup ──────────────────────────────────────────────────────

    async def get(self, uri: str) -> Operation | None:
        return await fetch_or_none(self._client, uri)

    async def delete(self, uri: str) -> None:
        await delete_or_none(self._client, uri)

    # ─── Listing ─────────────────────────────────────────────────────

    def in_global(self) -> ReadOnlyApi[Operation]:
        return ReadOnlyApi(self._client, self._resources.global_uri("operations"))

    def in_region(self, region: str) -> ReadOnlyApi[Operation]:
        return ReadOnlyApi(self._client, self._resources.regional(region, "operations"))

    def in_zone(self, zone: str) -> ReadOnlyApi[Operation]:
        return ReadOnlyApi(self._client, self._resources.zonal(zone, "operations"))

    def scoped_api(self, operation: Operation) -> ReadOnlyApi[Operation]:
        match operation_scope(operation):
            case ("zone", str(zone)):
                return self.in_zone(zone)
            case ("region", str(region)):
                return self.in_region(region)
            case _:
                return self.in_global()

    # ─── Polling ─────────────────────────────────────────────────────

    async def wait_done(
        self,
        operation: Operation,
        *,
        timeout: float | None = None,
        interval: float | None = None,
        raise_on_error: bool = False,
    ) -> Operation:
        """Poll ``operation`` until DONE and return its final state.

        Args:
            operation: Operation returned by a mutating call.
            timeout: Seconds to wait. Defaults to ``operation_complete_timeout``.
            interval: Seconds between polls. Defaults to ``operation_complete_interval``.
            raise_on_error: Raise ``OperationFailedError`` if the DONE operation
                carries an error instead of returning it.

        Raises:
            OperationTimeoutError: If the operation is not DONE within ``timeout``.
        """
        config = self._client.config
        timeout = config.operation_complete_timeout if timeout is None else timeout
        interval = config.operation_complete_interval if interval is None else interval
        last = operation

        async def poll() -> Operation | None:
            nonlocal last
            current = await self.get(operation["selfLink"])
            if current is not None:
                last = current
            return current

        if not is_done(operation):
            log.debug("Waiting for {name} ({type})", name=operation.get("name"),
                      type=operation.get("operationType", "?"))
            try:
                last = await wait_for_ready(
                    poll, is_done, timeout=timeout, interval=interval,
                    description=f"operation {operation.get('name')}",
                )
            except TimeoutError as e:
                raise OperationTimeoutError(
                    f"operation {operation.get('name')} did not reach DONE within {timeout:.0f}s "
                    f"(last status {last.get('status')})",
                    last,
                ) from e

        if has_failed(last):
            log.warning(
                "Operation {name} on {target} failed: {code} {message}",
                name=last.get("name"), target=last.get("targetLink"),
                code=last.get("httpErrorStatusCode"), message=last.get("httpErrorMessage"),
            )
            if raise_on_error:
                raise OperationFailedError(last)
        return last
