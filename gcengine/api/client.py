"""Authenticated, retrying request layer shared by every feature API."""

from __future__ import annotations

from typing import Any, Literal

from loguru import logger

from gcengine.config import GCE
from gcengine.errors import error_for_status
from gcengine.infra.http import Auth, HttpClient, HttpError
from gcengine.infra.retry import TRANSIENT_STATUSES, on_status_code, retry

from .uris import Resources


class ApiClient:
    """Sends Compute Engine requests and translates failures into typed errors.

    Requests failing with 429 or 5xx are retried with exponential backoff;
    every other ``HttpError`` is mapped by status (401/403, 404, 409, 429)
    onto the ``GoogleComputeEngineError`` hierarchy.
    """

    def __init__(
        self,
        config: GCE,
        auth: Auth | None = None,
        *,
        http: HttpClient | None = None,
    ) -> None:
        self.config = config
        self.project = config.require_project
        self.resources = Resources(config.endpoint, self.project)
        self._http = http or HttpClient(config.endpoint, auth, timeout=config.request_timeout)
        self._send = retry(
            on=on_status_code(*TRANSIENT_STATUSES),
            max_attempts=config.max_retries,
            base_delay=config.retry_base_delay,
        )(self._http.request)
        self._log = logger.bind(component="api", project=self.project)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | list[tuple[str, Any]] | None = None,
        format: Literal["json", "text"] = "json",
    ) -> Any:
        try:
            return await self._send(method, path, json=json, params=params, format=format)
        except HttpError as e:
            if e.status != 404:
                self._log.warning(
                    "API error {method} {path}: {status}",
                    method=method, path=path, status=e.status,
                )
            raise error_for_status(e.status, e.body, f"{method} {path}") from e

    async def close(self) -> None:
        await self._http.close()
