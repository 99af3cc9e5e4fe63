from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

import aiohttp
from loguru import logger

# ─── Errors ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class HttpError(Exception):
    status: int
    body: str

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.body}"


class RequestTimeoutError(TimeoutError):
    """The request did not complete within the client timeout."""


# ─── Auth ────────────────────────────────────────────────────────────

COMPUTE_SCOPE = "https://www.googleapis.com/auth/compute"


@runtime_checkable
class Auth(Protocol):
    async def headers(self) -> dict[str, str]: ...
    async def on_401(self) -> None: ...


class BearerAuth:
    def __init__(self, token: str) -> None:
        self._token = token

    async def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    async def on_401(self) -> None:
        pass


class GoogleCredentialsAuth:
    """Bearer auth backed by google-auth credentials.

    Token refresh is a blocking HTTP call in google-auth, so it runs in a
    worker thread. Uses Application Default Credentials when none are given.
    """

    def __init__(self, credentials: Any = None, scopes: Sequence[str] = (COMPUTE_SCOPE,)) -> None:
        self._credentials = credentials
        self._scopes = tuple(scopes)
        self._lock = asyncio.Lock()

    def _load(self) -> Any:
        import google.auth

        credentials, _ = google.auth.default(scopes=list(self._scopes))
        return credentials

    def _refresh(self) -> None:
        from google.auth.transport.requests import Request

        self._credentials.refresh(Request())

    async def headers(self) -> dict[str, str]:
        async with self._lock:
            if self._credentials is None:
                self._credentials = await asyncio.to_thread(self._load)
            if not self._credentials.valid:
                logger.bind(component="http").debug("Refreshing Google credentials")
                await asyncio.to_thread(self._refresh)
        return {"Authorization": f"Bearer {self._credentials.token}"}

    async def on_401(self) -> None:
        async with self._lock:
            if self._credentials is not None:
                await asyncio.to_thread(self._refresh)


# ─── Client ──────────────────────────────────────────────────────────


class HttpClient:
    def __init__(
        self,
        base_url: str,
        auth: Auth | None = None,
        *,
        timeout: float = 60,
        default_headers: dict[str, str] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._default_headers = {"Accept": "application/json", **(default_headers or {})}
        self._session: aiohttp.ClientSession | None = None
        self._log = logger.bind(component="http")

    @property
    def base_url(self) -> str:
        return self._base_url

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def _build_headers(self) -> dict[str, str]:
        headers = dict(self._default_headers)
        if self._auth:
            headers.update(await self._auth.headers())
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | list[Any] | None = None,
        params: list[tuple[str, str]] | None = None,
        format: Literal["json", "text"] = "json",
    ) -> Any:
        session = await self._ensure_session()
        url = self.url(path)
        self._log.debug("{method} {url}", method=method, url=url)

        try:
            async with session.request(
                method, url, headers=await self._build_headers(), json=json, params=params
            ) as resp:
                if resp.status == 401 and self._auth:
                    self._log.debug("401 received, refreshing auth and retrying")
                    await self._auth.on_401()
                    async with session.request(
                        method, url, headers=await self._build_headers(), json=json, params=params
                    ) as retry_resp:
                        return await self._parse(retry_resp, format)

                return await self._parse(resp, format)
        except TimeoutError as e:
            raise RequestTimeoutError(f"{method} {url} timed out after {self._timeout.total}s") from e
        except aiohttp.ClientResponseError as e:
            raise HttpError(status=e.status, body=e.message) from e
        except aiohttp.ClientError as e:
            raise HttpError(status=0, body=str(e)) from e

    async def _parse(
        self, resp: aiohttp.ClientResponse, format: Literal["json", "text"]
    ) -> Any:
        if resp.status >= 400:
            body = await resp.text()
            self._log.debug(
                "HTTP {status} from {method} {url}: {body}",
                status=resp.status, method=resp.method, url=str(resp.url), body=body[:500],
            )
            raise HttpError(status=resp.status, body=body)
        match format:
            case "json":
                body = await resp.read()
                return await resp.json(content_type=None) if body else None
            case "text":
                return await resp.text()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | list[Any] | None = None,
        params: Mapping[str, Any] | Sequence[tuple[str, Any]] | None = None,
        format: Literal["json", "text"] = "json",
    ) -> Any:
        """Send a request and return the decoded body.

        ``path`` is joined to the base URL unless it is already absolute, which
        lets callers follow selfLinks returned by the API. Query parameters
        whose value is None are dropped; order is preserved.
        """
        return await self._send(method, path, json=json, params=_query(params), format=format)

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        if self._session and not self._session.closed:
            self._log.debug("Closing HTTP session")
            await self._session.close()

    async def __aenter__(self) -> HttpClient:
        await self._ensure_session()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()


def _query(
    params: Mapping[str, Any] | Sequence[tuple[str, Any]] | None,
) -> list[tuple[str, str]] | None:
    if not params:
        return None
    items = params.items() if isinstance(params, Mapping) else params
    query = [(k, _encode(v)) for k, v in items if v is not None]
    return query or None


def _encode(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
