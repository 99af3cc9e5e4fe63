from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from gcengine.errors import ResourceNotFoundError

from ..client import ApiClient
from ..options import ListOptions
from ..pages import ListPage, collect, iterate_pages
from ..types import Operation


async def fetch_or_none(
    client: ApiClient, url: str, params: dict[str, Any] | None = None
) -> Any:
    try:
        return await client.request("GET", url, params=params)
    except ResourceNotFoundError:
        return None


async def delete_or_none(client: ApiClient, url: str) -> Operation | None:
    try:
        return await client.request("DELETE", url)
    except ResourceNotFoundError:
        return None


class ReadOnlyApi[T]:
    """get/list over one collection URI, e.g. ``.../zones/us-central1-a/machineTypes``.

    404 means absent: ``get`` returns None and a list page comes back empty.
    """

    def __init__(self, client: ApiClient, collection_uri: str) -> None:
        self._client = client
        self._base = collection_uri

    @property
    def collection_uri(self) -> str:
        return self._base

    def uri(self, name: str) -> str:
        return f"{self._base}/{name}"

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return await fetch_or_none(self._client, url, params)

    async def _post(
        self,
        url: str,
        body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Operation:
        return await self._client.request("POST", url, json=body, params=params)

    async def _delete(self, url: str) -> Operation | None:
        return await delete_or_none(self._client, url)

    async def get(self, name: str) -> T | None:
        return await self._get(self.uri(name))

    async def list_page(
        self, page_token: str | None = None, options: ListOptions | None = None
    ) -> ListPage[T]:
        params = (options or ListOptions()).to_params(page_token)
        try:
            data = await self._client.request("GET", self._base, params=params)
        except ResourceNotFoundError:
            return ListPage.empty()
        return ListPage.from_json(data)

    def pages(self, options: ListOptions | None = None) -> AsyncIterator[ListPage[T]]:
        return iterate_pages(lambda token: self.list_page(token, options))

    async def list(self, options: ListOptions | None = None) -> list[T]:
        return await collect(self.pages(options))


class ResourceApi[T](ReadOnlyApi[T]):
    """Adds insert and delete; both return the Operation tracking the change."""

    async def _insert(self, body: dict[str, Any], params: dict[str, Any] | None = None) -> Operation:
        return await self._post(self._base, body, params)

    async def _put(self, name: str, body: dict[str, Any]) -> Operation:
        return await self._client.request("PUT", self.uri(name), json=body)

    async def _patch(self, name: str, body: dict[str, Any]) -> Operation:
        return await self._client.request("PATCH", self.uri(name), json=body)

    async def delete(self, name: str) -> Operation | None:
        return await self._delete(self.uri(name))
