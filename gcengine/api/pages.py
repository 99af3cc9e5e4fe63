"""List pages, aggregated pages and token-following iteration."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any

from .types import ApiWarning


@dataclass(frozen=True, slots=True)
class ListPage[T]:
    """One page of a ``list`` response."""

    items: tuple[T, ...] = ()
    next_page_token: str | None = None
    warnings: tuple[ApiWarning, ...] = ()

    @classmethod
    def from_json(cls, data: dict[str, Any] | None) -> ListPage[T]:
        if not data:
            return cls()
        return cls(
            items=tuple(data.get("items", ())),
            next_page_token=data.get("nextPageToken"),
            warnings=tuple(data.get("warnings", ())),
        )

    @classmethod
    def empty(cls) -> ListPage[T]:
        return cls()

    @property
    def has_next(self) -> bool:
        return bool(self.next_page_token)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class AggregatedListPage[T]:
    """One page of an ``aggregated/{collection}`` response.

    The API groups items by scope (``"zones/us-central1-a"``); scopes with no
    resources carry only a warning and contribute nothing. ``items`` is the
    flattened view.
    """

    scoped: tuple[tuple[str, tuple[T, ...]], ...] = ()
    next_page_token: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any] | None, collection: str) -> AggregatedListPage[T]:
        if not data:
            return cls()
        scoped = tuple(
            (scope, tuple(entry[collection]))
            for scope, entry in data.get("items", {}).items()
            if entry.get(collection)
        )
        return cls(scoped=scoped, next_page_token=data.get("nextPageToken"))

    @property
    def items(self) -> tuple[T, ...]:
        return tuple(item for _, items in self.scoped for item in items)

    @property
    def has_next(self) -> bool:
        return bool(self.next_page_token)

    def by_scope(self) -> dict[str, tuple[T, ...]]:
        return dict(self.scoped)

    def __iter__(self) -> Iterator[T]:
        return iter(self.items)

    def __len__(self) -> int:
        return sum(len(items) for _, items in self.scoped)


async def iterate_pages[P: ListPage[Any] | AggregatedListPage[Any]](
    fetch: Callable[[str | None], Awaitable[P]],
) -> AsyncIterator[P]:
    """Yield pages from ``fetch(token)`` until a page has no next token."""
    token: str | None = None
    while True:
        page = await fetch(token)
        yield page
        if not page.has_next:
            return
        token = page.next_page_token


async def collect[T](pages: AsyncIterator[ListPage[T]] | AsyncIterator[AggregatedListPage[T]]) -> list[T]:
    """Concatenate the items of every page."""
    items: list[T] = []
    async for page in pages:
        items.extend(page.items)
    return items
