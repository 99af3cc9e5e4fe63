from __future__ import annotations

from ..types import MachineType
from .base import ReadOnlyApi


class MachineTypeApi(ReadOnlyApi[MachineType]):
    """Machine types offered in one zone."""

    async def get_by_uri(self, uri: str) -> MachineType | None:
        return await self._get(uri)
