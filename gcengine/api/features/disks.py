from __future__ import annotations

from ..options import DiskCreationOptions
from ..types import Disk, DiskType, Operation, Snapshot
from .base import ReadOnlyApi, ResourceApi


class DiskApi(ResourceApi[Disk]):
    """Persistent disks in one zone."""

    async def create(
        self, name: str, size_gb: int | None = None, options: DiskCreationOptions | None = None
    ) -> Operation:
        """Create a disk. Without a source image or snapshot ``size_gb`` is required."""
        options = options or DiskCreationOptions()
        if size_gb is None and options.source_image is None and options.source_snapshot is None:
            raise ValueError("size_gb is required for a blank disk")
        return await self._insert(options.to_json(name, size_gb))

    async def create_snapshot(
        self, disk: str, snapshot: str, description: str | None = None
    ) -> Operation:
        body: dict[str, object] = {"name": snapshot}
        if description:
            body["description"] = description
        return await self._post(f"{self.uri(disk)}/createSnapshot", body)

    async def resize(self, disk: str, size_gb: int) -> Operation:
        return await self._post(f"{self.uri(disk)}/resize", {"sizeGb": size_gb})


class DiskTypeApi(ReadOnlyApi[DiskType]):
    pass


class SnapshotApi(ResourceApi[Snapshot]):
    """Global snapshots. Created through ``DiskApi.create_snapshot``."""
