from __future__ import annotations

from ..options import DeprecateOptions
from ..types import Image, Operation
from .base import ResourceApi


class ImageApi(ResourceApi[Image]):
    """Images of one project: the user's own or a public one like debian-cloud."""

    async def get_by_uri(self, uri: str) -> Image | None:
        return await self._get(uri)

    async def get_from_family(self, family: str) -> Image | None:
        """Latest non-deprecated image of ``family``."""
        return await self._get(f"{self.collection_uri}/family/{family}")

    async def create_from_disk(self, name: str, disk_uri: str) -> Operation:
        return await self._insert({"name": name, "sourceDisk": disk_uri})

    async def deprecate(self, name: str, options: DeprecateOptions) -> Operation:
        return await self._post(f"{self.uri(name)}/deprecate", dict(options.to_json()))
