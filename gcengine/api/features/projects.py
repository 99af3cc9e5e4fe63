from __future__ import annotations

from typing import Any

from ..client import ApiClient
from ..types import Operation, Project, Region, Zone, metadata_from_dict
from .base import ReadOnlyApi, fetch_or_none


class ProjectApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def _uri(self, project: str | None) -> str:
        return self._client.resources.in_project(project or self._client.project).project_uri

    async def get(self, project: str | None = None) -> Project | None:
        return await fetch_or_none(self._client, self._uri(project))

    async def set_common_instance_metadata(
        self, metadata: dict[str, str], fingerprint: str | None, project: str | None = None
    ) -> Operation:
        """Replace project-wide metadata (e.g. sshKeys shared by every instance)."""
        return await self._client.request(
            "POST",
            f"{self._uri(project)}/setCommonInstanceMetadata",
            json=dict(metadata_from_dict(metadata, fingerprint)),
        )

    async def set_usage_export_bucket(
        self, bucket: str, report_name_prefix: str | None = None, project: str | None = None
    ) -> Operation:
        body: dict[str, Any] = {"bucketName": bucket}
        if report_name_prefix:
            body["reportNamePrefix"] = report_name_prefix
        return await self._client.request(
            "POST", f"{self._uri(project)}/setUsageExportBucket", json=body
        )


class RegionApi(ReadOnlyApi[Region]):
    pass


class ZoneApi(ReadOnlyApi[Zone]):
    pass
