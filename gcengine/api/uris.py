"""selfLink construction and parsing.

GCE identifies every resource by an absolute URI of the form
``{endpoint}/projects/{project}/{scope}/{collection}/{name}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CUSTOM_MACHINE_TYPE = re.compile(r"(?:^|/)custom-(\d+)-(\d+)(?:-ext)?$")
_PROJECT_IN_URI = re.compile(r"/projects/([^/]+)")


def name_from_uri(uri: str) -> str:
    return uri.rstrip("/").rsplit("/", 1)[-1]


def project_from_uri(uri: str) -> str | None:
    match = _PROJECT_IN_URI.search(uri)
    return match.group(1) if match else None


def zone_to_region(zone: str) -> str:
    """us-central1-a -> us-central1"""
    return zone.rsplit("-", 1)[0]


def parse_custom_machine_type(uri: str) -> tuple[int, int] | None:
    """Return (cpus, ram_mb) for ``.../machineTypes/custom-{cpus}-{ram}``, else None."""
    match = _CUSTOM_MACHINE_TYPE.search(uri)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


@dataclass(frozen=True, slots=True)
class Resources:
    """Builds selfLinks for one project under one API endpoint."""

    endpoint: str
    project: str

    @property
    def project_uri(self) -> str:
        return f"{self.endpoint.rstrip('/')}/projects/{self.project}"

    def in_project(self, project: str) -> Resources:
        return Resources(self.endpoint, project)

    # ─── Scopes ──────────────────────────────────────────────────────

    def global_uri(self, collection: str, name: str | None = None) -> str:
        base = f"{self.project_uri}/global/{collection}"
        return f"{base}/{name}" if name else base

    def region(self, region: str) -> str:
        return f"{self.project_uri}/regions/{region}"

    def zone(self, zone: str) -> str:
        return f"{self.project_uri}/zones/{zone}"

    def regional(self, region: str, collection: str, name: str | None = None) -> str:
        base = f"{self.region(region)}/{collection}"
        return f"{base}/{name}" if name else base

    def zonal(self, zone: str, collection: str, name: str | None = None) -> str:
        base = f"{self.zone(zone)}/{collection}"
        return f"{base}/{name}" if name else base

    # ─── Resources ───────────────────────────────────────────────────

    def machine_type(self, zone: str, name: str) -> str:
        return self.zonal(zone, "machineTypes", name)

    def custom_machine_type(self, zone: str, cpus: int, ram_mb: int) -> str:
        return self.machine_type(zone, f"custom-{cpus}-{ram_mb}")

    def disk_type(self, zone: str, name: str) -> str:
        return self.zonal(zone, "diskTypes", name)

    def disk(self, zone: str, name: str) -> str:
        return self.zonal(zone, "disks", name)

    def instance(self, zone: str, name: str) -> str:
        return self.zonal(zone, "instances", name)

    def image(self, name: str, project: str | None = None) -> str:
        return self.in_project(project or self.project).global_uri("images", name)

    def network(self, name: str) -> str:
        return self.global_uri("networks", name)

    def subnetwork(self, region: str, name: str) -> str:
        return self.regional(region, "subnetworks", name)

    def firewall(self, name: str) -> str:
        return self.global_uri("firewalls", name)

    def target_pool(self, region: str, name: str) -> str:
        return self.regional(region, "targetPools", name)

    def http_health_check(self, name: str) -> str:
        return self.global_uri("httpHealthChecks", name)

    def url_map(self, name: str) -> str:
        return self.global_uri("urlMaps", name)

    def backend_service(self, name: str) -> str:
        return self.global_uri("backendServices", name)

    def snapshot(self, name: str) -> str:
        return self.global_uri("snapshots", name)
