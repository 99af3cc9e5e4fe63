"""TOML-based client configuration.

Loads ~/.gcengine/defaults.toml (global) and gcengine.toml (project),
merges them, and resolves the ``[gce]`` table into a ``GCE`` instance.
Environment variables override both files.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from loguru import logger

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".gcengine" / "defaults.toml"
PROJECT_CONFIG_NAME = "gcengine.toml"

DEFAULT_ENDPOINT = "https://www.googleapis.com/compute/v1"

DEFAULT_IMAGE_PROJECTS = (
    "centos-cloud",
    "debian-cloud",
    "rhel-cloud",
    "suse-cloud",
    "ubuntu-os-cloud",
    "windows-cloud",
    "coreos-cloud",
)

_PROJECT_ENV = ("GCENGINE_PROJECT", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")


@dataclass(frozen=True, slots=True)
class GCE:
    """Google Compute Engine client configuration.

    Example:
        >>> from gcengine import GCE
        >>> config = GCE(project="my-project", operation_complete_timeout=300)

    Args:
        project: Project that owns the resources. Auto-detected when None.
        endpoint: Base URL of the v1 API.
        operation_complete_interval: Seconds between operation polls.
        operation_complete_timeout: Seconds to wait for an operation to be DONE.
        image_projects: Public projects searched for images besides ``project``.
        request_timeout: Per-request timeout in seconds.
        max_retries: Attempts for requests failing with 429 or 5xx.
        retry_base_delay: First backoff delay for those retries.
        regions_cache_ttl: Seconds the region and zone listing stays memoized.
        region_load_attempts: Attempts to load regions when the call times out.
        shared_name_prefix: Prefix for group-derived resource names.
        login_user: User injected with generated SSH keys. Local user when None.
    """

    project: str | None = None
    endpoint: str = DEFAULT_ENDPOINT
    operation_complete_interval: float = 2.0
    operation_complete_timeout: float = 600.0
    image_projects: tuple[str, ...] = DEFAULT_IMAGE_PROJECTS
    request_timeout: float = 60.0
    max_retries: int = 5
    retry_base_delay: float = 1.0
    regions_cache_ttl: float = 3600.0
    region_load_attempts: int = 3
    shared_name_prefix: str = "gcengine"
    login_user: str | None = None

    @property
    def require_project(self) -> str:
        if not self.project:
            raise ValueError(
                "No GCE project configured. Set 'project' in gcengine.toml "
                "or export GOOGLE_CLOUD_PROJECT."
            )
        return self.project

    def with_project(self) -> GCE:
        """Return a copy whose project is resolved from env or ADC when unset."""
        if self.project:
            return self
        return replace(self, project=_resolve_project())


def _resolve_project() -> str:
    for name in _PROJECT_ENV:
        if value := os.environ.get(name):
            return value

    try:
        import google.auth
    except ImportError as e:
        raise ValueError(
            "No GCE project configured and google-auth is not installed. "
            "Install gcengine[google] or set GOOGLE_CLOUD_PROJECT."
        ) from e

    _, project = google.auth.default()
    if not project:
        raise ValueError("Application Default Credentials did not provide a project")
    logger.bind(component="config").debug("Project {p} resolved from ADC", p=project)
    return project


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("gce", {})
    return merged


def _env_overrides(environ: Mapping[str, str]) -> RawConfig:
    overrides: RawConfig = {}
    for name in _PROJECT_ENV:
        if value := environ.get(name):
            overrides["project"] = value
            break
    if endpoint := environ.get("GCENGINE_ENDPOINT"):
        overrides["endpoint"] = endpoint
    return overrides


def resolve_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> GCE:
    raw = dict(load_config(project_dir=project_dir, global_path=global_path)["gce"])
    raw.update(_env_overrides(os.environ if environ is None else environ))

    known = {f.name for f in fields(GCE)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(
            f"Unknown [gce] keys: {', '.join(sorted(unknown))}. Valid: {', '.join(sorted(known))}"
        )

    if "image_projects" in raw:
        raw["image_projects"] = tuple(raw["image_projects"])
    return GCE(**raw)
