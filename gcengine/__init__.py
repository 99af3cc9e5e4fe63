"""gcengine - async client for Google Compute Engine.

Example:

    from gcengine import GCE, GoogleComputeEngineApi, GoogleComputeEngineService, TemplateOptions
    from gcengine.infra import BearerAuth

    async with GoogleComputeEngineApi(GCE(project="my-project"), BearerAuth(token)) as api:
        zones = await api.zones().list()

        compute = GoogleComputeEngineService(api)
        template = await compute.template(
            location_id="us-central1-a",
            options=TemplateOptions(inbound_ports=(22, 80)),
        )
        nodes = await compute.create_nodes_in_group("web", 2, template)
"""

from gcengine.api import GoogleComputeEngineApi, ListOptions, filter_by
from gcengine.compute import (
    GoogleComputeEngineService,
    NodeMetadata,
    Template,
    TemplateOptions,
)
from gcengine.config import GCE, load_config, resolve_config
from gcengine.errors import (
    AuthorizationError,
    GoogleComputeEngineError,
    NodeCreationError,
    OperationFailedError,
    OperationTimeoutError,
    RateLimitError,
    ResourceConflictError,
    ResourceNotFoundError,
)
from gcengine.infra import BearerAuth, GoogleCredentialsAuth
from gcengine.logging import LogConfig, setup_logging, teardown_logging

__version__ = "0.1.0"

__all__ = [
    "GCE",
    "AuthorizationError",
    "BearerAuth",
    "GoogleComputeEngineApi",
    "GoogleComputeEngineError",
    "GoogleComputeEngineService",
    "GoogleCredentialsAuth",
    "ListOptions",
    "LogConfig",
    "NodeCreationError",
    "NodeMetadata",
    "OperationFailedError",
    "OperationTimeoutError",
    "RateLimitError",
    "ResourceConflictError",
    "ResourceNotFoundError",
    "Template",
    "TemplateOptions",
    "filter_by",
    "load_config",
    "resolve_config",
    "setup_logging",
    "teardown_logging",
]
