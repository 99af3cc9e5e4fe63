"""Internal machinery: HTTP transport, retry, polling and caches."""

from .cache import Memoized, SingleFlightCache
from .http import (
    Auth,
    BearerAuth,
    GoogleCredentialsAuth,
    HttpClient,
    HttpError,
    RequestTimeoutError,
)
from .retry import TRANSIENT_STATUSES, on_status_code, retry, retrying
from .wait import wait_for_ready

__all__ = [
    "Auth",
    "BearerAuth",
    "GoogleCredentialsAuth",
    "HttpClient",
    "HttpError",
    "Memoized",
    "RequestTimeoutError",
    "SingleFlightCache",
    "TRANSIENT_STATUSES",
    "on_status_code",
    "retry",
    "retrying",
    "wait_for_ready",
]
