"""Exception hierarchy for the Compute Engine client.

Transport failures surface as ``HttpError``; the API layer translates them
into the typed errors below so callers can branch on intent rather than on
status codes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gcengine.api.types import Operation
    from gcengine.compute.model import NodeMetadata


class GoogleComputeEngineError(Exception):
    """Error returned by the Compute Engine API."""

    def __init__(self, message: str, *, status: int = 0, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class AuthorizationError(GoogleComputeEngineError):
    """401 or 403: the credentials were rejected or lack permission."""


class ResourceNotFoundError(GoogleComputeEngineError):
    """404 on a call that has no "absent" result."""


class ResourceConflictError(GoogleComputeEngineError):
    """409: the resource already exists or is being modified."""


class RateLimitError(GoogleComputeEngineError):
    """429: the project exceeded its rate quota."""


class OperationTimeoutError(TimeoutError):
    """The operation did not reach DONE in time."""

    def __init__(self, message: str, operation: Operation) -> None:
        super().__init__(message)
        self.operation = operation


class OperationFailedError(GoogleComputeEngineError):
    """The operation reached DONE carrying an error payload."""

    def __init__(self, operation: Operation) -> None:
        status = operation.get("httpErrorStatusCode", 0)
        message = operation.get("httpErrorMessage", "")
        errors = operation.get("error", {}).get("errors", [])
        detail = "; ".join(e.get("message", e.get("code", "")) for e in errors)
        super().__init__(
            f"operation {operation.get('name', '?')} on {operation.get('targetLink', '?')} failed: "
            f"{status} {message} {detail}".strip(),
            status=status,
        )
        self.operation = operation


class NodeCreationError(GoogleComputeEngineError):
    """Some nodes of a group could not be created.

    ``created`` holds the nodes that were, so callers can use or destroy them.
    """

    def __init__(
        self, group: str, created: list[NodeMetadata], failures: dict[str, BaseException]
    ) -> None:
        detail = ", ".join(f"{name}: {error}" for name, error in failures.items())
        super().__init__(f"{len(failures)} node(s) of group {group} failed: {detail}")
        self.group = group
        self.created = created
        self.failures = failures


def error_for_status(status: int, body: str, context: str) -> GoogleComputeEngineError:
    message = f"{context}: HTTP {status}: {body[:500]}"
    match status:
        case 401 | 403:
            return AuthorizationError(message, status=status, body=body)
        case 404:
            return ResourceNotFoundError(message, status=status, body=body)
        case 409:
            return ResourceConflictError(message, status=status, body=body)
        case 429:
            return RateLimitError(message, status=status, body=body)
        case _:
            return GoogleComputeEngineError(message, status=status, body=body)
