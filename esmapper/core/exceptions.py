from __future__ import annotations

from typing import Any

__all__ = [
    "BaseError",
    "BatchFailureError",
    "NotFoundError",
    "SerializationError",
    "TransportError",
    "UnsupportedOperationError",
    "ValidationError",
]


class BaseError(Exception):
    status_code: int = 500


class ValidationError(BaseError):
    """Invalid caller input: blank identifier, empty collection,
    malformed predicate or unbalanced condition groups."""

    status_code = 400


class NotFoundError(BaseError):
    status_code = 404


class UnsupportedOperationError(BaseError):
    """Configuration the backend request cannot express,
    e.g. an unknown aggregation kind."""

    status_code = 415


class SerializationError(BaseError):
    """Entity could not be encoded to or decoded from a wire document."""

    status_code = 422


class BatchFailureError(BaseError):
    """A fail-fast batch reported at least one failed item.

    The backend may have applied part of the batch; callers should treat
    the state as indeterminate and assume nothing was applied.
    """

    status_code = 500

    count: int
    failures: list[dict[str, Any]]

    def __init__(
        self,
        message: str,
        failures: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.count = 0
        self.failures = failures or []


class TransportError(BaseError):
    """Wire-level failure of a single round trip."""

    status_code = 502

    cause: BaseException | None

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
