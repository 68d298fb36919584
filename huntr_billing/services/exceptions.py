"""Domain-specific exceptions."""

from __future__ import annotations

from typing import Literal


class ServiceError(Exception):
    pass


class BillingError(ServiceError):
    """Base for every error raised by the payment and quota services."""


class ValidationError(BillingError):
    """Unknown plan or otherwise rejected input."""


class ConflictError(BillingError):
    """The user already has an active payment request on the server."""


class StateError(BillingError):
    """Transition not allowed from the request's current state."""


class NotFoundError(BillingError):
    """Stale or already-resolved payment request id."""


class NetworkError(BillingError):
    """Timeout or connectivity failure talking to the backend."""


class AuthError(BillingError):
    """Session token expired or rejected."""


class BackendError(BillingError):
    """Unexpected status code or malformed payload from the backend."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class QuotaExceededError(BillingError):
    def __init__(
        self,
        message: str,
        *,
        limit_type: Literal["daily", "monthly"] = "daily",
        can_upgrade: bool = False,
    ) -> None:
        super().__init__(message)
        self.limit_type = limit_type
        self.can_upgrade = can_upgrade


__all__ = [
    "AuthError",
    "BackendError",
    "BillingError",
    "ConflictError",
    "NetworkError",
    "NotFoundError",
    "QuotaExceededError",
    "ServiceError",
    "StateError",
    "ValidationError",
]
