"""Custom exceptions for the ArtisanHub API.

Each exception carries the HTTP status code it should be reported with,
so services can raise domain errors without importing FastAPI.
"""

from __future__ import annotations

from typing import Any


class ArtisanHubError(Exception):
    """Base exception for ArtisanHub errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}


class ValidationError(ArtisanHubError):
    """Raised when request arguments are malformed."""

    status_code = 400


class ConflictError(ArtisanHubError):
    """Raised when an action conflicts with current state (e.g. double follow)."""

    status_code = 400


class UnauthorizedError(ArtisanHubError):
    """Raised when the requester cannot be identified."""

    status_code = 401


class ForbiddenError(ArtisanHubError):
    """Raised when the requester may not act on a resource."""

    status_code = 403


class NotFoundError(ArtisanHubError):
    """Raised when a referenced record does not exist."""

    status_code = 404

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            f"{resource} not found",
            details={"resource": resource, "id": resource_id},
        )
        self.resource = resource
        self.resource_id = resource_id
