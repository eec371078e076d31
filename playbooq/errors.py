"""
Error taxonomy for Playbooq.

Every failure that crosses a layer boundary is one of these variants.
Routes render them as {"error": message} with the variant's status code.
"""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal["validation", "auth", "forbidden", "not_found", "limit", "downstream"]


class AppError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = "downstream"
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(AppError):
    """Missing or invalid input."""

    kind = "validation"
    status_code = 400


class AuthError(AppError):
    """Absent or invalid session."""

    kind = "auth"
    status_code = 401


class ForbiddenError(AppError):
    """Authenticated, but not allowed to touch this resource."""

    kind = "forbidden"
    status_code = 403


class NotFoundError(AppError):
    """The remote query returned no row."""

    kind = "not_found"
    status_code = 404


class LimitExceededError(AppError):
    """A capped collection is full."""

    kind = "limit"
    status_code = 409


class DownstreamError(AppError):
    """The database or email provider failed."""

    kind = "downstream"
    status_code = 500
