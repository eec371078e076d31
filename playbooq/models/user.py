"""User models for authentication and creator profiles."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SessionUser(BaseModel):
    """
    The authenticated caller, read from the session token.

    `id` is the identity provider's opaque user id, not a UUID.
    """

    id: str
    email: str | None = None
    name: str | None = None
    avatar_url: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.email or "Anonymous"


class UserProfile(BaseModel):
    """Represents a row in the user_profiles table."""

    id: str
    display_name: str | None = None
    avatar_url: str | None = None
    short_id: str | None = None
    created_at: datetime | None = None
