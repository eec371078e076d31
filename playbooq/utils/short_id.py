"""
Short ids for shareable URLs.

A short id is the UUID's 128-bit value written in flickrBase58, padded to
22 characters, so existing links keep resolving to the same rows.
"""

from __future__ import annotations

import re
from uuid import UUID, uuid4

from shortuuid.main import int_to_string, string_to_int

from playbooq.errors import ValidationError

FLICKR_BASE58 = list("123456789abcdefghijkmnopqrstuvwxyzABCDEFGHJKLMNPQRSTUVWXYZ")
SHORT_ID_LENGTH = 22

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)


def to_short_id(uuid: str | UUID) -> str:
    """Encode a UUID as a short id."""
    value = uuid if isinstance(uuid, UUID) else UUID(uuid)
    return int_to_string(value.int, FLICKR_BASE58, padding=SHORT_ID_LENGTH)


def from_short_id(short_id: str) -> str:
    """Decode a short id back to its canonical UUID string."""
    return str(UUID(int=string_to_int(short_id, FLICKR_BASE58)))


def generate_short_id() -> str:
    return to_short_id(uuid4())


def is_valid_short_id(value: str) -> bool:
    if not isinstance(value, str) or len(value) != SHORT_ID_LENGTH:
        return False
    try:
        return string_to_int(value, FLICKR_BASE58) < 2**128
    except ValueError:
        return False


def is_valid_uuid(value: str) -> bool:
    return isinstance(value, str) and bool(_UUID_RE.match(value))


def ensure_short_id(value: str) -> str:
    """Accept a short id or a UUID and return the short form."""
    if is_valid_short_id(value):
        return value
    if is_valid_uuid(value):
        return to_short_id(value)
    raise ValidationError(f"Invalid ID format: {value}")


def ensure_uuid(value: str | UUID) -> str:
    """Accept a short id or a UUID and return the canonical UUID string."""
    if isinstance(value, UUID):
        return str(value)
    if is_valid_uuid(value):
        return value.lower()
    if is_valid_short_id(value):
        return from_short_id(value)
    raise ValidationError(f"Invalid ID format: {value}")
