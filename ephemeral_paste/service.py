"""
Paste service.
Validates untrusted input and translates between API requests and stored records.
"""
import math
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Optional

from ephemeral_paste.clock import MAX_TIMESTAMP_MS
from ephemeral_paste.database import PasteStore
from ephemeral_paste.errors import ValidationError
from ephemeral_paste.models import PasteCreate, PasteRecord, PasteView

PASTE_ID_ALPHABET = string.ascii_letters + string.digits + "_-"
PASTE_ID_LENGTH = 10

# Counts stay exact as Lua doubles and fit a signed 64-bit SQLite integer
MAX_VIEWS = 2**53 - 1
# 100 years
MAX_TTL_SECONDS = 100 * 365 * 24 * 60 * 60


def generate_paste_id(length: int = PASTE_ID_LENGTH) -> str:
    """Random URL-safe identifier."""
    return "".join(secrets.choice(PASTE_ID_ALPHABET) for _ in range(length))


def _positive_int_or_none(value: Any, field_name: str, maximum: int) -> Optional[int]:
    if value is None:
        return None
    # bool is an int subclass, but true/false is never a count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field_name} must be a number")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError(f"{field_name} must be a number")
        if not value.is_integer():
            raise ValidationError(f"{field_name} must be an integer")
        value = int(value)
    if value < 1:
        raise ValidationError(f"{field_name} must be >= 1")
    if value > maximum:
        raise ValidationError(f"{field_name} must be <= {maximum}")
    return value


def validate_create_input(raw: Any) -> PasteCreate:
    """
    Validate a create request body.

    Args:
        raw: Decoded JSON body (untrusted)

    Returns:
        Normalized input. The content is kept exactly as sent.

    Raises:
        ValidationError: If any field is invalid
    """
    if not isinstance(raw, dict):
        raise ValidationError("Body must be a JSON object")

    content = raw.get("content")
    if not isinstance(content, str):
        raise ValidationError("content must be a string")
    if not content.strip():
        raise ValidationError("content must be non-empty")

    return PasteCreate(
        content=content,
        ttl_seconds=_positive_int_or_none(raw.get("ttl_seconds", MAX_TTL_SECONDS), "ttl_seconds", MAX_TTL_SECONDS),
        max_views=_positive_int_or_none(raw.get("max_views", MAX_VIEWS), "max_views", MAX_VIEWS),
    )


def create_paste(store: PasteStore, validated: PasteCreate, now_ms: int) -> str:
    """
    Store a new paste and return its id.

    Raises:
        ValidationError: If the expiry falls past the representable range
        StorageError: If the store write fails
    """
    expires_at_ms = None
    if validated.ttl_seconds is not None:
        expires_at_ms = now_ms + validated.ttl_seconds * 1000
        if expires_at_ms > MAX_TIMESTAMP_MS:
            raise ValidationError("ttl_seconds is too large")

    record = PasteRecord(
        id=generate_paste_id(),
        content=validated.content,
        created_at_ms=now_ms,
        expires_at_ms=expires_at_ms,
        remaining_views=validated.max_views,
    )
    store.create(record)
    return record.id


def ms_to_iso(epoch_ms: int) -> str:
    """Epoch milliseconds as ISO 8601 UTC, e.g. 2023-11-14T22:13:20.000Z."""
    seconds, millis = divmod(epoch_ms, 1000)
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{millis:03d}Z"


def consume_paste(store: PasteStore, paste_id: Any, now_ms: int) -> Optional[PasteView]:
    """
    Consume one view of a paste.

    Returns:
        The paste as shown to the reader, or None if it is unavailable
    """
    if not isinstance(paste_id, str) or not paste_id:
        return None

    record = store.consume_by_id(paste_id, now_ms)
    if record is None:
        return None

    return PasteView(
        content=record.content,
        remaining_views=record.remaining_views,
        expires_at=None if record.expires_at_ms is None else ms_to_iso(record.expires_at_ms),
    )
