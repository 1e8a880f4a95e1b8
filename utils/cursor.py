"""
Savor AI Cursor Pagination Utilities
Encodes and decodes opaque keyset cursors of the form base64("<created_at>:<id>")
"""

import base64
import binascii
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from core.exceptions import InvalidCursorError


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\Z", re.IGNORECASE
)


@dataclass(frozen=True)
class Cursor:
    created_at: str  # RFC3339 timestamp, exactly as encoded
    id: str  # UUID text, exactly as encoded

    @property
    def created_at_datetime(self) -> datetime:
        """Timezone-aware UTC datetime for the keyset predicate"""
        return parse_timestamp(self.created_at).astimezone(timezone.utc)

    @property
    def uuid(self) -> uuid.UUID:
        return uuid.UUID(self.id)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as RFC3339 in UTC; naive datetimes are taken as UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 / RFC3339 timestamp; raises ValueError when unparseable"""
    text = value
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def encode_cursor(created_at, item_id) -> str:
    """
    Encode a (created_at, id) pair as an opaque base64 token.
    Datetimes and UUIDs are rendered to text first; strings are used verbatim.
    """
    if isinstance(created_at, datetime):
        created_at = format_timestamp(created_at)
    raw = f"{created_at}:{item_id}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_cursor(token: str) -> Cursor:
    """Decode a cursor token, validating both halves"""
    value = token or ""
    if not value:
        raise InvalidCursorError("Invalid cursor: empty value")

    try:
        decoded = base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidCursorError("Invalid cursor: malformed Base64 encoding") from e

    # RFC3339 timestamps contain colons; the id is everything after the last one
    created_at, sep, item_id = decoded.rpartition(":")
    if not sep or not created_at or not item_id:
        raise InvalidCursorError("Invalid cursor format: expected 'created_at:id'")

    if not UUID_PATTERN.fullmatch(item_id):
        raise InvalidCursorError("Invalid cursor: id is not a valid UUID")
    try:
        uuid.UUID(item_id)
    except ValueError as e:
        raise InvalidCursorError("Invalid cursor: id is not a valid UUID") from e

    if created_at != created_at.strip():
        raise InvalidCursorError("Invalid cursor: created_at is not a valid ISO 8601 date")
    try:
        parse_timestamp(created_at)
    except ValueError as e:
        raise InvalidCursorError("Invalid cursor: created_at is not a valid ISO 8601 date") from e

    return Cursor(created_at=created_at, id=item_id)


def is_valid_cursor(token: str) -> bool:
    """Validate a cursor string without raising"""
    try:
        decode_cursor(token)
        return True
    except InvalidCursorError:
        return False
