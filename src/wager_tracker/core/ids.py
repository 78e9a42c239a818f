"""Canonical ID factories.

Internal IDs are UUID v4 strings, optionally prefixed with the record
type (``wager-``, ``tx-``, ``match-``) so stored blobs stay readable.

Timestamp Rule
--------------
All timestamps are timezone-aware ``datetime`` values, never naive.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def new_id(prefix: str = "") -> str:
    """Generate a new UUID v4 string, with ``prefix-`` when given."""
    raw = str(uuid.uuid4())
    return f"{prefix}-{raw}" if prefix else raw


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)
