"""Shared helpers — content hashing, UTC timestamps and date formatting."""

from __future__ import annotations

import hashlib
from datetime import date, datetime, timezone


def sha256_bytes(data: bytes) -> str:
    """Return the hex SHA-256 digest of *data*."""
    return hashlib.sha256(data).hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def format_slashed_date(value: date) -> str:
    """Format *value* as zero-padded ``YYYY/MM/DD``."""
    return f"{value.year:04d}/{value.month:02d}/{value.day:02d}"
