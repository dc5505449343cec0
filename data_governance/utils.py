"""Small helpers shared across the toolkit."""

import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Timestamps are stored without tzinfo so values read back from SQLite
    compare cleanly with freshly generated ones.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    """Generate a document identifier."""
    return uuid.uuid4().hex
