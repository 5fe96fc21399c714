"""Storage key generation for uploaded reports."""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

KEY_PREFIX = "reports"
# Second precision, no colons so keys stay URL and filesystem safe
TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def generate_key(filename: Optional[str], now: Optional[datetime] = None) -> str:
    """Mint a new storage key for an upload.

    Every call produces a new identity: ``reports/{timestamp}-{short_uuid}-{filename}``,
    where ``short_uuid`` is the first 8 hex characters of a random UUID4.
    Files without a name are stored as ``report-{timestamp}``.

    Args:
        filename: Original file name, if the upload carried one
        now: Moment to stamp the key with, defaults to the current UTC time

    Returns:
        Storage key
    """
    timestamp = format_timestamp(now)
    short_uuid = str(uuid4())[:8]
    name = filename or f"report-{timestamp}"
    return f"{KEY_PREFIX}/{timestamp}-{short_uuid}-{name}"
