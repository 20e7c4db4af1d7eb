# mediagate/utils/time_utils.py
"""
Time utilities. All stored timestamps are timezone-aware UTC.
"""

import time
from datetime import datetime, timezone
from pathlib import Path

UTC_TIMEZONE = timezone.utc


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC_TIMEZONE)


def file_age_seconds(path: Path, now: float = None) -> float:
    """
    Seconds since ``path`` was last modified.

    Raises:
        OSError: If the file cannot be stat'ed (e.g. removed concurrently)
    """
    if now is None:
        now = time.time()
    return now - path.stat().st_mtime
