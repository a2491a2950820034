"""
Utility functions
"""
from datetime import datetime, timezone


def utc_now_iso() -> str:
    """
    Current UTC time as an ISO-8601 string with millisecond precision

    Example:
        >>> utc_now_iso()
        '2025-03-01T09:30:12.345Z'
    """
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
