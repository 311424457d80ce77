"""Utility functions for time operations."""

import time
from datetime import datetime, timezone


def now_epoch_millis() -> int:
    """Get the current time as milliseconds since the Unix epoch."""
    return time.time_ns() // 1_000_000


def epoch_millis_to_iso(epoch_millis: int) -> str:
    """Convert epoch milliseconds to an ISO 8601 UTC string."""
    dt = datetime.fromtimestamp(epoch_millis / 1000, timezone.utc)
    return dt.isoformat(timespec="seconds")


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
