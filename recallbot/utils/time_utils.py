"""Time formatting utilities."""

from datetime import datetime
from zoneinfo import ZoneInfo

_UNITS = [
    ("day", 86_400_000),
    ("hour", 3_600_000),
    ("minute", 60_000),
    ("second", 1_000),
]


def format_duration(duration_ms: int) -> str:
    """Format milliseconds into a human-readable duration.

    Examples:
        3000 -> "3 seconds"
        60000 -> "1 minute"
        5400000 -> "1.5 hours"
        18000000 -> "5 hours"
    """
    if duration_ms < 1000:
        return f"{duration_ms} ms"

    for name, unit_ms in _UNITS:
        if duration_ms >= unit_ms:
            value = duration_ms / unit_ms
            if value == int(value):
                value = int(value)
                return f"{value} {name}{'s' if value != 1 else ''}"
            return f"{value:.1f} {name}s"

    return f"{duration_ms} ms"  # pragma: no cover


def format_age(dt: datetime, now: datetime | None = None) -> str:
    """Format how long ago a datetime was.

    Examples:
        "just now"
        "5 minutes ago"
        "2 days ago"
    """
    if now is None:
        now = datetime.now(ZoneInfo("UTC"))

    seconds = (now - dt).total_seconds()

    if seconds < 60:
        return "just now"
    elif seconds < 3600:
        minutes = int(seconds / 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    elif seconds < 86400:
        hours = int(seconds / 3600)
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    else:
        days = int(seconds / 86400)
        return f"{days} day{'s' if days != 1 else ''} ago"
