"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime. Use this for every stored timestamp."""
    return datetime.now(timezone.utc)


def epoch_millis() -> int:
    """Milliseconds since the Unix epoch, used as the time part of references."""
    return int(utc_now().timestamp() * 1000)


def parse_gateway_datetime(value) -> datetime | None:
    """Parse an ISO-8601 timestamp from a gateway payload; ``None`` if unusable."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
