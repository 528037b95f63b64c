"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def from_epoch_ms(value: Optional[int]) -> Optional[datetime]:
    """Convert a millisecond Unix timestamp (as Clerk sends them) to UTC."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
