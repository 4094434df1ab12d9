"""Timezone helpers: current time in the configured timezone."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from zoneinfo import ZoneInfo

from filestore.core.config import get_settings


def get_timezone() -> ZoneInfo:
    return get_settings().timezone_info


def now() -> datetime:
    return datetime.now(get_timezone())


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """Convert ``value`` to the configured timezone; naive values are assumed to already be local."""
    if value is None:
        return None
    tz = get_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)
