from datetime import datetime, timedelta, timezone
from typing import Optional

INTERVAL_UNITS = ("minutes", "hours", "days")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite drops tzinfo) as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def add_interval(start: datetime, value: int, unit: str) -> Optional[datetime]:
    """Return start + value unit, or None for an unknown unit."""
    if unit not in INTERVAL_UNITS:
        return None
    return ensure_utc(start) + timedelta(**{unit: int(value)})


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return ensure_utc(dt)
