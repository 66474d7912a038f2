from __future__ import annotations
import calendar
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

_DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")

DEFAULT_TERM = timedelta(hours=24)

def normalize_date(value: str) -> str:
    """Clamp the day of a ``YYYY-MM-DD...`` string to the month's last day.

    "2021-02-30" -> "2021-02-28". Anything not starting with a date
    (or with a month outside 1..12) is returned as is.
    """
    m = _DATE_PREFIX_RE.match(value)
    if not m:
        return value
    year, month, day = (int(x) for x in m.groups())
    if not 1 <= month <= 12:
        return value
    last_day = calendar.monthrange(year, month)[1]
    if day <= last_day:
        return value
    return f"{m.group(1)}-{m.group(2)}-{last_day:02d}{value[m.end():]}"

def to_iso_z(dt: datetime) -> str:
    """UTC timestamp with millisecond precision and a ``Z`` suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"

def resolve_expire_at(expire_at: Optional[str], now: Optional[datetime] = None) -> str:
    if expire_at:
        return normalize_date(expire_at)
    base = now or datetime.now(timezone.utc)
    return to_iso_z(base + DEFAULT_TERM)
