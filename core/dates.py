from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60


def normalize_date(raw: object) -> Optional[date]:
    """Parse a DD.MM.YYYY string into a date; anything else -> None."""
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    parts = s.split(".")
    if len(parts) != 3:
        return None
    day, month, year = (p.strip() for p in parts)
    if not (day.isdigit() and month.isdigit() and year.isdigit()):
        return None
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def day_offset(epoch: date, d: date) -> int:
    # Fixed day length; dates carry no time zone so DST never applies.
    seconds = (datetime.combine(d, datetime.min.time()) - datetime.combine(epoch, datetime.min.time())).total_seconds()
    return math.floor(seconds / SECONDS_PER_DAY)


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=int(n))


def week_start(d: date) -> date:
    """Monday of the ISO week containing `d`."""
    return d - timedelta(days=d.weekday())


def format_canonical(d: date) -> str:
    return d.isoformat()


def format_source(d: date) -> str:
    return d.strftime("%d.%m.%Y")


def format_month(d: date) -> str:
    return d.strftime("%Y-%m")
