from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol, Union

from ..core.exceptions import ValidationError

TimeLike = Union[time, datetime, str]

_HHMM_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])(?::([0-5][0-9]))?$")


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Local wall clock."""

    def now(self) -> datetime:
        return now_local()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc


def parse_time_of_day(value: TimeLike) -> time:
    """Accept ``datetime.time``, ``datetime`` or an ``HH:MM[:SS]`` string."""
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        m = _HHMM_RE.match(value.strip())
        if m:
            return time(int(m.group(1)), int(m.group(2)), int(m.group(3) or 0))
    raise ValidationError(f"Invalid time {value!r}, expected HH:MM")


def minutes_since_midnight(value: TimeLike, *, with_seconds: bool = True) -> float:
    t = parse_time_of_day(value)
    minutes = t.hour * 60 + t.minute
    if with_seconds and t.second:
        return minutes + t.second / 60
    return minutes


def format_time_of_day(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%H:%M") if value else None


def combine_on_day(work_date: date, value: TimeLike, *, not_before: Optional[datetime] = None) -> datetime:
    """Place a time-of-day on ``work_date``; roll to the next day if it falls before ``not_before``."""
    at = datetime.combine(work_date, parse_time_of_day(value))
    if not_before is not None and at < not_before:
        at += timedelta(days=1)
    return at
