from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from ...common.datetime_utils import TimeLike, minutes_since_midnight
from ...core.constants import HOURS_PRECISION, LATE_THRESHOLD_MINUTES, MINUTES_PER_DAY
from ...core.enums import AttendanceStatus
from .base import PayrollCalculator


def round_half_up(value: float, places: int = HOURS_PRECISION) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _as_status(status: AttendanceStatus | str) -> Optional[AttendanceStatus]:
    try:
        return AttendanceStatus(status)
    except ValueError:
        return None


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: hourly pay on time-of-day spans, late after a fixed start.

    All methods are pure; the same inputs always give the same outputs.
    """

    def __init__(self, *, late_threshold_minutes: int = LATE_THRESHOLD_MINUTES):
        self._threshold = int(late_threshold_minutes)

    def hours_between(self, start: Optional[TimeLike], end: Optional[TimeLike]) -> float:
        if start is None or end is None or start == "" or end == "":
            return 0.0
        minutes = minutes_since_midnight(end) - minutes_since_midnight(start)
        if minutes < 0:
            minutes += MINUTES_PER_DAY
        return round_half_up(minutes / 60)

    def salary_for(self, hours: float, rate: float, status: AttendanceStatus | str) -> float:
        st = _as_status(status)
        if st is None or not st.is_paid:
            return 0.0
        return round_half_up(float(hours) * float(rate))

    def lateness_for(self, check_in: Optional[TimeLike], status: AttendanceStatus | str) -> Tuple[bool, int]:
        if _as_status(status) is not AttendanceStatus.PRESENT or check_in is None or check_in == "":
            return False, 0
        minutes = int(minutes_since_midnight(check_in, with_seconds=False))
        if minutes > self._threshold:
            return True, minutes - self._threshold
        return False, 0
