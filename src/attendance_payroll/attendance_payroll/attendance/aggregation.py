"""Day record aggregation.

Everything here is a pure function of a record, the hourly rate snapshot and
the current time, so the same inputs always produce the same record.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import format_time_of_day
from ..core.constants import OVERNIGHT_WINDOW_HOURS
from ..core.enums import AttendanceStatus
from ..payroll.calculator.base import PayrollCalculator
from ..payroll.calculator.standard_calculator import round_half_up
from .model import DayRecord, WorkSession


def open_session(at: datetime) -> WorkSession:
    return WorkSession(check_in_at=at)


def carries_over(session: WorkSession, at: datetime) -> bool:
    """Whether a session opened on the previous day is still a genuine overnight session at ``at``."""
    return timedelta(0) <= at - session.check_in_at < timedelta(hours=OVERNIGHT_WINDOW_HOURS)


def close_session(
    session: WorkSession,
    at: datetime,
    calculator: PayrollCalculator,
    *,
    forced_by: Optional[str] = None,
) -> WorkSession:
    """Close ``session`` at ``at``. Used by both the normal and the forced stop."""

    closed = replace(
        session,
        check_out_at=at,
        is_active=False,
        ended_at=at,
        hours_worked=calculator.hours_between(session.check_in_at, at),
    )
    if forced_by is not None:
        closed = replace(closed, force_stopped=True, force_stopped_by=forced_by, force_stopped_at=at)
    return closed


def recompute(record: DayRecord, *, rate: float, now: datetime, calculator: PayrollCalculator) -> DayRecord:
    rate = float(rate or 0)
    if rate <= 0:
        rate = 0.0
    paid = record.status.is_paid

    sessions = []
    for s in record.sessions:
        active = s.check_out_at is None
        if not paid:
            hours = 0.0
        elif active:
            # Provisional figure, replaced when the session is closed.
            hours = calculator.hours_between(s.check_in_at, now)
        else:
            hours = calculator.hours_between(s.check_in_at, s.check_out_at)
        salary = calculator.salary_for(hours, rate, record.status) if rate > 0 else 0.0
        sessions.append(replace(s, is_active=active, hours_worked=hours, session_salary=salary))

    out = replace(
        record,
        sessions=tuple(sessions),
        hourly_rate=rate,
        total_hours=round_half_up(sum(s.hours_worked for s in sessions)),
        daily_salary=round_half_up(sum(s.session_salary for s in sessions)),
        is_active=any(s.is_active for s in sessions),
    )

    if sessions:
        out = replace(
            out,
            check_in_time=format_time_of_day(sessions[0].check_in_at),
            check_out_time=format_time_of_day(sessions[-1].check_out_at),
        )

    if record.status is AttendanceStatus.PRESENT and sessions:
        is_late, late_minutes = calculator.lateness_for(sessions[0].check_in_at, record.status)
        out = replace(out, is_late=is_late, late_minutes=late_minutes)
    return out
