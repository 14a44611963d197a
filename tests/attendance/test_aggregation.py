from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from src.attendance_payroll.attendance_payroll.attendance.aggregation import close_session, open_session, recompute
from src.attendance_payroll.attendance_payroll.attendance.model import DayRecord, WorkSession
from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus
from src.attendance_payroll.attendance_payroll.payroll.calculator.standard_calculator import StandardPayrollCalculator

DAY = date(2026, 3, 2)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 3, 2, hour, minute)


def closed(start: datetime, end: datetime) -> WorkSession:
    return WorkSession(check_in_at=start, check_out_at=end, is_active=False)


@pytest.fixture
def calc():
    return StandardPayrollCalculator()


def two_session_day(status=AttendanceStatus.PRESENT) -> DayRecord:
    return DayRecord(
        user_id=1,
        work_date=DAY,
        status=status,
        sessions=(closed(at(9, 5), at(12, 5)), closed(at(13), at(17, 30))),
    )


def test_totals_are_sums_of_sessions(calc):
    out = recompute(two_session_day(), rate=20, now=at(18), calculator=calc)

    assert [s.hours_worked for s in out.sessions] == [3.0, 4.5]
    assert [s.session_salary for s in out.sessions] == [60.0, 90.0]
    assert out.total_hours == 7.5
    assert out.daily_salary == 150.0
    assert out.hourly_rate == 20.0
    assert out.check_in_time == "09:05"
    assert out.check_out_time == "17:30"
    assert out.is_active is False
    assert (out.is_late, out.late_minutes) == (True, 5)


def test_recompute_is_idempotent(calc):
    once = recompute(two_session_day(), rate=20, now=at(18), calculator=calc)
    twice = recompute(once, rate=20, now=at(18), calculator=calc)
    assert twice == once


@pytest.mark.parametrize(
    "spans",
    [
        [("08:00", "08:20"), ("08:40", "09:10"), ("13:07", "17:59")],
        [("09:01", "09:02")] * 1 + [("10:00", "10:07"), ("11:11", "12:13")],
        [("22:15", "23:59")],
    ],
)
def test_total_matches_session_sum_for_odd_minutes(calc, spans):
    sessions = []
    for start, end in spans:
        h1, m1 = map(int, start.split(":"))
        h2, m2 = map(int, end.split(":"))
        sessions.append(closed(at(h1, m1), at(h2, m2)))
    record = DayRecord(user_id=1, work_date=DAY, sessions=tuple(sessions))

    out = recompute(record, rate=17.5, now=at(23, 59), calculator=calc)

    assert out.total_hours == round(sum(s.hours_worked for s in out.sessions), 4)
    assert out.daily_salary == round(sum(s.session_salary for s in out.sessions), 4)
    assert recompute(out, rate=17.5, now=at(23, 59), calculator=calc) == out


def test_open_session_gets_provisional_hours(calc):
    record = DayRecord(
        user_id=1,
        work_date=DAY,
        sessions=(closed(at(9), at(12)), open_session(at(13))),
    )

    out = recompute(record, rate=10, now=at(15, 30), calculator=calc)

    assert out.sessions[1].is_active is True
    assert out.sessions[1].hours_worked == 2.5
    assert out.total_hours == 5.5
    assert out.is_active is True
    assert out.check_out_time is None


def test_zero_rate_zeroes_money_but_keeps_hours(calc):
    out = recompute(two_session_day(), rate=0, now=at(18), calculator=calc)

    assert out.hourly_rate == 0.0
    assert out.daily_salary == 0.0
    assert all(s.session_salary == 0.0 for s in out.sessions)
    assert out.total_hours == 7.5


def test_negative_rate_is_treated_as_unset(calc):
    out = recompute(two_session_day(), rate=-5, now=at(18), calculator=calc)
    assert out.hourly_rate == 0.0
    assert out.daily_salary == 0.0


@pytest.mark.parametrize("status", [AttendanceStatus.ABSENT, AttendanceStatus.LEAVE])
def test_unpaid_status_has_zero_totals(calc, status):
    out = recompute(two_session_day(status), rate=20, now=at(18), calculator=calc)

    assert out.total_hours == 0.0
    assert out.daily_salary == 0.0
    assert all(s.hours_worked == 0.0 for s in out.sessions)
    assert (out.is_late, out.late_minutes) == (False, 0)


def test_late_status_keeps_stored_lateness(calc):
    record = replace(two_session_day(AttendanceStatus.LATE), is_late=True, late_minutes=30)

    out = recompute(record, rate=20, now=at(18), calculator=calc)

    assert out.daily_salary == 150.0
    assert (out.is_late, out.late_minutes) == (True, 30)


def test_lateness_comes_from_first_session_only(calc):
    record = DayRecord(
        user_id=1,
        work_date=DAY,
        sessions=(closed(at(8, 55), at(9, 30)), closed(at(10), at(12))),
    )
    out = recompute(record, rate=20, now=at(12), calculator=calc)
    assert (out.is_late, out.late_minutes) == (False, 0)


def test_close_session_stamps_provenance_only_when_forced(calc):
    session = open_session(at(9))

    normal = close_session(session, at(17), calc)
    forced = close_session(session, at(17), calc, forced_by="boss")

    assert normal.hours_worked == forced.hours_worked == 8.0
    assert normal.is_active is False and normal.check_out_at == at(17)
    assert normal.force_stopped is False
    assert (forced.force_stopped, forced.force_stopped_by, forced.force_stopped_at) == (True, "boss", at(17))
