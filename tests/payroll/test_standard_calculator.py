from datetime import datetime, time

import pytest

from src.attendance_payroll.attendance_payroll.core.enums import AttendanceStatus
from src.attendance_payroll.attendance_payroll.core.exceptions import ValidationError
from src.attendance_payroll.attendance_payroll.payroll.calculator.standard_calculator import (
    StandardPayrollCalculator,
    round_half_up,
)


@pytest.fixture
def calc():
    return StandardPayrollCalculator()


def test_hours_between_same_day(calc):
    assert calc.hours_between("09:00", "17:00") == 8.0


def test_hours_between_rolls_over_midnight(calc):
    assert calc.hours_between("22:00", "02:00") == 4.0


@pytest.mark.parametrize(
    "start,end,expected",
    [
        ("09:00", "09:20", 0.3333),
        ("09:00", "09:50", 0.8333),
        ("09:00", "09:00", 0.0),
        (time(9, 0), time(10, 30), 1.5),
        (datetime(2026, 3, 2, 23, 30), datetime(2026, 3, 3, 0, 15), 0.75),
        ("09:00:00", "09:00:36", 0.01),
    ],
)
def test_hours_between_values(calc, start, end, expected):
    assert calc.hours_between(start, end) == expected


def test_hours_between_missing_input_is_zero(calc):
    assert calc.hours_between(None, "10:00") == 0.0
    assert calc.hours_between("10:00", None) == 0.0
    assert calc.hours_between("", "10:00") == 0.0


def test_hours_between_rejects_malformed_time(calc):
    with pytest.raises(ValidationError):
        calc.hours_between("25:00", "10:00")


def test_salary_only_for_paid_status(calc):
    assert calc.salary_for(8, 15, "present") == 120
    assert calc.salary_for(8, 15, AttendanceStatus.LATE) == 120
    assert calc.salary_for(8, 15, "absent") == 0
    assert calc.salary_for(8, 15, "leave") == 0
    assert calc.salary_for(8, 15, "unknown") == 0


def test_salary_rounds_to_four_places(calc):
    assert calc.salary_for(0.3333, 20, "present") == 6.666
    assert calc.salary_for(1 / 3, 10, "present") == 3.3333


def test_lateness_after_threshold(calc):
    assert calc.lateness_for("09:15", "present") == (True, 15)


def test_lateness_before_or_at_threshold(calc):
    assert calc.lateness_for("08:59", "present") == (False, 0)
    assert calc.lateness_for("09:00", "present") == (False, 0)
    assert calc.lateness_for("09:00:59", "present") == (False, 0)


def test_lateness_only_for_present(calc):
    assert calc.lateness_for("10:30", "late") == (False, 0)
    assert calc.lateness_for("10:30", "absent") == (False, 0)
    assert calc.lateness_for(None, "present") == (False, 0)


def test_lateness_threshold_is_configurable():
    calc = StandardPayrollCalculator(late_threshold_minutes=8 * 60)
    assert calc.lateness_for("08:10", "present") == (True, 10)


def test_round_half_up_is_not_bankers_rounding():
    assert round_half_up(0.00005) == 0.0001
    assert round_half_up(2.5, 0) == 3.0
