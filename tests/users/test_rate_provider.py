from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pytest

from src.attendance_payroll.attendance_payroll.core.exceptions import DependencyError, NotFoundError
from src.attendance_payroll.attendance_payroll.users.model import Employee
from src.attendance_payroll.attendance_payroll.users.rate_provider import UserRateProvider


@dataclass
class InMemoryUsers:
    users: dict[int, Employee]
    down: bool = False

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        if self.down:
            raise DependencyError("database unavailable")
        return self.users.get(user_id)


@pytest.fixture
def users():
    return InMemoryUsers(
        {
            2: Employee(user_id=2, full_name="Staff Demo", hourly_rate=20.0),
            4: Employee(user_id=4, full_name="Volunteer", hourly_rate=-3.0),
            5: Employee(user_id=5, full_name="No Rate", hourly_rate=None),
        }
    )


def test_rate_is_read_from_the_account(users):
    assert UserRateProvider(users).get_hourly_rate(2) == 20.0


def test_missing_or_negative_rate_is_zero(users):
    provider = UserRateProvider(users)
    assert provider.get_hourly_rate(4) == 0.0
    assert provider.get_hourly_rate(5) == 0.0


def test_unknown_user(users):
    with pytest.raises(NotFoundError):
        UserRateProvider(users).get_hourly_rate(99)


def test_storage_failure_propagates(users):
    users.down = True
    with pytest.raises(DependencyError):
        UserRateProvider(users).get_hourly_rate(2)
