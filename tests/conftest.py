from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from threading import Lock
from typing import Optional

import pytest

from src.attendance_payroll.attendance_payroll.attendance.model import DayRecord
from src.attendance_payroll.attendance_payroll.container import build_services
from src.attendance_payroll.attendance_payroll.core.exceptions import DependencyError, StaleRecordError


class FixedClock:
    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now


class InMemoryDayRecords:
    """Mimics the MySQL repository: version check, unique (user, date), one open session."""

    def __init__(self):
        self._by_id: dict[int, DayRecord] = {}
        self._next_id = 0
        self._lock = Lock()
        self.saves = 0

    def get_by_id(self, record_id: int) -> Optional[DayRecord]:
        return self._by_id.get(int(record_id))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[DayRecord]:
        for r in self._by_id.values():
            if r.user_id == user_id and r.work_date == work_date:
                return r
        return None

    def list_for_user(self, user_id, *, start_date=None, end_date=None, limit=30, offset=0):
        items = [
            r
            for r in self._by_id.values()
            if r.user_id == user_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[offset : offset + limit]

    def list_with_open_sessions(self):
        return [r for r in self._by_id.values() if any(s.is_active for s in r.sessions)]

    def save(self, record: DayRecord) -> DayRecord:
        with self._lock:
            if sum(1 for s in record.sessions if s.is_active) > 1:
                raise StaleRecordError("more than one open session")
            if record.record_id is None:
                if self.get_for_user_and_date(record.user_id, record.work_date):
                    raise StaleRecordError("duplicate day record")
                self._next_id += 1
                saved = replace(record, record_id=self._next_id, version=1)
            else:
                stored = self._by_id.get(record.record_id)
                if not stored or stored.version != record.version:
                    raise StaleRecordError("stale day record")
                saved = replace(record, version=record.version + 1)
            self._by_id[saved.record_id] = saved
            self.saves += 1
            return saved

    def delete(self, record_id: int) -> bool:
        with self._lock:
            return self._by_id.pop(int(record_id), None) is not None


class InMemoryRates:
    def __init__(self, rates: Optional[dict] = None):
        self.rates = dict(rates or {})
        self.available = True

    def get_hourly_rate(self, user_id: int) -> float:
        if not self.available:
            raise DependencyError("rate service unavailable")
        return float(self.rates.get(user_id, 0.0))


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 5))


@pytest.fixture
def records():
    return InMemoryDayRecords()


@pytest.fixture
def rates():
    return InMemoryRates({1: 20.0, 2: 15.0})


@pytest.fixture
def container(records, rates, clock):
    return build_services(attendance_repo=records, rate_provider=rates, clock=clock)


@pytest.fixture
def ledger(container):
    return container.attendance_service


@pytest.fixture
def overrides(container):
    return container.override_service


class FlakyDayRecords(InMemoryDayRecords):
    """Fails the first ``failures`` saves as if another process had won the race."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    def save(self, record: DayRecord) -> DayRecord:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise StaleRecordError("lost the race")
        return super().save(record)


@pytest.fixture
def flaky_records():
    return FlakyDayRecords
