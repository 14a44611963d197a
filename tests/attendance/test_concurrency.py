from datetime import date, datetime
from threading import Barrier, Event, Thread

import pytest

from src.attendance_payroll.attendance_payroll.attendance.locks import KeyedLock
from src.attendance_payroll.attendance_payroll.container import build_services
from src.attendance_payroll.attendance_payroll.core.exceptions import ConflictError


def _run_concurrently(n, target):
    barrier = Barrier(n)
    errors = []

    def worker():
        barrier.wait()
        try:
            target()
        except Exception as exc:  # collected for the assertion below
            errors.append(exc)

    threads = [Thread(target=worker) for _ in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return errors


def test_concurrent_starts_open_a_single_session(ledger, records):
    errors = _run_concurrently(8, lambda: ledger.start_session(1))

    assert errors == []
    record = records.get_for_user_and_date(1, date(2026, 3, 2))
    assert len(record.sessions) == 1
    assert record.is_active is True
    assert records.saves == 1


def test_concurrent_stops_close_the_session_once(ledger, records, clock):
    ledger.start_session(1)
    clock.set(datetime(2026, 3, 2, 12, 5))

    errors = _run_concurrently(2, lambda: ledger.stop_session(1))
    assert errors == []

    record = records.get_for_user_and_date(1, date(2026, 3, 2))
    assert len(record.sessions) == 1
    assert record.total_hours == 3.0
    assert records.saves == 2


def test_stale_save_is_retried(flaky_records, rates, clock):
    records = flaky_records(2)
    services = build_services(attendance_repo=records, rate_provider=rates, clock=clock, save_retries=3)

    result = services.attendance_service.start_session(1)

    assert result.changed is True
    assert records.attempts == 3
    assert records.saves == 1


def test_retries_give_up_with_conflict(flaky_records, rates, clock):
    records = flaky_records(5)
    services = build_services(attendance_repo=records, rate_provider=rates, clock=clock, save_retries=3)

    with pytest.raises(ConflictError):
        services.attendance_service.start_session(1)

    assert records.attempts == 3
    assert records.saves == 0


def test_keyed_lock_does_not_block_other_keys():
    locks = KeyedLock()
    inside = Event()
    release = Event()
    other_done = Event()

    def hold_a():
        with locks.hold("a"):
            inside.set()
            release.wait(5)

    holder = Thread(target=hold_a)
    holder.start()
    assert inside.wait(5)

    def take_b():
        with locks.hold("b"):
            other_done.set()

    t = Thread(target=take_b)
    t.start()
    assert other_done.wait(5)
    t.join(5)

    release.set()
    holder.join(5)
    assert len(locks) == 0


def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    counter = {"value": 0, "max_inside": 0, "inside": 0}

    def work():
        with locks.hold(("user", 1)):
            counter["inside"] += 1
            counter["max_inside"] = max(counter["max_inside"], counter["inside"])
            counter["value"] += 1
            counter["inside"] -= 1

    errors = _run_concurrently(10, work)

    assert errors == []
    assert counter["value"] == 10
    assert counter["max_inside"] == 1
    assert len(locks) == 0
