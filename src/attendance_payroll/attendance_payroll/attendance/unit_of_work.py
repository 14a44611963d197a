from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, TypeVar

from ..common.datetime_utils import Clock, SystemClock
from ..core.constants import DEFAULT_SAVE_RETRIES
from ..core.exceptions import StaleRecordError
from ..payroll.calculator.base import PayrollCalculator
from ..payroll.calculator.standard_calculator import StandardPayrollCalculator
from ..users.rate_provider import RateProvider
from .aggregation import carries_over, recompute
from .locks import KeyedLock
from .model import DayRecord
from .repository import DayRecordRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DayRecordWriter:
    """Serializes every mutation of one (user, day) record.

    ``run`` holds the in-process lock for the key, reads the current record and
    hands it to ``step``. A ``StaleRecordError`` raised while saving (another
    process won the race) makes it re-read and try again.
    """

    def __init__(
        self,
        records: DayRecordRepository,
        rates: RateProvider,
        *,
        clock: Optional[Clock] = None,
        calculator: Optional[PayrollCalculator] = None,
        locks: Optional[KeyedLock] = None,
        save_retries: int = DEFAULT_SAVE_RETRIES,
    ):
        self.records = records
        self.clock = clock or SystemClock()
        self.calculator = calculator or StandardPayrollCalculator()
        self._rates = rates
        self._locks = locks or KeyedLock()
        self._retries = max(int(save_retries), 1)

    def now(self) -> datetime:
        return self.clock.now()

    def open_record_for(self, user_id: int, at: datetime) -> Optional[DayRecord]:
        """Record holding the open session of ``user_id`` at ``at``.

        Today's record first, then yesterday's when its session is overnight
        work (see ``carries_over``). Older sessions are left to force-stop.
        """
        today = self.records.get_for_user_and_date(user_id, at.date())
        if today and today.active_session:
            return today
        previous = self.records.get_for_user_and_date(user_id, at.date() - timedelta(days=1))
        if previous and previous.active_session and carries_over(previous.active_session, at):
            return previous
        return None

    def run(self, user_id: int, work_date: date, step: Callable[[Optional[DayRecord]], T]) -> T:
        with self._locks.hold((user_id, work_date)):
            attempt = 1
            while True:
                current = self.records.get_for_user_and_date(user_id, work_date)
                try:
                    return step(current)
                except StaleRecordError:
                    if attempt >= self._retries:
                        raise
                    logger.warning(
                        "stale attendance record user=%s date=%s, retrying (%s/%s)",
                        user_id,
                        work_date,
                        attempt,
                        self._retries,
                    )
                    attempt += 1

    def commit(
        self,
        record: DayRecord,
        *,
        now: datetime,
        finalize: Optional[Callable[[DayRecord], DayRecord]] = None,
    ) -> DayRecord:
        """Price ``record`` with the user's current rate and save it in one go."""

        rate = self._rates.get_hourly_rate(record.user_id)
        priced = recompute(record, rate=rate, now=now, calculator=self.calculator)
        if finalize is not None:
            priced = finalize(priced)
        return self.records.save(priced)
