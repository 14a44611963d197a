from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import DayRecord


class DayRecordRepository(Protocol):
    """Storage for day records and their embedded sessions.

    ``save`` must be atomic: the record row and all of its sessions are written
    together or not at all. It raises ``StaleRecordError`` when the stored
    ``version`` differs from ``record.version`` (or, for a new record, when one
    already exists for the same user and date) and returns the stored record
    with its new ``record_id``/``version``.
    """

    def get_by_id(self, record_id: int) -> Optional[DayRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[DayRecord]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 30,
        offset: int = 0,
    ) -> Sequence[DayRecord]:
        raise NotImplementedError

    def list_with_open_sessions(self) -> Sequence[DayRecord]:
        raise NotImplementedError

    def save(self, record: DayRecord) -> DayRecord:
        raise NotImplementedError

    def delete(self, record_id: int) -> bool:
        raise NotImplementedError
