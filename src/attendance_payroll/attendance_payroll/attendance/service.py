from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

from ..common.validators import optional_actor, require_id
from ..core.constants import DEFAULT_ACTOR, DEFAULT_HISTORY_LIMIT, MAX_HISTORY_LIMIT
from ..core.enums import AttendanceStatus
from ..core.exceptions import NotFoundError, ValidationError
from .aggregation import carries_over, close_session, open_session
from .model import ActiveSessionView, DayRecord, SessionResult
from .unit_of_work import DayRecordWriter

logger = logging.getLogger(__name__)


def _require_timestamp(value: Optional[datetime], writer: DayRecordWriter) -> datetime:
    if value is None:
        return writer.now()
    if not isinstance(value, datetime):
        raise ValidationError("Timestamp is invalid")
    return value


class AttendanceService:
    """Check-in/check-out ledger.

    Forgiving by policy: a second start while a session is open returns the open
    session, and a stop with nothing open succeeds without changing anything.
    Admin on-behalf-of calls use the same methods with ``actor`` set.
    """

    def __init__(self, writer: DayRecordWriter):
        self._writer = writer
        self._records = writer.records

    def start_session(self, user_id, *, at: Optional[datetime] = None, actor: Optional[str] = None) -> SessionResult:
        user_id = require_id(user_id, "user_id")
        at = _require_timestamp(at, self._writer)
        actor = optional_actor(actor, DEFAULT_ACTOR)

        def step(current: Optional[DayRecord]) -> SessionResult:
            if current and current.active_session:
                return SessionResult(session=current.active_session, record=current, changed=False)

            record = current or DayRecord(
                user_id=user_id,
                work_date=at.date(),
                status=AttendanceStatus.PRESENT,
                original_status=AttendanceStatus.PRESENT,
                created_by=actor,
                created_at=at,
            )
            record = replace(record, sessions=record.sessions + (open_session(at),))
            saved = self._writer.commit(record, now=at)
            return SessionResult(session=saved.sessions[-1], record=saved, changed=True)

        result = self._writer.run(user_id, at.date(), step)
        if result.changed:
            logger.info("session started user=%s date=%s at=%s by=%s", user_id, at.date(), at.strftime("%H:%M"), actor)
        return result

    def stop_session(self, user_id, *, at: Optional[datetime] = None, actor: Optional[str] = None) -> SessionResult:
        user_id = require_id(user_id, "user_id")
        at = _require_timestamp(at, self._writer)
        actor = optional_actor(actor, DEFAULT_ACTOR)

        def step_for(carried: bool):
            def step(current: Optional[DayRecord]) -> SessionResult:
                index = current.active_index if current else None
                if index is None or (carried and not carries_over(current.sessions[index], at)):
                    return SessionResult(session=None, record=current, changed=False)

                record = current.with_session(index, close_session(current.sessions[index], at, self._writer.calculator))
                saved = self._writer.commit(record, now=at)
                return SessionResult(session=saved.sessions[index], record=saved, changed=True)

            return step

        # Overnight work is still open on the previous day; anything older is left to force-stop.
        first: Optional[SessionResult] = None
        for work_date, carried in ((at.date(), False), (at.date() - timedelta(days=1), True)):
            result = self._writer.run(user_id, work_date, step_for(carried))
            if result.changed:
                logger.info(
                    "session stopped user=%s date=%s hours=%s by=%s",
                    user_id,
                    work_date,
                    result.session.hours_worked,
                    actor,
                )
                return result
            first = first or result
        logger.debug("stop requested for user=%s with no open session", user_id)
        return first

    def get_active_session(self, user_id, *, now: Optional[datetime] = None) -> ActiveSessionView:
        user_id = require_id(user_id, "user_id")
        now = _require_timestamp(now, self._writer)

        record = self._writer.open_record_for(user_id, now)
        if record is None:
            return ActiveSessionView(has_active=False)
        return self._active_view(record, now)

    def list_active_sessions(self, *, now: Optional[datetime] = None) -> List[ActiveSessionView]:
        now = _require_timestamp(now, self._writer)
        return [self._active_view(r, now) for r in self._records.list_with_open_sessions() if r.active_session]

    def _active_view(self, record: DayRecord, now: datetime) -> ActiveSessionView:
        session = record.active_session
        return ActiveSessionView(
            has_active=True,
            session=session,
            record=record,
            current_hours=self._writer.calculator.hours_between(session.check_in_at, now),
        )

    def get_record(self, record_id) -> DayRecord:
        record = self._records.get_by_id(require_id(record_id, "record_id"))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def list_records(
        self,
        user_id,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
        offset: int = 0,
    ) -> Sequence[DayRecord]:
        user_id = require_id(user_id, "user_id")
        if start and end and start > end:
            raise ValidationError("start must not be after end")
        try:
            limit = min(max(int(limit), 1), MAX_HISTORY_LIMIT)
            offset = max(int(offset), 0)
        except (TypeError, ValueError) as exc:
            raise ValidationError("limit/offset must be integers") from exc
        return self._records.list_for_user(user_id, start_date=start, end_date=end, limit=limit, offset=offset)
