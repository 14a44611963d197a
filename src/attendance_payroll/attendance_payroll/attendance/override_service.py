from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import TimeLike, combine_on_day
from ..common.validators import optional_actor, optional_bool, require_id, require_status
from ..core.constants import DEFAULT_ADMIN
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .aggregation import close_session, open_session
from .model import DayRecord, ForceStopResult
from .unit_of_work import DayRecordWriter

audit = logging.getLogger("attendance.audit")


class AttendanceOverrideService:
    """Admin-side corrections: force-stop, manual records, edits and deletes.

    Force-stop closes sessions with the same code as a normal stop; only the
    provenance stamps differ.
    """

    def __init__(self, writer: DayRecordWriter):
        self._writer = writer
        self._records = writer.records

    def _timestamp(self, at: Optional[datetime]) -> datetime:
        if at is None:
            return self._writer.now()
        if not isinstance(at, datetime):
            raise ValidationError("Timestamp is invalid")
        return at

    def _existing(self, record_id) -> DayRecord:
        record = self._records.get_by_id(require_id(record_id, "record_id"))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    # ----- force stop -----

    def force_stop(
        self,
        user_id,
        admin_id: Optional[str] = None,
        *,
        at: Optional[datetime] = None,
        work_date: Optional[date] = None,
    ) -> ForceStopResult:
        user_id = require_id(user_id, "user_id")
        at = self._timestamp(at)
        if work_date is None:
            # Same lookup as a self-service stop: today, then overnight work from yesterday.
            open_record = self._writer.open_record_for(user_id, at)
            work_date = open_record.work_date if open_record else at.date()
        return self._force_stop(user_id, work_date, optional_actor(admin_id, DEFAULT_ADMIN), at)

    def force_stop_record(self, record_id, admin_id: Optional[str] = None, *, at: Optional[datetime] = None) -> ForceStopResult:
        record = self._existing(record_id)
        at = self._timestamp(at)
        return self._force_stop(
            record.user_id,
            record.work_date,
            optional_actor(admin_id, DEFAULT_ADMIN),
            at,
            record_id=record.record_id,
        )

    def _force_stop(
        self,
        user_id: int,
        work_date: date,
        admin: str,
        at: datetime,
        *,
        record_id: Optional[int] = None,
    ) -> ForceStopResult:
        calculator = self._writer.calculator

        def step(current: Optional[DayRecord]) -> ForceStopResult:
            if not current or (record_id is not None and current.record_id != record_id):
                raise NotFoundError(f"No attendance record found for {work_date}")

            open_indices = [i for i, s in enumerate(current.sessions) if s.is_active]
            if not open_indices:
                raise NotFoundError("No active sessions found to force stop")

            record = current
            for i in open_indices:
                record = record.with_session(i, close_session(record.sessions[i], at, calculator, forced_by=admin))
            record = replace(record, force_stopped=True, force_stopped_by=admin, force_stopped_at=at)
            saved = self._writer.commit(record, now=at)
            return ForceStopResult(closed_count=len(open_indices), record=saved)

        result = self._writer.run(user_id, work_date, step)
        audit.info(
            "force-stop user=%s date=%s record=%s sessions=%s by=%s at=%s",
            user_id,
            work_date,
            result.record.record_id,
            result.closed_count,
            admin,
            at.isoformat(),
        )
        return result

    # ----- manual records -----

    def create_record(
        self,
        user_id,
        work_date: date,
        status,
        *,
        check_in_time: Optional[TimeLike] = None,
        check_out_time: Optional[TimeLike] = None,
        notes: str = "",
        created_by: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> DayRecord:
        user_id = require_id(user_id, "user_id")
        if isinstance(work_date, datetime):
            work_date = work_date.date()
        if not isinstance(work_date, date):
            raise ValidationError("date is required")
        status = require_status(status)
        if check_out_time and not check_in_time:
            raise ValidationError("check_out_time requires check_in_time")
        at = self._timestamp(at)
        admin = optional_actor(created_by, DEFAULT_ADMIN)
        calculator = self._writer.calculator

        sessions = ()
        if check_in_time:
            session = open_session(combine_on_day(work_date, check_in_time))
            if check_out_time:
                check_out = combine_on_day(work_date, check_out_time, not_before=session.check_in_at)
                session = close_session(session, check_out, calculator)
            sessions = (session,)

        def step(current: Optional[DayRecord]) -> DayRecord:
            if current:
                raise ConflictError("Attendance already marked for this date")
            record = DayRecord(
                user_id=user_id,
                work_date=work_date,
                status=status,
                sessions=sessions,
                notes=(notes or "").strip(),
                created_by=admin,
                created_at=at,
                original_status=status,
            )
            return self._writer.commit(record, now=at)

        saved = self._writer.run(user_id, work_date, step)
        audit.info("create record=%s user=%s date=%s status=%s by=%s", saved.record_id, user_id, work_date, status.value, admin)
        return saved

    def update_record(
        self,
        record_id,
        *,
        editor: Optional[str] = None,
        status=None,
        check_in_time: Optional[TimeLike] = None,
        check_out_time: Optional[TimeLike] = None,
        notes: Optional[str] = None,
        is_late: Optional[bool] = None,
        late_minutes: Optional[int] = None,
        at: Optional[datetime] = None,
    ) -> DayRecord:
        existing = self._existing(record_id)
        new_status = require_status(status) if status else None
        is_late = optional_bool(is_late, "is_late")
        if late_minutes is not None:
            try:
                late_minutes = max(int(late_minutes), 0)
            except (TypeError, ValueError) as exc:
                raise ValidationError("late_minutes must be an integer") from exc
        at = self._timestamp(at)
        editor = optional_actor(editor, DEFAULT_ADMIN)
        calculator = self._writer.calculator

        def step(current: Optional[DayRecord]) -> DayRecord:
            if not current or current.record_id != existing.record_id:
                raise NotFoundError("Attendance record not found")

            sessions = list(current.sessions)
            if check_in_time:
                check_in = combine_on_day(current.work_date, check_in_time)
                if sessions:
                    sessions[0] = replace(sessions[0], check_in_at=check_in)
                else:
                    sessions.append(open_session(check_in))
            if check_out_time:
                if not sessions:
                    raise ValidationError("check_out_time requires a check-in")
                last = sessions[-1]
                check_out = combine_on_day(current.work_date, check_out_time, not_before=last.check_in_at)
                if last.is_active:
                    sessions[-1] = close_session(last, check_out, calculator)
                else:
                    sessions[-1] = replace(last, check_out_at=check_out)
            if any(s.check_out_at is not None and s.check_out_at < s.check_in_at for s in sessions):
                raise ValidationError("check_in_time must not be after check_out_time")

            record = replace(
                current,
                sessions=tuple(sessions),
                status=new_status or current.status,
                notes=notes.strip() if notes is not None else current.notes,
                original_status=current.original_status or current.status,
                edited_at=at,
                edited_by=editor,
            )

            def finalize(priced: DayRecord) -> DayRecord:
                if is_late is not None:
                    priced = replace(priced, is_late=is_late)
                if late_minutes is not None:
                    priced = replace(priced, late_minutes=late_minutes)
                return priced

            return self._writer.commit(record, now=at, finalize=finalize)

        saved = self._writer.run(existing.user_id, existing.work_date, step)
        audit.info("edit record=%s status=%s by=%s", saved.record_id, saved.status.value, editor)
        return saved

    def delete_record(self, record_id, *, actor: Optional[str] = None) -> None:
        existing = self._existing(record_id)
        actor = optional_actor(actor, DEFAULT_ADMIN)

        def step(current: Optional[DayRecord]) -> None:
            if not current or current.record_id != existing.record_id or not self._records.delete(current.record_id):
                raise NotFoundError("Attendance record not found")

        self._writer.run(existing.user_id, existing.work_date, step)
        audit.info("delete record=%s user=%s date=%s by=%s", existing.record_id, existing.user_id, existing.work_date, actor)
