from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import StaleRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import DayRecord, WorkSession
from .repository import DayRecordRepository

_RECORD_COLUMNS = """
    record_id, user_id, work_date, status, check_in_time, check_out_time,
    total_hours, daily_salary, hourly_rate, is_late, late_minutes, is_active,
    notes, created_by, created_at, original_status, edited_at, edited_by,
    force_stopped, force_stopped_by, force_stopped_at, version
"""

_SESSION_COLUMNS = """
    record_id, seq, check_in_at, check_out_at, is_active, hours_worked, session_salary,
    ended_at, force_stopped, force_stopped_by, force_stopped_at
"""


def _to_session(r: dict) -> WorkSession:
    return WorkSession(
        check_in_at=r["check_in_at"],
        check_out_at=r.get("check_out_at"),
        is_active=bool(r["is_active"]),
        hours_worked=as_float(r.get("hours_worked")),
        session_salary=as_float(r.get("session_salary")),
        ended_at=r.get("ended_at"),
        force_stopped=bool(r.get("force_stopped")),
        force_stopped_by=r.get("force_stopped_by"),
        force_stopped_at=r.get("force_stopped_at"),
    )


def _to_record(r: dict, sessions: Sequence[WorkSession]) -> DayRecord:
    return DayRecord(
        record_id=int(r["record_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        sessions=tuple(sessions),
        version=int(r["version"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        total_hours=as_float(r.get("total_hours")),
        daily_salary=as_float(r.get("daily_salary")),
        hourly_rate=as_float(r.get("hourly_rate")),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        is_active=bool(r.get("is_active")),
        notes=r.get("notes") or "",
        created_by=r.get("created_by") or "self",
        created_at=r.get("created_at"),
        original_status=AttendanceStatus(r["original_status"]) if r.get("original_status") else None,
        edited_at=r.get("edited_at"),
        edited_by=r.get("edited_by"),
        force_stopped=bool(r.get("force_stopped")),
        force_stopped_by=r.get("force_stopped_by"),
        force_stopped_at=r.get("force_stopped_at"),
    )


def _record_params(record: DayRecord) -> tuple:
    return (
        record.status.value,
        record.check_in_time,
        record.check_out_time,
        record.total_hours,
        record.daily_salary,
        record.hourly_rate,
        int(record.is_late),
        int(record.late_minutes),
        int(record.is_active),
        record.notes,
        record.created_by,
        record.created_at,
        record.original_status.value if record.original_status else None,
        record.edited_at,
        record.edited_by,
        int(record.force_stopped),
        record.force_stopped_by,
        record.force_stopped_at,
    )


class MySQLAttendanceRepository(DayRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, where: str, params: tuple, *, suffix: str = "") -> List[DayRecord]:
        cur.execute(f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE {where} {suffix}", params)
        rows = fetchall(cur)
        if not rows:
            return []

        ids = [int(r["record_id"]) for r in rows]
        placeholders = ",".join(["%s"] * len(ids))
        cur.execute(
            f"""
            SELECT {_SESSION_COLUMNS}
            FROM attendance_sessions
            WHERE record_id IN ({placeholders})
            ORDER BY record_id, seq
            """,
            tuple(ids),
        )
        by_record: Dict[int, List[WorkSession]] = {}
        for s in fetchall(cur):
            by_record.setdefault(int(s["record_id"]), []).append(_to_session(s))

        return [_to_record(r, by_record.get(int(r["record_id"]), [])) for r in rows]

    def get_by_id(self, record_id: int) -> Optional[DayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load(cur, "record_id=%s", (int(record_id),))
            return found[0] if found else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[DayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            found = self._load(cur, "user_id=%s AND work_date=%s", (int(user_id), work_date))
            return found[0] if found else None

    def list_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 30,
        offset: int = 0,
    ) -> Sequence[DayRecord]:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        params.extend([int(limit), int(offset)])

        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(
                cur,
                " AND ".join(clauses),
                tuple(params),
                suffix="ORDER BY work_date DESC LIMIT %s OFFSET %s",
            )

    def list_with_open_sessions(self) -> Sequence[DayRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._load(
                cur,
                "record_id IN (SELECT record_id FROM attendance_sessions WHERE is_active=1)",
                (),
                suffix="ORDER BY work_date DESC, user_id ASC",
            )

    def save(self, record: DayRecord) -> DayRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if record.record_id is None:
                    cur.execute(
                        """
                        INSERT INTO attendance_records(
                            status, check_in_time, check_out_time, total_hours, daily_salary, hourly_rate,
                            is_late, late_minutes, is_active, notes, created_by, created_at, original_status,
                            edited_at, edited_by, force_stopped, force_stopped_by, force_stopped_at,
                            user_id, work_date, version
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                        """,
                        _record_params(record) + (record.user_id, record.work_date),
                    )
                    record_id = int(cur.lastrowid)
                else:
                    record_id = int(record.record_id)
                    cur.execute(
                        """
                        UPDATE attendance_records
                        SET status=%s, check_in_time=%s, check_out_time=%s, total_hours=%s, daily_salary=%s,
                            hourly_rate=%s, is_late=%s, late_minutes=%s, is_active=%s, notes=%s, created_by=%s,
                            created_at=%s, original_status=%s, edited_at=%s, edited_by=%s, force_stopped=%s,
                            force_stopped_by=%s, force_stopped_at=%s, version=version+1
                        WHERE record_id=%s AND version=%s
                        """,
                        _record_params(record) + (record_id, int(record.version)),
                    )
                    if cur.rowcount == 0:
                        raise StaleRecordError(f"Attendance record {record_id} was modified concurrently")
                    cur.execute("DELETE FROM attendance_sessions WHERE record_id=%s", (record_id,))

                for seq, s in enumerate(record.sessions):
                    cur.execute(
                        """
                        INSERT INTO attendance_sessions(
                            record_id, user_id, work_date, seq, check_in_at, check_out_at, is_active,
                            hours_worked, session_salary, ended_at, force_stopped, force_stopped_by,
                            force_stopped_at
                        )
                        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                        """,
                        (
                            record_id,
                            record.user_id,
                            record.work_date,
                            seq,
                            s.check_in_at,
                            s.check_out_at,
                            int(s.is_active),
                            s.hours_worked,
                            s.session_salary,
                            s.ended_at,
                            int(s.force_stopped),
                            s.force_stopped_by,
                            s.force_stopped_at,
                        ),
                    )
        except mysql.connector.IntegrityError as exc:
            raise StaleRecordError(
                f"Attendance for user {record.user_id} on {record.work_date} changed concurrently"
            ) from exc

        return replace(record, record_id=record_id, version=int(record.version) + 1)

    def delete(self, record_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE record_id=%s", (int(record_id),))
            return cur.rowcount > 0
