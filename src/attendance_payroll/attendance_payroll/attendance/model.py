from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, Tuple

from ..common.datetime_utils import format_time_of_day
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class WorkSession:
    """One check-in/check-out interval inside a day record."""

    check_in_at: datetime
    check_out_at: Optional[datetime] = None
    is_active: bool = True
    hours_worked: float = 0.0
    session_salary: float = 0.0
    ended_at: Optional[datetime] = None
    force_stopped: bool = False
    force_stopped_by: Optional[str] = None
    force_stopped_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "check_in_time": format_time_of_day(self.check_in_at),
            "check_out_time": format_time_of_day(self.check_out_at),
            "check_in_at": self.check_in_at.isoformat(),
            "check_out_at": self.check_out_at.isoformat() if self.check_out_at else None,
            "is_active": self.is_active,
            "hours_worked": self.hours_worked,
            "session_salary": self.session_salary,
            "force_stopped": self.force_stopped,
            "force_stopped_by": self.force_stopped_by,
            "force_stopped_at": self.force_stopped_at.isoformat() if self.force_stopped_at else None,
        }


@dataclass(frozen=True)
class DayRecord:
    """Attendance aggregate: all sessions of one user on one calendar day.

    ``record_id`` is None until the record is first saved; ``version`` is bumped
    by the repository on every successful save.
    """

    user_id: int
    work_date: date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    sessions: Tuple[WorkSession, ...] = field(default_factory=tuple)
    record_id: Optional[int] = None
    version: int = 0

    check_in_time: Optional[str] = None
    check_out_time: Optional[str] = None
    total_hours: float = 0.0
    daily_salary: float = 0.0
    hourly_rate: float = 0.0
    is_late: bool = False
    late_minutes: int = 0
    is_active: bool = False

    notes: str = ""
    created_by: str = "self"
    created_at: Optional[datetime] = None
    original_status: Optional[AttendanceStatus] = None
    edited_at: Optional[datetime] = None
    edited_by: Optional[str] = None
    force_stopped: bool = False
    force_stopped_by: Optional[str] = None
    force_stopped_at: Optional[datetime] = None

    @property
    def active_index(self) -> Optional[int]:
        for i, s in enumerate(self.sessions):
            if s.is_active:
                return i
        return None

    @property
    def active_session(self) -> Optional[WorkSession]:
        i = self.active_index
        return self.sessions[i] if i is not None else None

    def with_session(self, index: int, session: WorkSession) -> "DayRecord":
        sessions = list(self.sessions)
        sessions[index] = session
        return replace(self, sessions=tuple(sessions))

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "user_id": self.user_id,
            "date": self.work_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "sessions": [s.to_dict() for s in self.sessions],
            "check_in_time": self.check_in_time,
            "check_out_time": self.check_out_time,
            "total_hours": self.total_hours,
            "daily_salary": self.daily_salary,
            "hourly_rate": self.hourly_rate,
            "is_late": self.is_late,
            "late_minutes": self.late_minutes,
            "is_active": self.is_active,
            "notes": self.notes,
            "created_by": self.created_by,
            "original_status": self.original_status.value if self.original_status else None,
            "edited_at": self.edited_at.isoformat() if self.edited_at else None,
            "edited_by": self.edited_by,
            "force_stopped": self.force_stopped,
            "force_stopped_by": self.force_stopped_by,
            "force_stopped_at": self.force_stopped_at.isoformat() if self.force_stopped_at else None,
        }


@dataclass(frozen=True)
class SessionResult:
    """Outcome of start/stop. ``changed`` is False for forgiving no-ops."""

    session: Optional[WorkSession]
    record: Optional[DayRecord]
    changed: bool


@dataclass(frozen=True)
class ForceStopResult:
    closed_count: int
    record: DayRecord


@dataclass(frozen=True)
class ActiveSessionView:
    has_active: bool
    session: Optional[WorkSession] = None
    record: Optional[DayRecord] = None
    current_hours: Optional[float] = None
