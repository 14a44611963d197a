from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Day status as stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"
    LATE = "late"

    @property
    def is_paid(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
