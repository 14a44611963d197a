from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ...common.datetime_utils import TimeLike
from ...core.enums import AttendanceStatus


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def hours_between(self, start: Optional[TimeLike], end: Optional[TimeLike]) -> float:
        raise NotImplementedError

    @abstractmethod
    def salary_for(self, hours: float, rate: float, status: AttendanceStatus | str) -> float:
        raise NotImplementedError

    @abstractmethod
    def lateness_for(self, check_in: Optional[TimeLike], status: AttendanceStatus | str) -> Tuple[bool, int]:
        raise NotImplementedError
