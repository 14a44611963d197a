from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.locks import KeyedLock
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.override_service import AttendanceOverrideService
from .attendance.repository import DayRecordRepository
from .attendance.service import AttendanceService
from .attendance.unit_of_work import DayRecordWriter
from .common.datetime_utils import Clock, SystemClock
from .core.constants import DEFAULT_SAVE_RETRIES
from .database.connection import DBConfig, DatabaseConnection
from .payroll.calculator.standard_calculator import StandardPayrollCalculator
from .users.mysql_user_repository import MySQLUserRepository
from .users.rate_provider import RateProvider, UserRateProvider


@dataclass(frozen=True)
class Container:
    attendance_repo: DayRecordRepository
    rate_provider: RateProvider
    writer: DayRecordWriter

    attendance_service: AttendanceService
    override_service: AttendanceOverrideService


def build_services(
    *,
    attendance_repo: DayRecordRepository,
    rate_provider: RateProvider,
    clock: Optional[Clock] = None,
    save_retries: int = DEFAULT_SAVE_RETRIES,
) -> Container:
    """Wire services over the given storage; both services share one writer (and its locks)."""

    writer = DayRecordWriter(
        attendance_repo,
        rate_provider,
        clock=clock or SystemClock(),
        calculator=StandardPayrollCalculator(),
        locks=KeyedLock(),
        save_retries=save_retries,
    )
    return Container(
        attendance_repo=attendance_repo,
        rate_provider=rate_provider,
        writer=writer,
        attendance_service=AttendanceService(writer),
        override_service=AttendanceOverrideService(writer),
    )


def build_container(*, db_config: dict, save_retries: int = DEFAULT_SAVE_RETRIES) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return build_services(
        attendance_repo=MySQLAttendanceRepository(conn),
        rate_provider=UserRateProvider(MySQLUserRepository(conn)),
        save_retries=save_retries,
    )
