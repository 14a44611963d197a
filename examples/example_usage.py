"""Example: drive the session ledger through the service layer (no Flask).

Controllers are a thin layer; the business rules live in the services.
"""

import importlib

from config import get_settings_module

from src.attendance_payroll.attendance_payroll.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    started = container.attendance_service.start_session(2)
    print("started:", started.changed, started.record.to_dict())

    stopped = container.attendance_service.stop_session(2)
    print("stopped:", stopped.changed, stopped.record.to_dict() if stopped.record else None)


if __name__ == "__main__":
    main()
