"""Shared helpers for the per-environment settings modules."""

import os


def env_bool(name: str, default: str = "0") -> bool:
    return bool(int(os.environ.get(name, default)))


def env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def db_config_from_env(*, default_password: str = "") -> dict:
    return {
        "host": os.environ.get("DB_HOST", "localhost"),
        "port": env_int("DB_PORT", 3306),
        "user": os.environ.get("DB_USER", "root"),
        "password": os.environ.get("DB_PASSWORD", default_password),
        "database": os.environ.get("DB_NAME", "attendance_payroll"),
    }
