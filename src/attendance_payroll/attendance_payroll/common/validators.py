from __future__ import annotations

from typing import Any, Optional

from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError


def require_id(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is invalid")
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field_name} is invalid") from exc
    if parsed <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return parsed


def require_status(value: Any) -> AttendanceStatus:
    if isinstance(value, AttendanceStatus):
        return value
    try:
        return AttendanceStatus(str(value or "").strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in AttendanceStatus)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}") from exc


def optional_actor(value: Optional[str], default: str) -> str:
    if value is None or not str(value).strip():
        return default
    return str(value).strip()


def optional_bool(value: Any, field_name: str) -> Optional[bool]:
    # JSON booleans only; "false" must not turn into True.
    if value is None or isinstance(value, bool):
        return value
    raise ValidationError(f"{field_name} must be true or false")
