from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.exceptions import (
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    ValidationError,
)
from ..container import Container
from .model import ActiveSessionView, SessionResult

logger = logging.getLogger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (DependencyError, 503),
)


def _status_for(exc: DomainError) -> int:
    for cls, code in _STATUS_CODES:
        if isinstance(exc, cls):
            return code
    return 400


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _optional_date(value: Optional[str]):
    return parse_iso_date(value) if value else None


def _optional_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid timestamp {value!r}") from exc


def _session_json(result: SessionResult, message: str) -> dict:
    return {
        "success": True,
        "changed": result.changed,
        "message": message,
        "session": result.session.to_dict() if result.session else None,
        "attendance": result.record.to_dict() if result.record else None,
    }


def _active_json(view: ActiveSessionView) -> dict:
    return {
        "has_active": view.has_active,
        "session": view.session.to_dict() if view.session else None,
        "attendance_id": view.record.record_id if view.record else None,
        "user_id": view.record.user_id if view.record else None,
        "date": view.record.work_date.strftime("%Y-%m-%d") if view.record else None,
        "current_hours": view.current_hours,
    }


def register(app: Flask, container: Container) -> None:
    sessions = container.attendance_service
    overrides = container.override_service

    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        code = _status_for(exc)
        if code >= 500:
            logger.error("request failed: %s", exc)
        return jsonify({"success": False, "error": exc.kind, "message": str(exc)}), code

    # ===== SELF-SERVICE / ON-BEHALF-OF SESSIONS =====

    @app.route("/api/sessions/start", methods=["POST"], endpoint="session_start")
    def session_start():
        data = _body()
        result = sessions.start_session(data.get("user_id"), actor=data.get("actor"))
        message = "Session started successfully" if result.changed else "Session already active"
        return jsonify(_session_json(result, message)), 200

    @app.route("/api/sessions/stop", methods=["POST"], endpoint="session_stop")
    def session_stop():
        data = _body()
        result = sessions.stop_session(data.get("user_id"), actor=data.get("actor"))
        message = "Session stopped successfully" if result.changed else "No active session"
        return jsonify(_session_json(result, message)), 200

    @app.route("/api/sessions/active/<user_id>", methods=["GET"], endpoint="session_active")
    def session_active(user_id: str):
        return jsonify(_active_json(sessions.get_active_session(user_id))), 200

    @app.route("/api/attendance/<user_id>", methods=["GET"], endpoint="attendance_history")
    def attendance_history(user_id: str):
        records = sessions.list_records(
            user_id,
            start=_optional_date(request.args.get("start")),
            end=_optional_date(request.args.get("end")),
            limit=request.args.get("limit", DEFAULT_HISTORY_LIMIT),
            offset=request.args.get("offset", 0),
        )
        return jsonify({"records": [r.to_dict() for r in records], "count": len(records)}), 200

    # ===== ADMIN =====

    @app.route("/api/admin/sessions/active", methods=["GET"], endpoint="admin_sessions_active")
    def admin_sessions_active():
        views = sessions.list_active_sessions()
        return jsonify({"sessions": [_active_json(v) for v in views], "total_active_sessions": len(views)}), 200

    @app.route("/api/admin/attendance/force-stop", methods=["POST"], endpoint="admin_force_stop")
    def admin_force_stop():
        data = _body()
        result = overrides.force_stop(
            data.get("user_id"),
            data.get("admin_id"),
            at=_optional_timestamp(data.get("at")),
            work_date=_optional_date(data.get("date")),
        )
        return jsonify(
            {
                "success": True,
                "message": f"Force stopped {result.closed_count} active session(s) for {result.record.work_date}",
                "closed_count": result.closed_count,
                "attendance": result.record.to_dict(),
            }
        ), 200

    @app.route("/api/admin/attendance/<record_id>/force-stop", methods=["POST"], endpoint="admin_force_stop_record")
    def admin_force_stop_record(record_id: str):
        data = _body()
        result = overrides.force_stop_record(record_id, data.get("admin_id"), at=_optional_timestamp(data.get("at")))
        return jsonify(
            {
                "success": True,
                "message": f"Force stopped {result.closed_count} active session(s) for {result.record.work_date}",
                "closed_count": result.closed_count,
                "attendance": result.record.to_dict(),
            }
        ), 200

    @app.route("/api/admin/attendance", methods=["POST"], endpoint="admin_attendance_create")
    def admin_attendance_create():
        data = _body()
        if not data.get("date"):
            raise ValidationError("User ID, date, and status are required")
        record = overrides.create_record(
            data.get("user_id"),
            parse_iso_date(data["date"]),
            data.get("status"),
            check_in_time=data.get("check_in_time"),
            check_out_time=data.get("check_out_time"),
            notes=data.get("notes") or "",
            created_by=data.get("created_by"),
        )
        return jsonify({"success": True, "message": "Attendance record created successfully", "attendance": record.to_dict()}), 201

    @app.route("/api/admin/attendance/<record_id>", methods=["PUT"], endpoint="admin_attendance_update")
    def admin_attendance_update(record_id: str):
        data = _body()
        record = overrides.update_record(
            record_id,
            editor=data.get("edited_by"),
            status=data.get("status"),
            check_in_time=data.get("check_in_time"),
            check_out_time=data.get("check_out_time"),
            notes=data.get("notes"),
            is_late=data.get("is_late"),
            late_minutes=data.get("late_minutes"),
        )
        return jsonify({"success": True, "message": "Attendance updated successfully", "attendance": record.to_dict()}), 200

    @app.route("/api/admin/attendance/<record_id>", methods=["DELETE"], endpoint="admin_attendance_delete")
    def admin_attendance_delete(record_id: str):
        overrides.delete_record(record_id, actor=request.args.get("admin_id"))
        return jsonify({"success": True, "message": "Attendance record deleted successfully"}), 200
