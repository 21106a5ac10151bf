from __future__ import annotations

import datetime as dt
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, send_file, session

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime, parse_optional_date, parse_time_of_day
from ..common.validators import parse_pagination, require_enum, require_positive_int
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..core.enums import AttendanceStatus, EventSlot, MarkType, Role, VerificationFilter
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..container import Container
from ..uploads.qr import render_qr_png
from .model import AttendanceFilter
from .presenter import bulk_result_to_dict, page_to_dict, record_to_dict, report_row_to_dict


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                raise AuthenticationError("Please log in to continue")
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                raise AuthenticationError("Please log in to continue")
            if session.get("role") != Role.ADMIN.value:
                raise AuthorizationError("Admin access required")
            return view(*args, **kwargs)

        return wrapper

    def _current_user_id() -> int:
        return int(session["user_id"])

    def _json_body() -> dict:
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    def _optional_bool(body: dict, key: str) -> Optional[bool]:
        value = body.get(key)
        if value is None:
            return None
        if not isinstance(value, bool):
            raise ValidationError(f"{key} must be true or false")
        return value

    def _optional_datetime(body: dict, key: str) -> Optional[dt.datetime]:
        value = body.get(key)
        return parse_iso_datetime(str(value)) if value else None

    def _time_on(day: dt.date, value: Any) -> Optional[dt.datetime]:
        if not value:
            return None
        return dt.datetime.combine(day, parse_time_of_day(str(value)))

    def _slot(body: dict) -> EventSlot:
        value = body.get("type")
        if value is None and isinstance(body.get("action"), dict):
            value = body["action"].get("type")
        elif value is None:
            value = body.get("action")
        return require_enum(value, EventSlot, "verification type")

    def _date_range() -> tuple[Optional[dt.date], Optional[dt.date]]:
        return parse_optional_date(request.args.get("startDate")), parse_optional_date(request.args.get("endDate"))

    def _page() -> tuple[int, int]:
        return parse_pagination(
            request.args.get("page"),
            request.args.get("limit"),
            default_size=DEFAULT_PAGE_SIZE,
            max_size=MAX_PAGE_SIZE,
        )

    def _filter_from_args() -> AttendanceFilter:
        start, end = _date_range()
        user_id = request.args.get("userId")
        dept_id = request.args.get("departmentId")
        status = request.args.get("status")
        verification = request.args.get("verification")
        return AttendanceFilter(
            start_date=start,
            end_date=end,
            user_id=require_positive_int(user_id, "userId") if user_id else None,
            dept_id=require_positive_int(dept_id, "departmentId") if dept_id else None,
            status=require_enum(status, AttendanceStatus, "status") if status else None,
            verification=require_enum(verification, VerificationFilter, "verification") if verification else None,
        )

    def _marked(mark_type: MarkType, record) -> tuple:
        label = "Check-in" if mark_type is MarkType.CHECK_IN else "Check-out"
        return jsonify(
            {
                "success": True,
                "message": f"{label} recorded successfully",
                "attendance": record_to_dict(record),
            }
        ), 200

    # ===== SELF-SERVICE =====

    @app.route("/api/attendance/mark", methods=["POST"], endpoint="attendance_mark")
    @login_required
    def attendance_mark():
        """Face recognition or QR code check-in/check-out."""
        mark_type, payload = container.attendance_service.parse_mark_request(_json_body())
        record = container.attendance_service.mark(_current_user_id(), mark_type, payload)
        return _marked(mark_type, record)

    @app.route("/api/attendance/mark-manual", methods=["POST"], endpoint="attendance_mark_manual")
    @login_required
    def attendance_mark_manual():
        mark_type, payload = container.attendance_service.parse_mark_request(_json_body(), manual=True)
        record = container.attendance_service.mark_manual(_current_user_id(), mark_type, location=payload.location)
        return _marked(mark_type, record)

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def attendance_today():
        record = container.attendance_service.today(_current_user_id())
        return jsonify({"success": True, "attendance": record_to_dict(record)})

    @app.route("/api/attendance/me", methods=["GET"], endpoint="attendance_me")
    @login_required
    def attendance_me():
        start, end = _date_range()
        page, page_size = _page()
        data = container.attendance_service.history(
            _current_user_id(), start_date=start, end_date=end, page=page, page_size=page_size
        )
        return jsonify(page_to_dict(data))

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @login_required
    def attendance_stats():
        start, end = _date_range()
        summary = container.attendance_service.stats(_current_user_id(), start_date=start, end_date=end)
        return jsonify(summary.to_dict())

    # ===== ADMIN =====

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @admin_required
    def attendance_list():
        page, page_size = _page()
        data = container.attendance_admin_service.list_all(_filter_from_args(), page=page, page_size=page_size)
        return jsonify(page_to_dict(data, item_to_dict=report_row_to_dict))

    @app.route("/api/attendance/admin/stats", methods=["GET"], endpoint="attendance_admin_stats")
    @admin_required
    def attendance_admin_stats():
        summary = container.attendance_admin_service.stats(_filter_from_args())
        return jsonify(summary.to_dict())

    @app.route("/api/attendance/admin/create", methods=["POST"], endpoint="attendance_admin_create")
    @admin_required
    def attendance_admin_create():
        body = _json_body()
        work_date = parse_iso_date(str(body.get("date") or ""))
        if not body.get("status"):
            raise ValidationError("status is required")

        record = container.attendance_admin_service.create(
            _current_user_id(),
            user_id=require_positive_int(body.get("userId"), "userId"),
            work_date=work_date,
            status=require_enum(body.get("status"), AttendanceStatus, "status"),
            check_in_time=_time_on(work_date, body.get("checkInTime")),
            check_out_time=_time_on(work_date, body.get("checkOutTime")),
            notes=body.get("notes") or None,
        )
        return jsonify({"success": True, "message": "Attendance record created", "attendance": record_to_dict(record)}), 201

    @app.route("/api/attendance/bulk-verify", methods=["PATCH"], endpoint="attendance_bulk_verify")
    @admin_required
    def attendance_bulk_verify():
        body = _json_body()
        record_ids = body.get("recordIds")
        if not isinstance(record_ids, list) or not record_ids:
            raise ValidationError("recordIds must be a non-empty list")

        result = container.attendance_admin_service.bulk_verify(_current_user_id(), record_ids, _slot(body))
        payload = bulk_result_to_dict(result)
        payload["success"] = True
        payload["message"] = f"{result.success_count} verified, {result.error_count} failed"
        return jsonify(payload)

    @app.route("/api/attendance/<int:record_id>", methods=["GET"], endpoint="attendance_get")
    @admin_required
    def attendance_get(record_id: int):
        record = container.attendance_admin_service.get(record_id)
        return jsonify({"success": True, "attendance": record_to_dict(record)})

    @app.route("/api/attendance/<int:record_id>/verify", methods=["PATCH"], endpoint="attendance_verify")
    @admin_required
    def attendance_verify(record_id: int):
        slot = _slot(_json_body())
        record = container.attendance_admin_service.verify(_current_user_id(), record_id, slot)
        return jsonify(
            {
                "success": True,
                "message": f"{slot.label.capitalize()} verified successfully",
                "attendance": record_to_dict(record),
            }
        )

    @app.route("/api/attendance/<int:record_id>/reject", methods=["PATCH"], endpoint="attendance_reject")
    @admin_required
    def attendance_reject(record_id: int):
        slot = _slot(_json_body())
        record = container.attendance_admin_service.reject(_current_user_id(), record_id, slot)
        return jsonify(
            {
                "success": True,
                "message": f"{slot.label.capitalize()} rejected successfully",
                "attendance": record_to_dict(record),
            }
        )

    @app.route("/api/attendance/<int:record_id>", methods=["PUT"], endpoint="attendance_update")
    @admin_required
    def attendance_update(record_id: int):
        body = _json_body()
        status = body.get("status")
        notes = body.get("notes")
        record = container.attendance_admin_service.update(
            _current_user_id(),
            record_id,
            status=require_enum(status, AttendanceStatus, "status") if status else None,
            notes=str(notes) if notes is not None else None,
            check_in_verified=_optional_bool(body, "checkInVerified"),
            check_out_verified=_optional_bool(body, "checkOutVerified"),
            check_in_time=_optional_datetime(body, "checkInTime"),
            check_out_time=_optional_datetime(body, "checkOutTime"),
        )
        return jsonify({"success": True, "message": "Attendance record updated", "attendance": record_to_dict(record)})

    @app.route("/api/attendance/<int:record_id>", methods=["DELETE"], endpoint="attendance_delete")
    @admin_required
    def attendance_delete(record_id: int):
        container.attendance_admin_service.delete(_current_user_id(), record_id)
        return jsonify({"success": True, "message": "Attendance record deleted successfully"})

    @app.route("/api/attendance/export", methods=["GET"], endpoint="attendance_export")
    @admin_required
    def attendance_export():
        csv_bytes = container.attendance_admin_service.export_csv(_filter_from_args())
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=attendance.csv"},
        )

    @app.route("/api/attendance/qr/image", methods=["GET"], endpoint="attendance_qr_image")
    @admin_required
    def attendance_qr_image():
        """Printable QR code that users scan to check in/out."""
        token = container.attendance_service.qr_token
        if not token:
            raise ValidationError("QR check-in is not configured")
        return send_file(render_qr_png(token), mimetype="image/png")
