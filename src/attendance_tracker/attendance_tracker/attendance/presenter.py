from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from .model import AttendanceRecord, AttendanceReportRow, BulkResult, CaptureEvent, Page


def _iso(value: Optional[date | datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def event_to_dict(event: CaptureEvent) -> dict:
    return {
        "time": _iso(event.time),
        "method": event.method.value if event.method else None,
        "confidence": event.confidence,
        "verified": event.verified,
        "imageUrl": event.image_url,
        "qrCode": event.qr_code,
        "location": event.location,
    }


def record_to_dict(record: Optional[AttendanceRecord]) -> Optional[dict]:
    if record is None:
        return None
    return {
        "id": record.attendance_id,
        "user": record.user_id,
        "date": _iso(record.work_date),
        "checkIn": event_to_dict(record.check_in),
        "checkOut": event_to_dict(record.check_out),
        "status": record.status.value,
        "hoursWorked": record.hours_worked,
        "earlyCheckout": record.early_checkout,
        "notes": record.notes,
        "verifiedBy": record.verified_by,
        "createdAt": _iso(record.created_at),
        "updatedAt": _iso(record.updated_at),
    }


def report_row_to_dict(row: AttendanceReportRow) -> dict:
    out = record_to_dict(row.record)
    out["user"] = {
        "id": row.record.user_id,
        "name": row.full_name,
        "email": row.email,
        "role": row.role,
        "registrationId": row.registration_id,
        "department": {"id": row.dept_id, "name": row.dept_name} if row.dept_id else None,
    }
    return out


def page_to_dict(page: Page, *, item_to_dict=record_to_dict) -> dict:
    return {
        "records": [item_to_dict(item) for item in page.items],
        "pagination": {
            "total": page.total,
            "pages": page.pages,
            "page": page.page,
            "pageSize": page.page_size,
        },
    }


def bulk_result_to_dict(result: BulkResult) -> dict:
    return {
        "successCount": result.success_count,
        "errorCount": result.error_count,
        "errors": result.errors,
    }
