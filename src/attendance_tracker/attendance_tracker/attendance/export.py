from __future__ import annotations

import csv
import io
from typing import Iterable

from .model import AttendanceReportRow

EXPORT_FIELDS = [
    "Date",
    "Name",
    "Email",
    "Role",
    "RegistrationId",
    "Status",
    "CheckInTime",
    "CheckInVerified",
    "CheckOutTime",
    "CheckOutVerified",
    "HoursWorked",
    "Notes",
]


def _row_to_csv_dict(row: AttendanceReportRow) -> dict:
    r = row.record
    return {
        "Date": r.work_date.strftime("%Y-%m-%d"),
        "Name": row.full_name or "Unknown",
        "Email": row.email or "Unknown",
        "Role": row.role or "Unknown",
        "RegistrationId": row.registration_id or "N/A",
        "Status": r.status.value,
        "CheckInTime": r.check_in.time.strftime("%H:%M:%S") if r.check_in.is_recorded else "N/A",
        "CheckInVerified": "Yes" if r.check_in.verified else "No",
        "CheckOutTime": r.check_out.time.strftime("%H:%M:%S") if r.check_out.is_recorded else "N/A",
        "CheckOutVerified": "Yes" if r.check_out.verified else "No",
        "HoursWorked": f"{r.hours_worked:.2f}" if r.hours_worked else "N/A",
        "Notes": r.notes or "",
    }


def rows_to_csv(rows: Iterable[AttendanceReportRow]) -> bytes:
    """Write report rows as CSV (UTF-8 with BOM so spreadsheets pick the encoding)."""

    out = io.StringIO()
    writer = csv.DictWriter(out, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for row in rows:
        writer.writerow(_row_to_csv_dict(row))
    return out.getvalue().encode("utf-8-sig")
