from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, CaptureMethod, VerificationFilter
from ..core.exceptions import DuplicateRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceFilter, AttendanceRecord, AttendanceReportRow, CaptureEvent
from .repository import AttendanceRepository

_EVENT_FIELDS = ("time", "image_url", "qr_code", "confidence", "method", "location", "verified")


def _event_columns(prefix: str, alias: Optional[str] = "ar") -> str:
    qualifier = f"{alias}." if alias else ""
    return ", ".join(f"{qualifier}{prefix}_{f}" for f in _EVENT_FIELDS)


_RECORD_COLUMNS = (
    "ar.attendance_id, ar.user_id, ar.work_date, "
    f"{_event_columns('check_in')}, {_event_columns('check_out')}, "
    "ar.status, ar.hours_worked, ar.early_checkout, ar.notes, ar.verified_by, ar.created_at, ar.updated_at"
)


def _event_from_row(r: dict, prefix: str) -> CaptureEvent:
    confidence = r.get(f"{prefix}_confidence")
    method = r.get(f"{prefix}_method")
    return CaptureEvent(
        time=r.get(f"{prefix}_time"),
        method=CaptureMethod(method) if method else None,
        confidence=float(confidence) if confidence is not None else None,
        verified=bool(r.get(f"{prefix}_verified")),
        image_url=r.get(f"{prefix}_image_url"),
        qr_code=r.get(f"{prefix}_qr_code"),
        location=r.get(f"{prefix}_location"),
    )


def _event_params(event: CaptureEvent) -> tuple:
    return (
        event.time,
        event.image_url,
        event.qr_code,
        event.confidence,
        event.method.value if event.method else None,
        event.location,
        1 if event.verified else 0,
    )


def _event_assignments(prefix: str) -> str:
    return ", ".join(f"{prefix}_{f}=%s" for f in _EVENT_FIELDS)


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in=_event_from_row(r, "check_in"),
        check_out=_event_from_row(r, "check_out"),
        status=AttendanceStatus(r["status"]),
        hours_worked=float(r.get("hours_worked") or 0),
        early_checkout=bool(r.get("early_checkout")),
        notes=r.get("notes"),
        verified_by=r.get("verified_by"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _where(flt: AttendanceFilter) -> tuple[str, list]:
    clauses = ["1=1"]
    params: list[object] = []

    if flt.start_date:
        clauses.append("ar.work_date >= %s")
        params.append(flt.start_date)
    if flt.end_date:
        clauses.append("ar.work_date <= %s")
        params.append(flt.end_date)
    if flt.user_id is not None:
        clauses.append("ar.user_id=%s")
        params.append(int(flt.user_id))
    if flt.dept_id is not None:
        clauses.append("u.dept_id=%s")
        params.append(int(flt.dept_id))
    if flt.status is not None:
        clauses.append("ar.status=%s")
        params.append(flt.status.value)
    if flt.verification is VerificationFilter.VERIFIED:
        clauses.append(
            "(ar.check_in_time IS NULL OR ar.check_in_verified=1)"
            " AND (ar.check_out_time IS NULL OR ar.check_out_verified=1)"
        )
    elif flt.verification is VerificationFilter.UNVERIFIED:
        clauses.append(
            "((ar.check_in_time IS NOT NULL AND ar.check_in_verified=0)"
            " OR (ar.check_out_time IS NOT NULL AND ar.check_out_verified=0))"
        )

    return " AND ".join(clauses), params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE ar.attendance_id=%s",
                (int(attendance_id),),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE ar.user_id=%s AND ar.work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert(self, record: AttendanceRecord) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"""
                    INSERT INTO attendance_records(
                        user_id, work_date,
                        {_event_columns('check_in', None)},
                        {_event_columns('check_out', None)},
                        status, hours_worked, early_checkout, notes, verified_by
                    )
                    VALUES(%s,%s, %s,%s,%s,%s,%s,%s,%s, %s,%s,%s,%s,%s,%s,%s, %s,%s,%s,%s,%s)
                    """,
                    (
                        int(record.user_id),
                        record.work_date,
                        *_event_params(record.check_in),
                        *_event_params(record.check_out),
                        record.status.value,
                        record.hours_worked,
                        1 if record.early_checkout else 0,
                        record.notes,
                        record.verified_by,
                    ),
                )
                return int(cur.lastrowid)
        except Exception as e:
            if is_duplicate_key(e):
                raise DuplicateRecordError(
                    f"Attendance for user {record.user_id} on {record.work_date} already exists"
                ) from e
            raise

    def claim_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in: CaptureEvent,
        status: AttendanceStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {_event_assignments('check_in')}, status=%s
                WHERE user_id=%s AND work_date=%s AND check_in_time IS NULL
                """,
                (*_event_params(check_in), status.value, int(user_id), work_date),
            )
            return cur.rowcount > 0

    def record_checkout(
        self,
        *,
        attendance_id: int,
        check_out: CaptureEvent,
        hours_worked: float,
        early_checkout: bool,
        status: AttendanceStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {_event_assignments('check_out')}, hours_worked=%s, early_checkout=%s, status=%s
                WHERE attendance_id=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL
                """,
                (
                    *_event_params(check_out),
                    hours_worked,
                    1 if early_checkout else 0,
                    status.value,
                    int(attendance_id),
                ),
            )
            return cur.rowcount > 0

    def save(self, record: AttendanceRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET {_event_assignments('check_in')}, {_event_assignments('check_out')},
                    status=%s, hours_worked=%s, early_checkout=%s, notes=%s, verified_by=%s
                WHERE attendance_id=%s
                """,
                (
                    *_event_params(record.check_in),
                    *_event_params(record.check_out),
                    record.status.value,
                    record.hours_worked,
                    1 if record.early_checkout else 0,
                    record.notes,
                    record.verified_by,
                    int(record.attendance_id),
                ),
            )
            # MySQL reports 0 affected rows when nothing changed, so re-check existence.
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM attendance_records WHERE attendance_id=%s", (int(record.attendance_id),))
            return fetchone(cur) is not None

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def list_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = _where(AttendanceFilter(start_date=start_date, end_date=end_date, user_id=user_id))
        sql = f"SELECT {_RECORD_COLUMNS} FROM attendance_records ar WHERE {where} ORDER BY ar.work_date DESC"
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_record(r) for r in fetchall(cur)]

    def count_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        where, params = _where(AttendanceFilter(start_date=start_date, end_date=end_date, user_id=user_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_records ar WHERE {where}", tuple(params))
            return int(fetchone(cur)["n"])

    def search(
        self,
        flt: AttendanceFilter,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        where, params = _where(flt)
        sql = f"""
            SELECT
                {_RECORD_COLUMNS},
                u.full_name, u.email, u.role, u.registration_id, u.dept_id,
                d.name AS dept_name
            FROM attendance_records ar
            JOIN users u ON u.user_id = ar.user_id
            LEFT JOIN departments d ON d.dept_id = u.dept_id
            WHERE {where}
            ORDER BY ar.work_date DESC, ar.user_id ASC
        """
        if limit is not None:
            sql += " LIMIT %s OFFSET %s"
            params += [int(limit), int(offset)]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [
                AttendanceReportRow(
                    record=_to_record(r),
                    full_name=r.get("full_name"),
                    email=r.get("email"),
                    role=r.get("role"),
                    registration_id=r.get("registration_id"),
                    dept_id=r.get("dept_id"),
                    dept_name=r.get("dept_name"),
                )
                for r in fetchall(cur)
            ]

    def count(self, flt: AttendanceFilter) -> int:
        where, params = _where(flt)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS n
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                WHERE {where}
                """,
                tuple(params),
            )
            return int(fetchone(cur)["n"])
