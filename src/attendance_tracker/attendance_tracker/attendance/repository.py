from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceFilter, AttendanceRecord, AttendanceReportRow, CaptureEvent


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> int:
        """Store a new record; raises DuplicateRecordError if (user, date) exists."""

        raise NotImplementedError

    def claim_checkin(
        self,
        *,
        user_id: int,
        work_date: date,
        check_in: CaptureEvent,
        status: AttendanceStatus,
    ) -> bool:
        """Set the check-in of an existing record only if it has none yet."""

        raise NotImplementedError

    def record_checkout(
        self,
        *,
        attendance_id: int,
        check_out: CaptureEvent,
        hours_worked: float,
        early_checkout: bool,
        status: AttendanceStatus,
    ) -> bool:
        """Set the check-out only if a check-in exists and no check-out does."""

        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> bool:
        """Admin-only overwrite of every mutable field."""

        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def count_for_user(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        raise NotImplementedError

    def search(
        self,
        flt: AttendanceFilter,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> Sequence[AttendanceReportRow]:
        raise NotImplementedError

    def count(self, flt: AttendanceFilter) -> int:
        raise NotImplementedError
