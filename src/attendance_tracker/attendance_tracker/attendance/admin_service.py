from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import hours_between
from ..core.constants import SENTINEL_CONFIDENCE
from ..core.enums import AttendanceStatus, CaptureMethod, EventSlot
from ..core.exceptions import ConflictError, DomainError, DuplicateRecordError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .export import rows_to_csv
from .model import (
    EMPTY_EVENT,
    AttendanceFilter,
    AttendanceRecord,
    AttendanceReportRow,
    BulkResult,
    CaptureEvent,
    Page,
)
from .repository import AttendanceRepository
from .stats import AttendanceSummary, summarize

logger = logging.getLogger(__name__)


def _admin_event(at: datetime) -> CaptureEvent:
    return CaptureEvent(time=at, method=CaptureMethod.MANUAL, confidence=SENTINEL_CONFIDENCE, verified=True)


def _recompute_hours(record: AttendanceRecord) -> AttendanceRecord:
    if record.check_in.is_recorded and record.check_out.is_recorded:
        if record.check_out.time < record.check_in.time:
            raise ValidationError("Check-out time cannot be earlier than check-in time")
        return replace(record, hours_worked=hours_between(record.check_in.time, record.check_out.time))
    return record


class AttendanceAdminService:
    """Admin side of the lifecycle: verification workflow, overrides, reporting."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def get(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(record_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _save(self, record: AttendanceRecord) -> AttendanceRecord:
        if not self._attendance.save(record):
            raise NotFoundError("Attendance record not found")
        return self._attendance.get_by_id(record.attendance_id) or record

    def verify(self, admin_id: int, record_id: int, slot: EventSlot) -> AttendanceRecord:
        record = self.get(record_id)
        event = record.event(slot)
        if not event.is_recorded:
            raise NotFoundError(f"No {slot.label} record found")

        updated = replace(record.with_event(slot, replace(event, verified=True)), verified_by=int(admin_id))
        saved = self._save(updated)
        logger.info("Admin %s verified %s of record %s", admin_id, slot.label, record_id)
        return saved

    def bulk_verify(self, admin_id: int, record_ids: Iterable[int], slot: EventSlot) -> BulkResult:
        result = BulkResult()
        for record_id in record_ids:
            try:
                self.verify(admin_id, int(record_id), slot)
                result.success_count += 1
            except (DomainError, TypeError, ValueError) as e:
                result.error_count += 1
                result.errors.append({"id": record_id, "message": str(e)})

        logger.info(
            "Admin %s bulk-verified %s: %d ok, %d failed",
            admin_id,
            slot.label,
            result.success_count,
            result.error_count,
        )
        return result

    def reject(self, admin_id: int, record_id: int, slot: EventSlot) -> AttendanceRecord:
        record = self.get(record_id)
        if not record.event(slot).is_recorded:
            raise NotFoundError(f"No {slot.label} record found")

        updated = record.with_event(slot, EMPTY_EVENT)
        if slot is EventSlot.CHECK_IN:
            # A check-out cannot stand without the check-in it closes.
            updated = replace(updated, check_out=EMPTY_EVENT)

        if not updated.check_out.is_recorded:
            updated = replace(updated, hours_worked=0.0, early_checkout=False)

        if slot is EventSlot.CHECK_IN and not updated.check_out.is_recorded:
            updated = replace(updated, status=AttendanceStatus.ABSENT)

        saved = self._save(replace(updated, verified_by=int(admin_id)))
        logger.info("Admin %s rejected %s of record %s", admin_id, slot.label, record_id)
        return saved

    def update(
        self,
        admin_id: int,
        record_id: int,
        *,
        status: Optional[AttendanceStatus] = None,
        notes: Optional[str] = None,
        check_in_verified: Optional[bool] = None,
        check_out_verified: Optional[bool] = None,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
    ) -> AttendanceRecord:
        record = self.get(record_id)

        if check_in_verified is not None and record.check_in.is_recorded:
            record = replace(record, check_in=replace(record.check_in, verified=bool(check_in_verified)))
        if check_out_verified is not None and record.check_out.is_recorded:
            record = replace(record, check_out=replace(record.check_out, verified=bool(check_out_verified)))

        if check_in_time is not None:
            if record.check_in.is_recorded:
                record = replace(record, check_in=replace(record.check_in, time=check_in_time))
            else:
                record = replace(record, check_in=_admin_event(check_in_time))

        if check_out_time is not None:
            if not record.check_in.is_recorded:
                raise ValidationError("Cannot set a check-out without a check-in")
            if record.check_out.is_recorded:
                record = replace(record, check_out=replace(record.check_out, time=check_out_time))
            else:
                record = replace(record, check_out=_admin_event(check_out_time))

        record = _recompute_hours(record)

        if status is not None:
            record = replace(record, status=status)
        if notes is not None:
            record = replace(record, notes=notes)

        saved = self._save(replace(record, verified_by=int(admin_id)))
        logger.info("Admin %s updated record %s", admin_id, record_id)
        return saved

    def create(
        self,
        admin_id: int,
        *,
        user_id: int,
        work_date: date,
        status: AttendanceStatus,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        """Back-fill a day that has no self-reported attendance."""

        if not self._users.get_by_id(int(user_id)):
            raise NotFoundError("User not found")
        if check_out_time is not None and check_in_time is None:
            raise ValidationError("Cannot set a check-out without a check-in")

        record = AttendanceRecord(
            attendance_id=0,
            user_id=int(user_id),
            work_date=work_date,
            check_in=_admin_event(check_in_time) if check_in_time else EMPTY_EVENT,
            check_out=_admin_event(check_out_time) if check_out_time else EMPTY_EVENT,
            status=status,
            notes=notes,
            verified_by=int(admin_id),
        )
        record = _recompute_hours(record)

        try:
            new_id = self._attendance.insert(record)
        except DuplicateRecordError:
            raise ConflictError(
                "Attendance record already exists for this date",
                self._attendance.get_for_user_and_date(int(user_id), work_date),
            )

        logger.info("Admin %s back-filled %s for user %s", admin_id, work_date, user_id)
        return self._attendance.get_by_id(new_id) or replace(record, attendance_id=new_id)

    def delete(self, admin_id: int, record_id: int) -> None:
        if not self._attendance.delete(int(record_id)):
            raise NotFoundError("Attendance record not found")
        logger.info("Admin %s deleted record %s", admin_id, record_id)

    def list_all(self, flt: AttendanceFilter, *, page: int = 1, page_size: int = 20) -> Page:
        total = self._attendance.count(flt)
        rows = self._attendance.search(flt, offset=(page - 1) * page_size, limit=page_size)
        return Page(items=list(rows), total=total, page=page, page_size=page_size)

    def stats(self, flt: AttendanceFilter) -> AttendanceSummary:
        rows = self._attendance.search(flt)
        return summarize([r.record for r in rows])

    def export_rows(self, flt: AttendanceFilter) -> Sequence[AttendanceReportRow]:
        return list(self._attendance.search(flt))

    def export_csv(self, flt: AttendanceFilter) -> bytes:
        return rows_to_csv(self.export_rows(flt))
