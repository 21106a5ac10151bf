from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CaptureMethod, EventSlot, VerificationFilter


@dataclass(frozen=True)
class CaptureEvent:
    """One half of a daily record (check-in or check-out).

    An event with no ``time`` is empty: nothing was captured (or it was rejected).
    """

    time: Optional[datetime] = None
    method: Optional[CaptureMethod] = None
    confidence: Optional[float] = None
    verified: bool = False
    image_url: Optional[str] = None
    qr_code: Optional[str] = None
    location: Optional[str] = None

    @property
    def is_recorded(self) -> bool:
        return self.time is not None

    @property
    def is_pending(self) -> bool:
        return self.is_recorded and not self.verified


EMPTY_EVENT = CaptureEvent()


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance for one calendar day."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in: CaptureEvent = EMPTY_EVENT
    check_out: CaptureEvent = EMPTY_EVENT
    status: AttendanceStatus = AttendanceStatus.PRESENT
    hours_worked: float = 0.0
    early_checkout: bool = False
    notes: Optional[str] = None
    verified_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def event(self, slot: EventSlot) -> CaptureEvent:
        return self.check_in if slot is EventSlot.CHECK_IN else self.check_out

    def with_event(self, slot: EventSlot, event: CaptureEvent) -> "AttendanceRecord":
        if slot is EventSlot.CHECK_IN:
            return replace(self, check_in=event)
        return replace(self, check_out=event)

    @property
    def is_fully_verified(self) -> bool:
        """Both halves are verified or absent."""
        return not self.check_in.is_pending and not self.check_out.is_pending

    @property
    def has_pending_verification(self) -> bool:
        return self.check_in.is_pending or self.check_out.is_pending


@dataclass(frozen=True)
class AttendanceReportRow:
    """Read-model for admin lists and exports: a record joined with its owner."""

    record: AttendanceRecord
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    registration_id: Optional[str] = None
    dept_id: Optional[int] = None
    dept_name: Optional[str] = None


@dataclass(frozen=True)
class AttendanceFilter:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    user_id: Optional[int] = None
    dept_id: Optional[int] = None
    status: Optional[AttendanceStatus] = None
    verification: Optional[VerificationFilter] = None

    def matches(self, record: AttendanceRecord, *, dept_id: Optional[int] = None) -> bool:
        """In-memory equivalent of the repository query."""
        if self.start_date and record.work_date < self.start_date:
            return False
        if self.end_date and record.work_date > self.end_date:
            return False
        if self.user_id is not None and record.user_id != self.user_id:
            return False
        if self.dept_id is not None and dept_id != self.dept_id:
            return False
        if self.status is not None and record.status != self.status:
            return False
        if self.verification is VerificationFilter.VERIFIED and not record.is_fully_verified:
            return False
        if self.verification is VerificationFilter.UNVERIFIED and not record.has_pending_verification:
            return False
        return True


@dataclass(frozen=True)
class CapturePayload:
    """What a client submits when marking attendance."""

    method: CaptureMethod
    confidence: Optional[float] = None
    base64_image: Optional[str] = None
    qr_code: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class Page:
    items: list
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


@dataclass
class BulkResult:
    success_count: int = 0
    error_count: int = 0
    errors: list[dict] = field(default_factory=list)
