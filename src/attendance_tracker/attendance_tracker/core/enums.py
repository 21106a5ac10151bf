from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    FACULTY = "faculty"
    STUDENT = "student"


class AttendanceStatus(str, Enum):
    """Daily attendance status as stored in the database."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    EARLY_CHECKOUT = "early-checkout"
    LATE_EARLY_CHECKOUT = "late-early-checkout"


class CaptureMethod(str, Enum):
    """How a check-in or check-out was captured."""

    FACE_RECOGNITION = "face_recognition"
    MANUAL = "manual"
    QR_CODE = "qr_code"


class MarkType(str, Enum):
    CHECK_IN = "check-in"
    CHECK_OUT = "check-out"


class EventSlot(str, Enum):
    """The two halves of a daily record, as named by the admin API."""

    CHECK_IN = "checkIn"
    CHECK_OUT = "checkOut"

    @property
    def label(self) -> str:
        return "check-in" if self is EventSlot.CHECK_IN else "check-out"


class VerificationFilter(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"
