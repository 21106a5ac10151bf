from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...workhours.model import WorkHours
from .base import AttendanceStrategy, StatusDecision

_EARLY_STATUS = {
    AttendanceStatus.PRESENT: AttendanceStatus.EARLY_CHECKOUT,
    AttendanceStatus.LATE: AttendanceStatus.LATE_EARLY_CHECKOUT,
}


class EarlyCheckoutStrategy(AttendanceStrategy):
    """Check-out before the department's end cutoff.

    The record is always flagged. The status only changes when ``track_status``
    is on, and then only for present/late days.
    """

    def __init__(self, *, track_status: bool = False):
        self._track_status = track_status

    def decide_checkin(self, *, now: datetime, work_date: date, hours: WorkHours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(
        self, *, now: datetime, work_date: date, hours: WorkHours, current: AttendanceStatus
    ) -> StatusDecision:
        status = _EARLY_STATUS.get(current, current) if self._track_status else current
        return StatusDecision(status=status, early_checkout=True)
