from __future__ import annotations

from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...workhours.model import WorkHours
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, normal check-out."""

    def decide_checkin(self, *, now: datetime, work_date: date, hours: WorkHours) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(
        self, *, now: datetime, work_date: date, hours: WorkHours, current: AttendanceStatus
    ) -> StatusDecision:
        return StatusDecision(status=current)
