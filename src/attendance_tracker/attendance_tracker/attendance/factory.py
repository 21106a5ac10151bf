from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ..workhours.model import WorkHours
from .strategies.base import AttendanceStrategy
from .strategies.early_checkout_strategy import EarlyCheckoutStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on the cutoffs."""

    track_early_checkout_status: bool = False

    def for_checkin(self, *, now: datetime, work_date: date, hours: WorkHours) -> AttendanceStrategy:
        if now > hours.late_cutoff(work_date):
            return LateStrategy()
        return NormalStrategy()

    def for_checkout(self, *, now: datetime, work_date: date, hours: WorkHours) -> AttendanceStrategy:
        if now < hours.end_cutoff(work_date):
            return EarlyCheckoutStrategy(track_status=self.track_early_checkout_status)
        return NormalStrategy()
