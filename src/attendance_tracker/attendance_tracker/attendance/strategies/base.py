from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime

from ...core.enums import AttendanceStatus
from ...workhours.model import WorkHours


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    early_checkout: bool = False


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, work_date: date, hours: WorkHours) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(
        self, *, now: datetime, work_date: date, hours: WorkHours, current: AttendanceStatus
    ) -> StatusDecision:
        raise NotImplementedError
