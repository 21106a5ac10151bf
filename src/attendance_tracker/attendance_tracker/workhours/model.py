from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time

from ..core.constants import DEFAULT_END_TIME, DEFAULT_START_TIME


@dataclass(frozen=True)
class WorkHours:
    """Time-of-day cutoffs used to classify lateness and early departure."""

    start_time: time = DEFAULT_START_TIME
    end_time: time = DEFAULT_END_TIME

    def late_cutoff(self, day: date) -> datetime:
        return datetime.combine(day, self.start_time)

    def end_cutoff(self, day: date) -> datetime:
        return datetime.combine(day, self.end_time)
