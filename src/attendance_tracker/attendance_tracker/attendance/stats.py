from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord


def current_streak(days: Iterable[date]) -> int:
    """Longest run of consecutive calendar days.

    Days are walked in ascending order; the run grows when the gap to the
    previous day is exactly one and restarts at 1 otherwise.
    """
    ordered = sorted(days)
    if not ordered:
        return 0

    best = run = 1
    for prev, curr in zip(ordered, ordered[1:]):
        run = run + 1 if (curr - prev).days == 1 else 1
        best = max(best, run)
    return best


def _percent(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total else 0.0


@dataclass(frozen=True)
class AttendanceSummary:
    total: int
    present: int
    late: int
    absent: int
    half_day: int
    early_checkouts: int
    pending_verification: int
    average_hours: float
    streak: Optional[int] = None

    def to_dict(self) -> dict:
        out = {
            "totalDays": self.total,
            "present": self.present,
            "late": self.late,
            "absent": self.absent,
            "halfDay": self.half_day,
            "earlyCheckouts": self.early_checkouts,
            "pendingVerification": self.pending_verification,
            "presentPercentage": _percent(self.present, self.total),
            "latePercentage": _percent(self.late, self.total),
            "absentPercentage": _percent(self.absent, self.total),
            "averageHoursWorked": self.average_hours,
        }
        if self.streak is not None:
            out["currentStreak"] = self.streak
        return out


def summarize(records: Sequence[AttendanceRecord], *, with_streak: bool = False) -> AttendanceSummary:
    def count(status: AttendanceStatus) -> int:
        return sum(1 for r in records if r.status == status)

    worked = [r.hours_worked for r in records if r.hours_worked]
    average = round(sum(worked) / len(worked), 2) if worked else 0.0

    return AttendanceSummary(
        total=len(records),
        present=count(AttendanceStatus.PRESENT),
        late=count(AttendanceStatus.LATE),
        absent=count(AttendanceStatus.ABSENT),
        half_day=count(AttendanceStatus.HALF_DAY),
        early_checkouts=sum(1 for r in records if r.early_checkout),
        pending_verification=sum(1 for r in records if r.has_pending_verification),
        average_hours=average,
        streak=current_streak(r.work_date for r in records) if with_streak else None,
    )
