from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import AttendanceFilter
from src.attendance_tracker.attendance_tracker.core.enums import (
    AttendanceStatus,
    CaptureMethod,
    EventSlot,
    VerificationFilter,
)
from src.attendance_tracker.attendance_tracker.core.exceptions import ConflictError, NotFoundError, ValidationError

ADMIN = 1
STUDENT = 2
NO_DEPT = 3


@pytest.fixture
def admin(container):
    return container.attendance_admin_service


@pytest.fixture
def full_day(attendance_repo, make_record, fixed_now):
    """A pending check-in/check-out pair for the student."""
    rid = attendance_repo.insert(
        make_record(
            check_in=fixed_now,
            check_out=fixed_now.replace(hour=16, minute=30),
            status=AttendanceStatus.LATE,
            hours_worked=7.25,
        )
    )
    return rid


def test_verify_marks_event_and_records_admin(admin, full_day):
    rec = admin.verify(ADMIN, full_day, EventSlot.CHECK_IN)

    assert rec.check_in.verified is True
    assert rec.check_out.verified is False
    assert rec.verified_by == ADMIN


def test_verify_missing_event_is_not_found(admin, attendance_repo, make_record, fixed_now):
    rid = attendance_repo.insert(make_record(check_in=fixed_now))

    with pytest.raises(NotFoundError, match="No check-out record found"):
        admin.verify(ADMIN, rid, EventSlot.CHECK_OUT)


def test_verify_unknown_record_is_not_found(admin):
    with pytest.raises(NotFoundError):
        admin.verify(ADMIN, 999, EventSlot.CHECK_IN)


def test_bulk_verify_reports_partial_failures(admin, attendance_repo, make_record, fixed_now):
    first = attendance_repo.insert(make_record(check_in=fixed_now))
    second = attendance_repo.insert(make_record(user_id=NO_DEPT, check_in=fixed_now))

    result = admin.bulk_verify(ADMIN, [first, second, 999, "abc"], EventSlot.CHECK_IN)

    assert result.success_count == 2
    assert result.error_count == 2
    assert [e["id"] for e in result.errors] == [999, "abc"]
    assert attendance_repo.get_by_id(first).check_in.verified is True
    assert attendance_repo.get_by_id(second).check_in.verified is True


def test_reject_checkin_clears_both_events(admin, full_day):
    rec = admin.reject(ADMIN, full_day, EventSlot.CHECK_IN)

    assert not rec.check_in.is_recorded
    assert not rec.check_out.is_recorded
    assert rec.hours_worked == 0.0
    assert rec.early_checkout is False
    assert rec.status == AttendanceStatus.ABSENT


def test_reject_checkout_keeps_checkin(admin, full_day, fixed_now):
    rec = admin.reject(ADMIN, full_day, EventSlot.CHECK_OUT)

    assert rec.check_in.time == fixed_now
    assert not rec.check_out.is_recorded
    assert rec.hours_worked == 0.0
    assert rec.status == AttendanceStatus.LATE


def test_reject_missing_event_is_not_found(admin, attendance_repo, make_record, fixed_now):
    rid = attendance_repo.insert(make_record(check_in=fixed_now))

    with pytest.raises(NotFoundError):
        admin.reject(ADMIN, rid, EventSlot.CHECK_OUT)


def test_update_times_recomputes_hours(admin, full_day, fixed_now):
    rec = admin.update(
        ADMIN,
        full_day,
        check_in_time=fixed_now.replace(hour=8, minute=0),
        check_out_time=fixed_now.replace(hour=17, minute=0),
        status=AttendanceStatus.PRESENT,
        notes="corrected by admin",
    )

    assert rec.hours_worked == 9.0
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.notes == "corrected by admin"
    assert rec.verified_by == ADMIN


def test_update_rejects_checkout_before_checkin(admin, full_day, fixed_now):
    with pytest.raises(ValidationError):
        admin.update(ADMIN, full_day, check_out_time=fixed_now.replace(hour=8, minute=0))


def test_update_verification_flag_ignored_for_missing_event(admin, attendance_repo, make_record, fixed_now):
    rid = attendance_repo.insert(make_record(check_in=fixed_now))

    rec = admin.update(ADMIN, rid, check_in_verified=True, check_out_verified=True)

    assert rec.check_in.verified is True
    assert not rec.check_out.is_recorded
    assert rec.check_out.verified is False


def test_update_checkout_without_checkin_is_rejected(admin, attendance_repo, make_record, fixed_now):
    rid = attendance_repo.insert(make_record(status=AttendanceStatus.ABSENT))

    with pytest.raises(ValidationError):
        admin.update(ADMIN, rid, check_out_time=fixed_now)


def test_create_backfills_verified_manual_events(admin, fixed_now):
    day = fixed_now.date() - timedelta(days=7)

    rec = admin.create(
        ADMIN,
        user_id=STUDENT,
        work_date=day,
        status=AttendanceStatus.PRESENT,
        check_in_time=datetime.combine(day, datetime.min.time()).replace(hour=9),
        check_out_time=datetime.combine(day, datetime.min.time()).replace(hour=17, minute=30),
        notes="forgot badge",
    )

    assert rec.attendance_id > 0
    assert rec.hours_worked == 8.5
    assert rec.check_in.method is CaptureMethod.MANUAL
    assert rec.check_in.verified and rec.check_out.verified
    assert rec.verified_by == ADMIN


def test_create_duplicate_day_conflicts(admin, full_day, fixed_now):
    with pytest.raises(ConflictError, match="already exists") as exc:
        admin.create(ADMIN, user_id=STUDENT, work_date=fixed_now.date(), status=AttendanceStatus.ABSENT)

    assert exc.value.record.attendance_id == full_day


def test_create_for_unknown_user_is_not_found(admin, fixed_now):
    with pytest.raises(NotFoundError):
        admin.create(ADMIN, user_id=42, work_date=fixed_now.date(), status=AttendanceStatus.ABSENT)


def test_delete_removes_record(admin, full_day):
    admin.delete(ADMIN, full_day)

    with pytest.raises(NotFoundError):
        admin.get(full_day)
    with pytest.raises(NotFoundError):
        admin.delete(ADMIN, full_day)


def test_list_all_filters_are_combined(admin, attendance_repo, make_record, fixed_now):
    attendance_repo.insert(make_record(check_in=fixed_now, verified=True))
    attendance_repo.insert(make_record(user_id=NO_DEPT, check_in=fixed_now))
    attendance_repo.insert(make_record(work_date=date(2025, 2, 1), check_in=datetime(2025, 2, 1, 9, 0)))

    by_dept = admin.list_all(AttendanceFilter(dept_id=1))
    pending = admin.list_all(AttendanceFilter(verification=VerificationFilter.UNVERIFIED))
    march_cs = admin.list_all(AttendanceFilter(dept_id=1, start_date=date(2025, 3, 1)))

    assert by_dept.total == 2
    assert {row.record.user_id for row in pending.items} == {STUDENT, NO_DEPT}
    assert pending.total == 2
    assert march_cs.total == 1
    assert march_cs.items[0].dept_name == "Computer Science"


def test_admin_stats_count_pending(admin, attendance_repo, make_record, fixed_now):
    attendance_repo.insert(make_record(check_in=fixed_now, status=AttendanceStatus.LATE))
    attendance_repo.insert(make_record(user_id=NO_DEPT, status=AttendanceStatus.ABSENT))

    summary = admin.stats(AttendanceFilter())

    assert summary.total == 2
    assert summary.late == 1
    assert summary.absent == 1
    assert summary.pending_verification == 1
    assert summary.streak is None
