from __future__ import annotations

from datetime import timedelta

import pytest

from src.attendance_tracker.attendance_tracker.attendance.model import CapturePayload
from src.attendance_tracker.attendance_tracker.container import wire_services
from src.attendance_tracker.attendance_tracker.core.enums import AttendanceStatus, CaptureMethod
from src.attendance_tracker.attendance_tracker.core.exceptions import ConflictError, ValidationError

STUDENT = 2  # Computer Science, 09:00-17:00
ADMIN = 1  # Administration, 08:30-16:30
NO_DEPT = 3

FACE = CapturePayload(method=CaptureMethod.FACE_RECOGNITION, confidence=92.0, location="Lab 1")


def test_checkin_after_start_is_late_and_auto_verified(container, attendance_repo, fixed_now):
    rec = container.attendance_service.check_in(STUDENT, FACE, now=fixed_now)

    assert rec.status == AttendanceStatus.LATE
    assert rec.check_in.time == fixed_now
    assert rec.check_in.method == CaptureMethod.FACE_RECOGNITION
    assert rec.check_in.verified is True
    assert rec.check_in.location == "Lab 1"
    assert not rec.check_out.is_recorded
    assert attendance_repo.get_for_user_and_date(STUDENT, fixed_now.date()) == rec


def test_checkin_before_start_is_present(container, fixed_now):
    now = fixed_now.replace(hour=8, minute=55)

    rec = container.attendance_service.check_in(STUDENT, FACE, now=now)

    assert rec.status == AttendanceStatus.PRESENT


def test_low_confidence_checkin_is_pending(container, fixed_now):
    payload = CapturePayload(method=CaptureMethod.FACE_RECOGNITION, confidence=60.0)

    rec = container.attendance_service.check_in(STUDENT, payload, now=fixed_now)

    assert rec.check_in.verified is False
    assert rec.has_pending_verification


def test_checkout_computes_hours_and_flags_early(container, fixed_now):
    container.attendance_service.check_in(STUDENT, FACE, now=fixed_now)

    rec = container.attendance_service.check_out(STUDENT, FACE, now=fixed_now.replace(hour=16, minute=30))

    assert rec.hours_worked == 7.25
    assert rec.early_checkout is True
    assert rec.status == AttendanceStatus.LATE
    assert rec.check_out.verified is True


def test_checkout_after_end_is_not_early(container, fixed_now):
    container.attendance_service.check_in(STUDENT, FACE, now=fixed_now.replace(hour=9, minute=0))

    rec = container.attendance_service.check_out(STUDENT, FACE, now=fixed_now.replace(hour=17, minute=30))

    assert rec.early_checkout is False
    assert rec.status == AttendanceStatus.PRESENT
    assert rec.hours_worked == 8.5


def test_early_checkout_status_when_tracking_enabled(
    users_repo, departments_repo, attendance_repo, image_store, settings, fixed_now
):
    settings["TRACK_EARLY_CHECKOUT_STATUS"] = True
    container = wire_services(
        conn=None,
        users_repo=users_repo,
        departments_repo=departments_repo,
        attendance_repo=attendance_repo,
        images=image_store,
        settings=settings,
    )
    container.attendance_service.check_in(STUDENT, FACE, now=fixed_now)

    rec = container.attendance_service.check_out(STUDENT, FACE, now=fixed_now.replace(hour=16, minute=30))

    assert rec.status == AttendanceStatus.LATE_EARLY_CHECKOUT


def test_second_checkin_same_day_conflicts(container, fixed_now):
    first = container.attendance_service.check_in(STUDENT, FACE, now=fixed_now)

    with pytest.raises(ConflictError) as exc:
        container.attendance_service.check_in(STUDENT, FACE, now=fixed_now + timedelta(minutes=5))

    assert str(exc.value) == "Already checked in today"
    assert exc.value.record == first


def test_checkout_without_checkin_is_rejected(container, fixed_now):
    with pytest.raises(ValidationError) as exc:
        container.attendance_service.check_out(STUDENT, FACE, now=fixed_now)

    assert not isinstance(exc.value, ConflictError)
    assert str(exc.value) == "Must check in before checking out"


def test_second_checkout_conflicts(container, fixed_now):
    container.attendance_service.check_in(STUDENT, FACE, now=fixed_now)
    done = container.attendance_service.check_out(STUDENT, FACE, now=fixed_now.replace(hour=17, minute=5))

    with pytest.raises(ConflictError) as exc:
        container.attendance_service.check_out(STUDENT, FACE, now=fixed_now.replace(hour=17, minute=10))

    assert str(exc.value) == "Already checked out today"
    assert exc.value.record == done


def test_department_cutoffs_override_defaults(container, fixed_now):
    now = fixed_now.replace(hour=8, minute=45)

    admin_rec = container.attendance_service.check_in(ADMIN, FACE, now=now)
    no_dept_rec = container.attendance_service.check_in(NO_DEPT, FACE, now=now)

    assert admin_rec.status == AttendanceStatus.LATE
    assert no_dept_rec.status == AttendanceStatus.PRESENT


def test_checkin_fills_back_filled_day_without_checkin(container, fixed_now):
    placeholder = container.attendance_admin_service.create(
        ADMIN, user_id=STUDENT, work_date=fixed_now.date(), status=AttendanceStatus.ABSENT
    )

    rec = container.attendance_service.check_in(STUDENT, FACE, now=fixed_now)

    assert rec.attendance_id == placeholder.attendance_id
    assert rec.status == AttendanceStatus.LATE
    assert rec.check_in.time == fixed_now


def test_captured_photo_is_uploaded(container, image_store, fixed_now):
    payload = CapturePayload(method=CaptureMethod.FACE_RECOGNITION, confidence=90.0, base64_image="aGVsbG8=")

    rec = container.attendance_service.check_in(STUDENT, payload, now=fixed_now)

    assert len(image_store.uploaded) == 1
    assert image_store.uploaded[0].startswith(f"attendance_in_{STUDENT}_")
    assert rec.check_in.image_url == f"https://img.test/{image_store.uploaded[0]}"


def test_history_is_newest_first_and_paginated(container, fixed_now):
    for offset in range(3):
        day = fixed_now - timedelta(days=offset)
        container.attendance_service.check_in(STUDENT, FACE, now=day)

    page = container.attendance_service.history(STUDENT, page=1, page_size=2)

    assert page.total == 3
    assert page.pages == 2
    assert [r.work_date for r in page.items] == [fixed_now.date(), (fixed_now - timedelta(days=1)).date()]


def test_today_returns_none_without_record(container, fixed_now):
    assert container.attendance_service.today(STUDENT, now=fixed_now) is None


def test_user_stats_include_streak(container, fixed_now):
    for offset in (0, 1, 2, 5):
        container.attendance_service.check_in(STUDENT, FACE, now=fixed_now - timedelta(days=offset))

    summary = container.attendance_service.stats(STUDENT)

    assert summary.total == 4
    assert summary.late == 4
    assert summary.streak == 3
