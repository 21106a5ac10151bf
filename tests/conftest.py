from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.attendance_tracker.attendance_tracker.attendance.model import (
    AttendanceFilter,
    AttendanceRecord,
    AttendanceReportRow,
    CaptureEvent,
)
from src.attendance_tracker.attendance_tracker.container import wire_services
from src.attendance_tracker.attendance_tracker.core.enums import AttendanceStatus, Role
from src.attendance_tracker.attendance_tracker.core.exceptions import DuplicateRecordError
from src.attendance_tracker.attendance_tracker.users.department_model import Department
from src.attendance_tracker.attendance_tracker.users.model import User

# Monday, 15 minutes past the default start of day.
FIXED_NOW = datetime(2025, 3, 10, 9, 15, 0)

QR_TOKEN = "OFFICE_QR"

ADMIN_ID = 1
STUDENT_ID = 2
NO_DEPT_ID = 3
ADMIN_DEPT_ID = 2
CS_DEPT_ID = 1


class InMemoryUsers:
    def __init__(self, users: list[User]):
        self._by_id = {u.user_id: u for u in users}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.email.lower() == email.lower()), None)


class InMemoryDepartments:
    def __init__(self, departments: list[Department]):
        self._by_id = {d.dept_id: d for d in departments}

    def get_by_id(self, dept_id: int) -> Optional[Department]:
        return self._by_id.get(int(dept_id))


class InMemoryAttendance:
    """Mirrors the conditional writes of the MySQL repository."""

    def __init__(self, users: InMemoryUsers, departments: InMemoryDepartments):
        self._records: dict[int, AttendanceRecord] = {}
        self._next_id = 1
        self._users = users
        self._departments = departments

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self._records.get(int(attendance_id))

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self._records.values() if r.user_id == user_id and r.work_date == work_date),
            None,
        )

    def insert(self, record: AttendanceRecord) -> int:
        if self.get_for_user_and_date(record.user_id, record.work_date):
            raise DuplicateRecordError("duplicate (user_id, work_date)")
        rid = self._next_id
        self._next_id += 1
        self._records[rid] = replace(record, attendance_id=rid)
        return rid

    def claim_checkin(self, *, user_id, work_date, check_in, status) -> bool:
        rec = self.get_for_user_and_date(user_id, work_date)
        if not rec or rec.check_in.is_recorded:
            return False
        self._records[rec.attendance_id] = replace(rec, check_in=check_in, status=status)
        return True

    def record_checkout(self, *, attendance_id, check_out, hours_worked, early_checkout, status) -> bool:
        rec = self.get_by_id(attendance_id)
        if not rec or not rec.check_in.is_recorded or rec.check_out.is_recorded:
            return False
        self._records[rec.attendance_id] = replace(
            rec,
            check_out=check_out,
            hours_worked=hours_worked,
            early_checkout=early_checkout,
            status=status,
        )
        return True

    def save(self, record: AttendanceRecord) -> bool:
        if record.attendance_id not in self._records:
            return False
        self._records[record.attendance_id] = record
        return True

    def delete(self, attendance_id: int) -> bool:
        return self._records.pop(int(attendance_id), None) is not None

    def _for_user(self, user_id, start_date=None, end_date=None):
        flt = AttendanceFilter(start_date=start_date, end_date=end_date, user_id=user_id)
        items = [r for r in self._records.values() if flt.matches(r)]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items

    def list_for_user(self, user_id, *, start_date=None, end_date=None, offset=0, limit=None):
        items = self._for_user(user_id, start_date, end_date)
        return items[offset : offset + limit] if limit else items[offset:]

    def count_for_user(self, user_id, *, start_date=None, end_date=None) -> int:
        return len(self._for_user(user_id, start_date, end_date))

    def _rows(self, flt: AttendanceFilter) -> list[AttendanceReportRow]:
        rows = []
        for r in sorted(self._records.values(), key=lambda r: (-r.work_date.toordinal(), r.user_id)):
            user = self._users.get_by_id(r.user_id)
            dept_id = user.dept_id if user else None
            if not flt.matches(r, dept_id=dept_id):
                continue
            dept = self._departments.get_by_id(dept_id) if dept_id else None
            rows.append(
                AttendanceReportRow(
                    record=r,
                    full_name=user.full_name if user else None,
                    email=user.email if user else None,
                    role=user.role.value if user else None,
                    registration_id=user.registration_id if user else None,
                    dept_id=dept_id,
                    dept_name=dept.name if dept else None,
                )
            )
        return rows

    def search(self, flt, *, offset=0, limit=None):
        rows = self._rows(flt)
        return rows[offset : offset + limit] if limit else rows[offset:]

    def count(self, flt) -> int:
        return len(self._rows(flt))


class FakeImageStore:
    def __init__(self):
        self.uploaded: list[str] = []

    def upload(self, base64_image: str, *, file_name: str) -> Optional[str]:
        self.uploaded.append(file_name)
        return f"https://img.test/{file_name}"


def make_record(
    attendance_id: int = 0,
    *,
    user_id: int = STUDENT_ID,
    work_date: date = FIXED_NOW.date(),
    check_in: Optional[datetime] = None,
    check_out: Optional[datetime] = None,
    verified: bool = False,
    status: AttendanceStatus = AttendanceStatus.PRESENT,
    hours_worked: float = 0.0,
) -> AttendanceRecord:
    def _event(at):
        if at is None:
            return CaptureEvent()
        return CaptureEvent(time=at, confidence=50.0, verified=verified)

    return AttendanceRecord(
        attendance_id=attendance_id,
        user_id=user_id,
        work_date=work_date,
        check_in=_event(check_in),
        check_out=_event(check_out),
        status=status,
        hours_worked=hours_worked,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers(
        [
            User(
                user_id=ADMIN_ID,
                full_name="Ada Admin",
                email="admin@example.com",
                password_hash=generate_password_hash("admin123"),
                role=Role.ADMIN,
                dept_id=ADMIN_DEPT_ID,
            ),
            User(
                user_id=STUDENT_ID,
                full_name="Sam Student",
                email="student@example.com",
                password_hash=generate_password_hash("student123"),
                role=Role.STUDENT,
                dept_id=CS_DEPT_ID,
                registration_id="CS-001",
            ),
            User(
                user_id=NO_DEPT_ID,
                full_name="Fay Faculty",
                email="faculty@example.com",
                password_hash=generate_password_hash("faculty123"),
                role=Role.FACULTY,
                dept_id=None,
            ),
        ]
    )


@pytest.fixture
def departments_repo() -> InMemoryDepartments:
    return InMemoryDepartments(
        [
            Department(dept_id=CS_DEPT_ID, name="Computer Science", start_time=time(9, 0), end_time=time(17, 0)),
            Department(dept_id=ADMIN_DEPT_ID, name="Administration", start_time=time(8, 30), end_time=time(16, 30)),
        ]
    )


@pytest.fixture
def attendance_repo(users_repo, departments_repo) -> InMemoryAttendance:
    return InMemoryAttendance(users_repo, departments_repo)


@pytest.fixture
def image_store() -> FakeImageStore:
    return FakeImageStore()


@pytest.fixture
def settings() -> dict:
    return {
        "DEFAULT_START_TIME": "09:00",
        "DEFAULT_END_TIME": "17:00",
        "AUTO_VERIFY_THRESHOLD": 80,
        "TRACK_EARLY_CHECKOUT_STATUS": False,
        "QR_TOKEN": QR_TOKEN,
    }


@pytest.fixture
def container(users_repo, departments_repo, attendance_repo, image_store, settings):
    return wire_services(
        conn=None,
        users_repo=users_repo,
        departments_repo=departments_repo,
        attendance_repo=attendance_repo,
        images=image_store,
        settings=settings,
        qr_decoder=lambda base64_image: QR_TOKEN,
    )


@pytest.fixture(name="make_record")
def make_record_fixture():
    return make_record
