from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .attendance.admin_service import AttendanceAdminService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import parse_time_of_day
from .core.constants import (
    DEFAULT_AUTO_VERIFY_THRESHOLD,
    DEFAULT_END_TIME,
    DEFAULT_IMAGE_FOLDER,
    DEFAULT_START_TIME,
    DEFAULT_UPLOAD_TIMEOUT_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .uploads.image_store import DisabledImageStore, ImageStore
from .uploads.imagekit_store import IMAGEKIT_UPLOAD_URL, ImageKitStore
from .users.mysql_department_repository import MySQLDepartmentRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.service import AuthService
from .workhours.model import WorkHours
from .workhours.service import WorkHoursResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection | None

    users_repo: Any
    departments_repo: Any
    attendance_repo: Any
    work_hours: WorkHoursResolver
    images: ImageStore

    auth_service: AuthService
    attendance_service: AttendanceService
    attendance_admin_service: AttendanceAdminService


def _setting(settings: Any, name: str, default: Any) -> Any:
    if isinstance(settings, Mapping):
        return settings.get(name, default)
    return getattr(settings, name, default)


def _build_image_store(settings: Any) -> ImageStore:
    private_key = _setting(settings, "IMAGEKIT_PRIVATE_KEY", None)
    if not private_key:
        logger.warning("IMAGEKIT_PRIVATE_KEY not set, captured photos will not be stored")
        return DisabledImageStore()
    return ImageKitStore(
        private_key,
        upload_url=_setting(settings, "IMAGEKIT_UPLOAD_URL", None) or IMAGEKIT_UPLOAD_URL,
        folder=_setting(settings, "IMAGEKIT_FOLDER", None) or DEFAULT_IMAGE_FOLDER,
        timeout=float(_setting(settings, "IMAGE_UPLOAD_TIMEOUT", DEFAULT_UPLOAD_TIMEOUT_SECONDS)),
    )


def _default_work_hours(settings: Any) -> WorkHours:
    start = _setting(settings, "DEFAULT_START_TIME", None)
    end = _setting(settings, "DEFAULT_END_TIME", None)
    return WorkHours(
        start_time=parse_time_of_day(start) if start else DEFAULT_START_TIME,
        end_time=parse_time_of_day(end) if end else DEFAULT_END_TIME,
    )


def wire_services(
    *,
    conn: DatabaseConnection | None,
    users_repo,
    departments_repo,
    attendance_repo,
    images: ImageStore,
    settings: Any = None,
    qr_decoder=None,
) -> Container:
    """Assemble services on top of the given repositories.

    Tests call this directly with in-memory repositories.
    """
    settings = settings or {}

    work_hours = WorkHoursResolver(users_repo, departments_repo, default=_default_work_hours(settings))
    factory = AttendanceStrategyFactory(
        track_early_checkout_status=bool(_setting(settings, "TRACK_EARLY_CHECKOUT_STATUS", False))
    )

    service_kwargs = dict(
        strategy_factory=factory,
        auto_verify_threshold=float(_setting(settings, "AUTO_VERIFY_THRESHOLD", DEFAULT_AUTO_VERIFY_THRESHOLD)),
        qr_token=_setting(settings, "QR_TOKEN", None),
    )
    if qr_decoder is not None:
        service_kwargs["qr_decoder"] = qr_decoder

    return Container(
        conn=conn,
        users_repo=users_repo,
        departments_repo=departments_repo,
        attendance_repo=attendance_repo,
        work_hours=work_hours,
        images=images,
        auth_service=AuthService(users_repo),
        attendance_service=AttendanceService(attendance_repo, work_hours, images, **service_kwargs),
        attendance_admin_service=AttendanceAdminService(attendance_repo, users_repo),
    )


def build_container(*, db_config: Mapping[str, Any], settings: Any = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config))

    return wire_services(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        images=_build_image_store(settings or {}),
        settings=settings,
    )
