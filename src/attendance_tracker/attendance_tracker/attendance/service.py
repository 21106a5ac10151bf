from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Mapping, Optional

from ..common.datetime_utils import hours_between, now_local
from ..common.validators import optional_confidence, require_enum
from ..core.constants import DEFAULT_AUTO_VERIFY_THRESHOLD, SENTINEL_CONFIDENCE
from ..core.enums import CaptureMethod, MarkType
from ..core.exceptions import ConflictError, DuplicateRecordError, ValidationError
from ..uploads.image_store import ImageStore
from ..uploads.qr import decode_qr_from_base64
from ..workhours.service import WorkHoursResolver
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, CaptureEvent, CapturePayload, Page
from .repository import AttendanceRepository
from .stats import AttendanceSummary, summarize

logger = logging.getLogger(__name__)


def _text(body: Mapping[str, Any], key: str) -> Optional[str]:
    value = body.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class AttendanceService:
    """Self-service side of the attendance lifecycle: check-in, check-out, own history."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        work_hours: WorkHoursResolver,
        images: ImageStore,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        auto_verify_threshold: float = DEFAULT_AUTO_VERIFY_THRESHOLD,
        qr_token: Optional[str] = None,
        qr_decoder: Callable[[str], Optional[str]] = decode_qr_from_base64,
    ):
        self._attendance = attendance
        self._work_hours = work_hours
        self._images = images
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._threshold = float(auto_verify_threshold)
        self._qr_token = qr_token or None
        self._qr_decoder = qr_decoder

    @property
    def qr_token(self) -> Optional[str]:
        return self._qr_token

    @staticmethod
    def parse_mark_request(body: Mapping[str, Any], *, manual: bool = False) -> tuple[MarkType, CapturePayload]:
        """Turn a ``mark`` / ``mark-manual`` JSON body into a typed payload.

        The client ``timestamp`` is ignored: the server clock decides.
        """
        mark_type = require_enum(body.get("type"), MarkType, "attendance type")

        qr_code = _text(body, "qrCode")
        image = _text(body, "base64Image")
        confidence = optional_confidence(body.get("confidence"))

        if manual:
            method = CaptureMethod.MANUAL
        elif body.get("method"):
            method = require_enum(body.get("method"), CaptureMethod, "method")
        elif qr_code:
            method = CaptureMethod.QR_CODE
        elif image or confidence is not None:
            method = CaptureMethod.FACE_RECOGNITION
        else:
            method = CaptureMethod.MANUAL

        if method != CaptureMethod.FACE_RECOGNITION:
            confidence = SENTINEL_CONFIDENCE

        return mark_type, CapturePayload(
            method=method,
            confidence=confidence if confidence is not None else 0.0,
            base64_image=image,
            qr_code=qr_code,
            location=_text(body, "location"),
        )

    def mark(self, user_id: int, mark_type: MarkType, payload: CapturePayload, *, now: datetime | None = None) -> AttendanceRecord:
        if mark_type is MarkType.CHECK_IN:
            return self.check_in(user_id, payload, now=now)
        return self.check_out(user_id, payload, now=now)

    def mark_manual(
        self, user_id: int, mark_type: MarkType, *, location: Optional[str] = None, now: datetime | None = None
    ) -> AttendanceRecord:
        """Self-reported capture: no photo, full confidence."""
        payload = CapturePayload(method=CaptureMethod.MANUAL, confidence=SENTINEL_CONFIDENCE, location=location)
        return self.mark(user_id, mark_type, payload, now=now)

    def _resolve_qr(self, payload: CapturePayload) -> Optional[str]:
        if payload.method != CaptureMethod.QR_CODE:
            return payload.qr_code

        qr_code = payload.qr_code
        if not qr_code and payload.base64_image:
            qr_code = self._qr_decoder(payload.base64_image)
        if not qr_code:
            raise ValidationError("No QR code found")
        if self._qr_token and qr_code != self._qr_token:
            raise ValidationError("Invalid QR code")
        return qr_code

    def _capture(self, user_id: int, mark_type: MarkType, payload: CapturePayload, now: datetime) -> CaptureEvent:
        qr_code = self._resolve_qr(payload)

        image_url = None
        if payload.base64_image:
            suffix = "in" if mark_type is MarkType.CHECK_IN else "out"
            file_name = f"attendance_{suffix}_{user_id}_{int(now.timestamp() * 1000)}.jpg"
            image_url = self._images.upload(payload.base64_image, file_name=file_name)

        confidence = float(payload.confidence or 0.0)
        return CaptureEvent(
            time=now,
            method=payload.method,
            confidence=confidence,
            verified=confidence >= self._threshold,
            image_url=image_url,
            qr_code=qr_code,
            location=payload.location,
        )

    def check_in(self, user_id: int, payload: CapturePayload, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        existing = self._attendance.get_for_user_and_date(user_id, today)
        if existing and existing.check_in.is_recorded:
            logger.warning("User %s tried to check in twice on %s", user_id, today)
            raise ConflictError("Already checked in today", existing)

        hours = self._work_hours.for_user(user_id)
        strategy = self._factory.for_checkin(now=now, work_date=today, hours=hours)
        decision = strategy.decide_checkin(now=now, work_date=today, hours=hours)

        event = self._capture(user_id, MarkType.CHECK_IN, payload, now)

        try:
            self._attendance.insert(
                AttendanceRecord(
                    attendance_id=0,
                    user_id=user_id,
                    work_date=today,
                    check_in=event,
                    status=decision.status,
                )
            )
        except DuplicateRecordError:
            # A record already exists for today (back-filled, rejected, or a concurrent check-in).
            if not self._attendance.claim_checkin(
                user_id=user_id, work_date=today, check_in=event, status=decision.status
            ):
                raise ConflictError("Already checked in today", self._attendance.get_for_user_and_date(user_id, today))

        record = self._attendance.get_for_user_and_date(user_id, today)
        logger.info("User %s checked in at %s (%s, %s)", user_id, now, decision.status.value, payload.method.value)
        return record

    def check_out(self, user_id: int, payload: CapturePayload, *, now: datetime | None = None) -> AttendanceRecord:
        now = now or now_local()
        today = now.date()

        record = self._attendance.get_for_user_and_date(user_id, today)
        if not record or not record.check_in.is_recorded:
            raise ValidationError("Must check in before checking out")
        if record.check_out.is_recorded:
            logger.warning("User %s tried to check out twice on %s", user_id, today)
            raise ConflictError("Already checked out today", record)

        hours = self._work_hours.for_user(user_id)
        strategy = self._factory.for_checkout(now=now, work_date=today, hours=hours)
        decision = strategy.decide_checkout(now=now, work_date=today, hours=hours, current=record.status)

        event = self._capture(user_id, MarkType.CHECK_OUT, payload, now)
        worked = hours_between(record.check_in.time, now)

        ok = self._attendance.record_checkout(
            attendance_id=record.attendance_id,
            check_out=event,
            hours_worked=worked,
            early_checkout=decision.early_checkout,
            status=decision.status,
        )
        if not ok:
            current = self._attendance.get_for_user_and_date(user_id, today)
            if not current or not current.check_in.is_recorded:
                raise ValidationError("Must check in before checking out")
            raise ConflictError("Already checked out today", current)

        logger.info("User %s checked out at %s (%.2f h, early=%s)", user_id, now, worked, decision.early_checkout)
        return self._attendance.get_for_user_and_date(user_id, today)

    def today(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        """Get today's attendance record for a user"""
        return self._attendance.get_for_user_and_date(user_id, (now or now_local()).date())

    def history(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page:
        total = self._attendance.count_for_user(user_id, start_date=start_date, end_date=end_date)
        items = self._attendance.list_for_user(
            user_id,
            start_date=start_date,
            end_date=end_date,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return Page(items=list(items), total=total, page=page, page_size=page_size)

    def stats(
        self,
        user_id: int,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> AttendanceSummary:
        records = self._attendance.list_for_user(user_id, start_date=start_date, end_date=end_date)
        return summarize(list(records), with_streak=True)
