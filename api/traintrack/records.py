"""
Certificate records: the immutable data behind every issued certificate.

A record is built exactly once per completion event and never changes
afterwards. Re-rendering a certificate always starts from the stored record.

The ``digital_signature`` is a short token derived from who completed what and
when. It lets an administrator trace a printout back to its completion event.
It is NOT a cryptographic signature and must not be presented as proof against
forgery.
"""
import base64
import calendar
import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .config import CERT_DATE_FORMAT
from .errors import ValidationError
from .utils import canonical_json, sha256_bytes

logger = logging.getLogger(__name__)


class CourseType(str, Enum):
    one_time = "one-time"
    recurring = "recurring"


class Participant(BaseModel):
    id: str
    name: str


class Course(BaseModel):
    id: str
    title: str


class ValidityPeriod(BaseModel):
    """How long a recurring certificate stays valid after completion."""

    model_config = ConfigDict(frozen=True)

    months: int = 0
    days: int = 0

    def apply(self, start: date) -> date:
        # month arithmetic clamps to the end of month (Jan 31 + 1 month -> Feb 28/29)
        total = start.year * 12 + (start.month - 1) + self.months
        year, month_index = divmod(total, 12)
        month = month_index + 1
        day = min(start.day, calendar.monthrange(year, month)[1])
        return date(year, month, day) + timedelta(days=self.days)


class CertificateData(BaseModel):
    model_config = ConfigDict(frozen=True)

    certificate_id: str = Field(min_length=1)
    participant_id: str
    participant_name: str = Field(min_length=1)
    course_id: str
    course_name: str = Field(min_length=1)
    score: int = Field(ge=0, le=100)
    completion_date: str
    digital_signature: str
    course_type: CourseType = CourseType.one_time
    expires_at: Optional[str] = None
    issued_at: datetime

    @model_validator(mode="after")
    def _expiry_matches_course_type(self):
        if self.course_type == CourseType.recurring and not self.expires_at:
            raise ValueError("recurring certificates need expires_at")
        if self.course_type == CourseType.one_time and self.expires_at:
            raise ValueError("one-time certificates never expire")
        return self

    @property
    def is_recurring(self) -> bool:
        return self.course_type == CourseType.recurring


def new_certificate_id() -> str:
    # uuid4 carries 122 random bits; base32 keeps the id easy to read off a printout
    code = base64.b32encode(uuid.uuid4().bytes).decode("ascii").rstrip("=")
    return f"CERT-{code}"


def derive_signature(participant_id: str, course_id: str, completed_at: datetime) -> str:
    payload = canonical_json({
        "participant": str(participant_id),
        "course": str(course_id),
        "completed_at": _as_utc(completed_at).isoformat(),
    })
    token = sha256_bytes(payload.encode())[:16].upper()
    return "-".join(token[i:i + 4] for i in range(0, len(token), 4))


def _as_datetime(value: Union[datetime, date]) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise ValidationError(f"completion instant must be a date or datetime, got {value!r}")


def _as_utc(value: datetime) -> datetime:
    # naive instants are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce_period(value) -> ValidityPeriod:
    if isinstance(value, ValidityPeriod):
        return value
    if isinstance(value, timedelta):
        if value % timedelta(days=1):
            raise ValidationError(f"validity period must be whole days, got {value}")
        return ValidityPeriod(days=value.days)
    raise ValidationError(f"unsupported validity period {value!r}")


def _require_name(value: Optional[str], what: str) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{what} must not be empty")
    return name


def build_certificate_record(
    participant: Participant,
    course: Course,
    score: int,
    completion_instant: Union[datetime, date],
    course_type: Union[CourseType, str] = CourseType.one_time,
    validity_period: Union[ValidityPeriod, timedelta, None] = None,
    *,
    issued_at: Optional[datetime] = None,
    certificate_id: Optional[str] = None,
    date_format: str = CERT_DATE_FORMAT,
) -> CertificateData:
    """
    Turn a completion event into an immutable certificate record.

    ``certificate_id`` is only passed when reissuing, so the certificate keeps
    its identity. ``issued_at`` defaults to now; it is stored on the record so
    every later render stamps the same issuance date.

    Raises ValidationError instead of coercing bad input.
    """
    if participant is None or course is None:
        raise ValidationError("participant and course must be resolved before issuance")
    if not participant.id or not course.id:
        raise ValidationError("participant and course ids are required")
    participant_name = _require_name(participant.name, "participant name")
    course_name = _require_name(course.title, "course name")

    if isinstance(score, bool) or not isinstance(score, int):
        raise ValidationError(f"score must be an integer, got {score!r}")
    if not 0 <= score <= 100:
        raise ValidationError(f"score must be between 0 and 100, got {score}")

    try:
        kind = CourseType(course_type)
    except ValueError:
        raise ValidationError(f"unknown course type {course_type!r}") from None

    completed_at = _as_datetime(completion_instant)
    completed_on = completed_at.date()

    expires_at = None
    if kind == CourseType.recurring:
        if validity_period is None:
            raise ValidationError("recurring courses need a validity period")
        period = _coerce_period(validity_period)
        try:
            expiry = period.apply(completed_on)
        except (ValueError, OverflowError):
            raise ValidationError(f"validity period {period} is out of range") from None
        if expiry <= completed_on:
            raise ValidationError("validity period must be positive")
        expires_at = expiry.strftime(date_format)

    record = CertificateData(
        certificate_id=certificate_id or new_certificate_id(),
        participant_id=str(participant.id),
        participant_name=participant_name,
        course_id=str(course.id),
        course_name=course_name,
        score=score,
        completion_date=completed_on.strftime(date_format),
        digital_signature=derive_signature(participant.id, course.id, completed_at),
        course_type=kind,
        expires_at=expires_at,
        issued_at=_as_utc(issued_at or datetime.now(timezone.utc)),
    )
    logger.info(
        "built certificate %s for participant=%s course=%s (%s)",
        record.certificate_id, record.participant_id, record.course_id, kind.value,
    )
    return record
