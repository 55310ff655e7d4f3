from typing import Optional
from datetime import date, datetime, timezone
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field as ORMField

from .config import CERT_DATE_FORMAT
from .records import CertificateData, CourseType

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _aware(value: datetime) -> datetime:
    # sqlite hands datetimes back without tzinfo; everything is stored as UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

class CertificateRecord(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("participant_id", "course_id", name="uq_certificate_participant_course"),
    )

    id: Optional[int] = ORMField(default=None, primary_key=True)
    certificate_id: str = ORMField(index=True)
    participant_id: str
    participant_name: str
    course_id: str
    course_name: str
    score: int
    course_type: str = CourseType.one_time.value
    completion_date: str
    expires_at: Optional[str] = None
    expires_on: Optional[date] = None
    digital_signature: str
    completed_at: datetime
    issued_at: datetime
    created_at: datetime = ORMField(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    @classmethod
    def from_data(cls, data: CertificateData, completed_at: datetime) -> "CertificateRecord":
        return cls(certificate_id=data.certificate_id, completed_at=completed_at,
                   **_columns(data))

    def replace_with(self, data: CertificateData, completed_at: datetime):
        if data.certificate_id != self.certificate_id:
            raise ValueError("a reissued certificate keeps its certificate_id")
        for key, value in _columns(data).items():
            setattr(self, key, value)
        self.completed_at = completed_at
        self.updated_at = _utcnow()

    def to_data(self) -> CertificateData:
        return CertificateData(
            certificate_id=self.certificate_id,
            participant_id=self.participant_id,
            participant_name=self.participant_name,
            course_id=self.course_id,
            course_name=self.course_name,
            score=self.score,
            completion_date=self.completion_date,
            digital_signature=self.digital_signature,
            course_type=CourseType(self.course_type),
            expires_at=self.expires_at,
            issued_at=_aware(self.issued_at),
        )

def _columns(data: CertificateData) -> dict:
    return {
        "participant_id": data.participant_id,
        "participant_name": data.participant_name,
        "course_id": data.course_id,
        "course_name": data.course_name,
        "score": data.score,
        "course_type": data.course_type.value,
        "completion_date": data.completion_date,
        "expires_at": data.expires_at,
        "expires_on": _expiry_date(data),
        "digital_signature": data.digital_signature,
        "issued_at": data.issued_at,
    }

def _expiry_date(data: CertificateData) -> Optional[date]:
    # parsed once at write time; later changes to the date format leave stored rows readable
    if not data.expires_at:
        return None
    return datetime.strptime(data.expires_at, CERT_DATE_FORMAT).date()
