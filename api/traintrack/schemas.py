from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from .records import CertificateData, CourseType

class IssueCertificate(BaseModel):
    participant_id: str
    participant_name: str
    course_id: str
    course_name: str
    # range is checked by the record builder so the error is a ValidationError
    score: int
    completed_at: datetime
    course_type: CourseType = CourseType.one_time
    validity_months: Optional[int] = None
    passing_score: Optional[int] = Field(default=None, ge=0, le=100)

class CertificateOut(BaseModel):
    certificate: CertificateData
    download_url: str

class CertificateVerification(BaseModel):
    certificate_id: str
    valid: bool
    expired: bool
    participant_name: str
    course_name: str
    course_type: CourseType
    completion_date: str
    expires_at: Optional[str] = None
    issued_at: datetime

class ExportRequest(BaseModel):
    certificate_ids: List[str] = Field(min_length=1)

class ArchiveQueued(BaseModel):
    certificate_id: str
    task_id: str
    pdf: str
    audit: str
