import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends, Response
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import DEFAULT_PASSING_SCORE, DEFAULT_RENEWAL_MONTHS, PUBLIC_BASE_URL
from ..db import get_session
from ..errors import CertificateNotFound, ValidationError
from ..export import export_bundle
from ..models import CertificateRecord
from ..records import Course, CourseType, Participant, ValidityPeriod, build_certificate_record
from ..rendering import render_certificate_document
from ..schemas import ArchiveQueued, CertificateOut, CertificateVerification, ExportRequest, IssueCertificate
from ..storage import audit_key, certificate_key, get_bytes
from ..utils import make_token, read_token
from ..worker import archive_certificate as archive_task

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------- helpers ----------
def _today() -> date:
    return date.today()

def _get_record(session: Session, certificate_id: str) -> CertificateRecord:
    row = session.exec(
        select(CertificateRecord).where(CertificateRecord.certificate_id == certificate_id)
    ).first()
    if not row:
        raise CertificateNotFound(f"certificate {certificate_id} not found")
    return row

def _download_url(certificate_id: str) -> str:
    token = make_token({"certificate_id": certificate_id})
    return f"{PUBLIC_BASE_URL.rstrip('/')}/api/certificates/download/{token}"

def _pdf_response(pdf: bytes, filename: str) -> Response:
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

def _validity_for(payload: IssueCertificate):
    if payload.course_type != CourseType.recurring:
        return None
    months = payload.validity_months if payload.validity_months is not None else DEFAULT_RENEWAL_MONTHS
    return ValidityPeriod(months=months)

def _find_issued(session: Session, participant_id: str, course_id: str):
    return session.exec(
        select(CertificateRecord).where(
            CertificateRecord.participant_id == participant_id,
            CertificateRecord.course_id == course_id,
        )
    ).first()

def _store(session: Session, existing, record, completed_at: datetime) -> None:
    if existing:
        existing.replace_with(record, completed_at)
        row = existing
        logger.info("reissued certificate %s", record.certificate_id)
    else:
        row = CertificateRecord.from_data(record, completed_at)
        logger.info("issued certificate %s", record.certificate_id)
    session.add(row)
    session.commit()

# ---------- routes ----------

@router.post("", status_code=201, response_model=CertificateOut)
def issue_certificate(payload: IssueCertificate, session: Session = Depends(get_session)):
    existing = _find_issued(session, payload.participant_id, payload.course_id)
    record = build_certificate_record(
        Participant(id=payload.participant_id, name=payload.participant_name),
        Course(id=payload.course_id, title=payload.course_name),
        payload.score,
        payload.completed_at,
        payload.course_type,
        _validity_for(payload),
        certificate_id=existing.certificate_id if existing else None,
    )
    passing = payload.passing_score if payload.passing_score is not None else DEFAULT_PASSING_SCORE
    if record.score < passing:
        raise ValidationError(f"score {record.score} is below the passing score of {passing}")

    try:
        _store(session, existing, record, payload.completed_at)
    except IntegrityError:
        # a concurrent issue for the same participant and course committed first
        session.rollback()
        existing = _find_issued(session, payload.participant_id, payload.course_id)
        if existing is None:
            raise
        record = record.model_copy(update={"certificate_id": existing.certificate_id})
        _store(session, existing, record, payload.completed_at)
    return CertificateOut(certificate=record, download_url=_download_url(record.certificate_id))

@router.get("/verify/{certificate_id}", response_model=CertificateVerification)
def verify_certificate(certificate_id: str, session: Session = Depends(get_session)):
    row = _get_record(session, certificate_id)
    data = row.to_data()
    expired = row.expires_on is not None and row.expires_on < _today()
    return CertificateVerification(
        certificate_id=data.certificate_id,
        valid=not expired,
        expired=expired,
        participant_name=data.participant_name,
        course_name=data.course_name,
        course_type=data.course_type,
        completion_date=data.completion_date,
        expires_at=data.expires_at,
        issued_at=data.issued_at,
    )

@router.get("/download/{token}")
def download_certificate(token: str, session: Session = Depends(get_session)):
    certificate_id = read_token(token).get("certificate_id")
    data = _get_record(session, certificate_id).to_data()
    pdf = render_certificate_document(data)
    return _pdf_response(pdf, f"certificate-{data.certificate_id}.pdf")

@router.post("/export")
def export_certificate_bundle(payload: ExportRequest, session: Session = Depends(get_session)):
    records = [_get_record(session, cid).to_data() for cid in payload.certificate_ids]
    pdf = export_bundle(records)
    return _pdf_response(pdf, "certificates-export.pdf")

@router.get("/{certificate_id}", response_model=CertificateOut)
def get_certificate(certificate_id: str, session: Session = Depends(get_session)):
    data = _get_record(session, certificate_id).to_data()
    return CertificateOut(certificate=data, download_url=_download_url(data.certificate_id))

@router.get("/{certificate_id}/pdf")
def get_certificate_pdf(certificate_id: str, session: Session = Depends(get_session)):
    data = _get_record(session, certificate_id).to_data()
    pdf = render_certificate_document(data)
    return _pdf_response(pdf, f"certificate-{data.certificate_id}.pdf")

@router.post("/{certificate_id}/archive", status_code=202, response_model=ArchiveQueued)
def archive_certificate(certificate_id: str, session: Session = Depends(get_session)):
    data = _get_record(session, certificate_id).to_data()
    result = archive_task.delay(data.model_dump(mode="json"))
    logger.info("queued archive of certificate %s (task %s)", certificate_id, result.id)
    return ArchiveQueued(
        certificate_id=certificate_id,
        task_id=result.id,
        pdf=certificate_key(certificate_id),
        audit=audit_key(certificate_id),
    )

@router.get("/{certificate_id}/archived")
def get_archived_certificate(certificate_id: str, session: Session = Depends(get_session)):
    _get_record(session, certificate_id)
    try:
        pdf_bytes = get_bytes(certificate_key(certificate_id))
    except KeyError:
        raise CertificateNotFound(f"certificate {certificate_id} has not been archived") from None
    return _pdf_response(pdf_bytes, f"certificate-{certificate_id}.pdf")
