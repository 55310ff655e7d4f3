import logging
from celery import Celery
from .config import REDIS_URL, WORKER_QUEUE, CELERY_TASK_ALWAYS_EAGER
from .export import export_bundle
from .records import CertificateData
from .rendering import render_certificate_document
from .storage import put_bytes, certificate_key, audit_key, export_key
from .utils import canonical_json, sha256_bytes

logger = logging.getLogger(__name__)

cel = Celery("certificates", broker=REDIS_URL, backend=REDIS_URL)
cel.conf.task_default_queue = WORKER_QUEUE
cel.conf.task_always_eager = CELERY_TASK_ALWAYS_EAGER
cel.conf.task_eager_propagates = True

@cel.task(name="archive_certificate", queue=WORKER_QUEUE)
def archive_certificate(payload: dict):
    data = CertificateData.model_validate(payload)
    pdf = render_certificate_document(data)
    sha_pdf = sha256_bytes(pdf)
    audit = canonical_json({
        "certificate_id": data.certificate_id,
        "digital_signature": data.digital_signature,
        "issued_at": data.issued_at.isoformat(),
        "sha256_pdf": sha_pdf,
    })
    key_pdf = certificate_key(data.certificate_id)
    key_audit = audit_key(data.certificate_id)
    put_bytes(key_pdf, pdf, "application/pdf")
    put_bytes(key_audit, audit.encode(), "application/json")
    logger.info("archived certificate %s as %s (sha256 %s)", data.certificate_id, key_pdf, sha_pdf)
    return {"pdf": key_pdf, "audit": key_audit, "sha256_pdf": sha_pdf}

@cel.task(name="export_certificates", queue=WORKER_QUEUE)
def export_certificates(payloads: list, export_id: str):
    records = [CertificateData.model_validate(p) for p in payloads]
    pdf = export_bundle(records)
    key_pdf = export_key(export_id)
    put_bytes(key_pdf, pdf, "application/pdf")
    logger.info("stored export %s with %d certificates", export_id, len(records))
    return {"pdf": key_pdf, "count": len(records), "sha256_pdf": sha256_bytes(pdf)}
