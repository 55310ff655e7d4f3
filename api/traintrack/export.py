"""Bulk rendering: many certificates at once, optionally merged into one PDF."""
import logging
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Iterable, List, Optional

from pypdf import PdfReader, PdfWriter

from .errors import RenderFailure, ValidationError
from .records import CertificateData
from .rendering import CertificateTheme, render_certificate_document

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4


def render_many(records: Iterable[CertificateData], theme: Optional[CertificateTheme] = None,
                max_workers: int = DEFAULT_WORKERS) -> List[bytes]:
    """Render records in parallel. Results keep the input order."""
    records = list(records)
    if not records:
        return []
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="certificate-render") as pool:
        return list(pool.map(lambda record: render_certificate_document(record, theme), records))


def merge_documents(documents: Iterable[bytes]) -> bytes:
    writer = PdfWriter()
    try:
        for doc in documents:
            reader = PdfReader(BytesIO(doc))
            for p in reader.pages:
                writer.add_page(p)
        out = BytesIO()
        writer.write(out)
        return out.getvalue()
    except Exception as exc:
        logger.exception("merging certificate documents failed")
        raise RenderFailure("could not merge certificate documents") from exc


def export_bundle(records: Iterable[CertificateData], theme: Optional[CertificateTheme] = None,
                  max_workers: int = DEFAULT_WORKERS) -> bytes:
    records = list(records)
    if not records:
        raise ValidationError("nothing to export")
    pdf = merge_documents(render_many(records, theme, max_workers=max_workers))
    logger.info("exported %d certificates (%d bytes)", len(records), len(pdf))
    return pdf
