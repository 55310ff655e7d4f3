"""
Certificate PDF rendering.

Lays out one landscape A4 page from a CertificateData record with reportlab.
The layout is fixed: issued certificates are compared against re-rendered
ones, so offsets, fonts and colors must not drift.

Coordinates in this module are given from the top-left corner of the page
(the way the layout was designed) and converted to reportlab's bottom-left
origin when drawing.

Each call owns its canvas and buffer. The canvas is passed explicitly to every
layout step; nothing is shared between renders, so they can run concurrently.
"""
import logging
from functools import partial
from io import BytesIO
from typing import Optional

import anyio.to_thread
from pydantic import BaseModel, ConfigDict
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfbase.pdfmetrics import getAscent, stringWidth
from reportlab.pdfgen import canvas

from .config import CERT_ACCENT_COLOR, CERT_DATE_FORMAT, CERT_ORGANIZATION
from .errors import RenderFailure
from .records import CertificateData

logger = logging.getLogger(__name__)

PAGE_SIZE = landscape(A4)
MARGIN = 50
OUTER_BORDER_INSET = 30
INNER_BORDER_INSET = 40
RULE_INSET = 200
RULE_TOP = 180

TITLE = "CERTIFICATE OF COMPLETION"
INTRO = "This is to certify that"
TRANSITION = "has successfully completed the training course"

REGULAR = "Helvetica"
BOLD = "Helvetica-Bold"
MIN_FONT_SIZE = 12

BODY_COLOR = "#333333"
META_COLOR = "#666666"
FOOTER_COLOR = "#999999"

# (top offset, font size) of each line
TITLE_LINE = (120, 36)
INTRO_LINE = (220, 18)
NAME_LINE = (260, 32)
TRANSITION_LINE = (320, 18)
COURSE_LINE = (360, 24)
META_TOP, META_SIZE, META_STEP = 420, 14, 20
FOOTER_SIZE = 12
ID_OFFSET_FROM_BOTTOM = 120
SIGNATURE_OFFSET_FROM_BOTTOM = 100
ISSUED_OFFSET_FROM_RIGHT = 200
MARK_OFFSET_FROM_RIGHT, MARK_TOP, MARK_SIZE = 150, 80, 16


class CertificateTheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    accent_color: str = CERT_ACCENT_COLOR
    organization: str = CERT_ORGANIZATION
    date_format: str = CERT_DATE_FORMAT


DEFAULT_THEME = CertificateTheme()


def metadata_lines(data: CertificateData) -> list[str]:
    lines = [
        f"Score: {data.score}%",
        f"Completion Date: {data.completion_date}",
    ]
    # one-time certificates get no expiry line at all, not a blank one
    if data.is_recurring and data.expires_at:
        lines.append(f"Certificate Expires: {data.expires_at}")
    return lines


def _baseline(top: float, font: str, size: float) -> float:
    _, height = PAGE_SIZE
    return height - top - getAscent(font, size)


def _fit_size(text: str, font: str, size: float, max_width: float) -> float:
    while size > MIN_FONT_SIZE and stringWidth(text, font, size) > max_width:
        size -= 1
    return size


def _draw_centered(c: canvas.Canvas, text: str, top: float, font: str, size: float, color: str, fit=False):
    width, _ = PAGE_SIZE
    if fit:
        size = _fit_size(text, font, size, width - 2 * MARGIN)
    c.setFont(font, size)
    c.setFillColor(HexColor(color))
    c.drawCentredString(width / 2, _baseline(top, font, size), text)


def _draw_left(c: canvas.Canvas, text: str, x: float, top: float, font: str, size: float, color: str):
    c.setFont(font, size)
    c.setFillColor(HexColor(color))
    c.drawString(x, _baseline(top, font, size), text)


def _draw_frame(c: canvas.Canvas, theme: CertificateTheme):
    width, height = PAGE_SIZE
    c.setStrokeColor(HexColor(theme.accent_color))
    c.setLineWidth(1)
    for inset in (OUTER_BORDER_INSET, INNER_BORDER_INSET):
        c.rect(inset, inset, width - 2 * inset, height - 2 * inset, stroke=1, fill=0)


def _draw_header(c: canvas.Canvas, theme: CertificateTheme):
    width, height = PAGE_SIZE
    top, size = TITLE_LINE
    _draw_centered(c, TITLE, top, BOLD, size, theme.accent_color)
    c.setStrokeColor(HexColor(theme.accent_color))
    c.line(RULE_INSET, height - RULE_TOP, width - RULE_INSET, height - RULE_TOP)


def _draw_body(c: canvas.Canvas, data: CertificateData, theme: CertificateTheme):
    top, size = INTRO_LINE
    _draw_centered(c, INTRO, top, REGULAR, size, BODY_COLOR)
    top, size = NAME_LINE
    _draw_centered(c, data.participant_name, top, BOLD, size, theme.accent_color, fit=True)
    top, size = TRANSITION_LINE
    _draw_centered(c, TRANSITION, top, REGULAR, size, BODY_COLOR)
    top, size = COURSE_LINE
    _draw_centered(c, data.course_name, top, BOLD, size, theme.accent_color, fit=True)
    for i, line in enumerate(metadata_lines(data)):
        _draw_centered(c, line, META_TOP + i * META_STEP, REGULAR, META_SIZE, META_COLOR)


def _draw_footer(c: canvas.Canvas, data: CertificateData, theme: CertificateTheme):
    width, height = PAGE_SIZE
    left = MARGIN + 10
    _draw_left(c, f"Certificate ID: {data.certificate_id}", left,
               height - ID_OFFSET_FROM_BOTTOM, REGULAR, FOOTER_SIZE, FOOTER_COLOR)
    _draw_left(c, f"Digital Signature: {data.digital_signature}", left,
               height - SIGNATURE_OFFSET_FROM_BOTTOM, REGULAR, FOOTER_SIZE, FOOTER_COLOR)
    # stamped from the record, never from the clock, so re-renders match
    issued_on = data.issued_at.strftime(theme.date_format)
    _draw_left(c, f"Issued on: {issued_on}", width - ISSUED_OFFSET_FROM_RIGHT,
               height - ID_OFFSET_FROM_BOTTOM, REGULAR, FOOTER_SIZE, FOOTER_COLOR)
    _draw_left(c, theme.organization, width - MARK_OFFSET_FROM_RIGHT, MARK_TOP,
               BOLD, MARK_SIZE, theme.accent_color)


def render_certificate_document(data: CertificateData, theme: Optional[CertificateTheme] = None) -> bytes:
    """
    Render a certificate record to PDF bytes.

    Identical records give byte-identical documents (reportlab invariant mode
    drops the creation timestamp and random document id). Any failure raises
    RenderFailure and no partial document is returned.
    """
    theme = theme or DEFAULT_THEME
    buf = BytesIO()
    try:
        c = canvas.Canvas(buf, pagesize=PAGE_SIZE, invariant=1)
        c.setTitle(TITLE.title())
        c.setAuthor(theme.organization)
        c.setSubject(f"{data.course_name} - {data.certificate_id}")

        _draw_frame(c, theme)
        _draw_header(c, theme)
        _draw_body(c, data, theme)
        _draw_footer(c, data, theme)

        c.showPage()
        c.save()
        return buf.getvalue()
    except Exception as exc:
        logger.exception("rendering certificate %s failed", data.certificate_id)
        raise RenderFailure(f"could not render certificate {data.certificate_id}") from exc
    finally:
        buf.close()


async def render_certificate_document_async(data: CertificateData, theme: Optional[CertificateTheme] = None) -> bytes:
    # the render runs in a worker thread; the event loop only awaits the finished bytes
    return await anyio.to_thread.run_sync(partial(render_certificate_document, data, theme))
