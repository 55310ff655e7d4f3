from io import BytesIO

import anyio
import pytest
from pypdf import PdfReader

from traintrack import rendering
from traintrack.errors import RenderFailure, ValidationError
from traintrack.export import export_bundle, merge_documents, render_many
from traintrack.rendering import (
    CertificateTheme,
    metadata_lines,
    render_certificate_document,
    render_certificate_document_async,
)


def test_one_time_certificate_text(make_record, pdf_text):
    pdf = render_certificate_document(make_record())
    assert pdf.startswith(b"%PDF")
    text = pdf_text(pdf)
    assert "CERTIFICATE OF COMPLETION" in text
    assert "This is to certify that" in text
    assert "Jane Doe" in text
    assert "has successfully completed the training course" in text
    assert "Workplace Safety" in text
    assert "Score: 95%" in text
    assert "Completion Date: 2024-03-01" in text
    assert "Expires" not in text


def test_recurring_certificate_has_one_expiry_line(recurring_record, pdf_text):
    text = pdf_text(render_certificate_document(recurring_record))
    assert "Certificate Expires: 2025-03-01" in text
    assert text.count("Certificate Expires") == 1
    assert "Score: 95%" in text


def test_footer_carries_id_signature_and_issue_date(make_record, pdf_text):
    record = make_record()
    text = pdf_text(render_certificate_document(record))
    assert f"Certificate ID: {record.certificate_id}" in text
    assert f"Digital Signature: {record.digital_signature}" in text
    # issue stamp comes from the record, not from the day of rendering
    assert "Issued on: 2024-03-02" in text
    assert "TrainTrack" in text


def test_rendering_is_byte_for_byte_repeatable(recurring_record):
    first = render_certificate_document(recurring_record)
    second = render_certificate_document(recurring_record)
    assert first == second


def test_rendering_does_not_mutate_record(recurring_record):
    before = recurring_record.model_dump()
    render_certificate_document(recurring_record)
    assert recurring_record.model_dump() == before


def test_single_landscape_a4_page(make_record):
    reader = PdfReader(BytesIO(render_certificate_document(make_record())))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert round(float(box.width)) == 842
    assert round(float(box.height)) == 595


def test_document_metadata(make_record):
    record = make_record()
    reader = PdfReader(BytesIO(render_certificate_document(record)))
    assert reader.metadata.title == "Certificate Of Completion"
    assert reader.metadata.author == "TrainTrack"
    assert record.certificate_id in reader.metadata.subject


def test_long_names_shrink_instead_of_wrapping(make_record, pdf_text):
    long_name = "Maximiliana Alexandrovna Featherstonehaugh-Montgomery de la Cruz"
    text = pdf_text(render_certificate_document(make_record(name=long_name)))
    assert long_name in text


def test_fit_size_respects_minimum():
    assert rendering._fit_size("short", rendering.BOLD, 32, 600) == 32
    assert rendering._fit_size("x" * 500, rendering.BOLD, 32, 600) == rendering.MIN_FONT_SIZE


def test_custom_theme(make_record, pdf_text):
    theme = CertificateTheme(organization="Acme Academy", date_format="%d/%m/%Y")
    text = pdf_text(render_certificate_document(make_record(), theme))
    assert "Acme Academy" in text
    assert "Issued on: 02/03/2024" in text


def test_metadata_lines(make_record, recurring_record):
    assert metadata_lines(make_record()) == ["Score: 95%", "Completion Date: 2024-03-01"]
    assert metadata_lines(recurring_record)[-1] == "Certificate Expires: 2025-03-01"


def test_bad_accent_color_is_a_render_failure(make_record):
    with pytest.raises(RenderFailure):
        render_certificate_document(make_record(), CertificateTheme(accent_color="#zzzzzz"))


def test_surface_creation_failure_is_a_render_failure(make_record, monkeypatch):
    def broken_canvas(*args, **kwargs):
        raise MemoryError("no room for a canvas")

    monkeypatch.setattr(rendering.canvas, "Canvas", broken_canvas)
    with pytest.raises(RenderFailure) as excinfo:
        render_certificate_document(make_record())
    assert isinstance(excinfo.value.__cause__, MemoryError)


def test_async_render_matches_sync(recurring_record):
    async def main():
        return await render_certificate_document_async(recurring_record)

    assert anyio.run(main) == render_certificate_document(recurring_record)


def test_render_many_keeps_order(make_record, pdf_text):
    records = [make_record(name=f"Employee {i}", participant_id=f"emp-{i}") for i in range(6)]
    documents = render_many(records, max_workers=3)
    assert len(documents) == 6
    for i, doc in enumerate(documents):
        assert f"Employee {i}" in pdf_text(doc)
    assert render_many([]) == []


def test_export_bundle_merges_one_page_per_certificate(make_record, recurring_record):
    bundle = export_bundle([make_record(), recurring_record])
    assert len(PdfReader(BytesIO(bundle)).pages) == 2


def test_export_bundle_needs_records():
    with pytest.raises(ValidationError):
        export_bundle([])


def test_merge_of_garbage_is_a_render_failure():
    with pytest.raises(RenderFailure):
        merge_documents([b"not a pdf"])
