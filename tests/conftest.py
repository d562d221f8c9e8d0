import io

import pytest
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen.canvas import Canvas

from casebundle.bundle_config import BundleConfig, Document, Section


def make_pdf_bytes(pages: int, label: str = "doc") -> bytes:
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=A4)
    for number in range(1, pages + 1):
        canvas.setFont("Helvetica", 14)
        canvas.drawString(72, 700, f"{label} body {number}")
        canvas.showPage()
    canvas.save()
    return buffer.getvalue()


def make_document(name: str, pages: int, *, late: bool = False, prefix: str = "A", with_source: bool = True, date: str = "2024-03-07") -> Document:
    return Document(
        id=name.lower().replace(" ", "-"),
        name=name,
        original_name=f"{name}.pdf",
        date=date,
        page_count=pages,
        is_late_addition=late,
        late_prefix=prefix,
        file=make_pdf_bytes(pages, name) if with_source else None,
    )


@pytest.fixture
def main_config() -> BundleConfig:
    """One section "Main": doc A (3 pages) and late addition doc B (1 page, prefix A)."""
    return BundleConfig(
        case_number="CL-2024-000123",
        case_name="Smith v Jones",
        court_name="High Court",
        sections=[
            Section(
                id="main",
                title="Main",
                documents=[make_document("Doc A", 3), make_document("Doc B", 1, late=True, prefix="A")],
            )
        ],
    )
