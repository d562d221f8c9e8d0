from pathlib import Path
from typing import IO

from docx import Document
from docx.document import Document as DocumentObject
from docx.enum.text import WD_PARAGRAPH_ALIGNMENT
from docx.shared import Pt

from casebundle.bundle_config import BundleConfig
from casebundle.index_renderer import HEADERS, fill_layout_text
from casebundle.pagination import IndexEntry


def _add_docx_header(doc: DocumentObject, config: BundleConfig):
    para = doc.add_paragraph()
    para.alignment = WD_PARAGRAPH_ALIGNMENT.CENTER
    run = para.add_run("INDEX")
    run.bold = True
    run.font.size = Pt(16)

    # Layout items are placed top to bottom in the order they sit on the page
    for item in sorted(config.index_layout.items, key=lambda i: -i.y):
        doc.add_paragraph(fill_layout_text(item.text, config))


def _create_and_populate_table(doc: DocumentObject, entries: list[IndexEntry]):
    table = doc.add_table(rows=1, cols=len(HEADERS))
    table.style = "Table Grid"

    header_cells = table.rows[0].cells
    for cell, header in zip(header_cells, HEADERS):
        cell.text = header
        run = cell.paragraphs[0].runs[0]
        run.bold = True
        run.font.size = Pt(10)

    for entry in entries:
        row = table.add_row().cells
        if entry.is_heading:
            row[0].merge(row[-1])
            run = row[0].paragraphs[0].add_run(entry.title)
            run.bold = True
            run.font.size = Pt(11)
        else:
            row[0].text = entry.title
            row[1].text = entry.date or "-"
            row[2].text = entry.page_label


def create_index_docx(entries: list[IndexEntry], config: BundleConfig, output: Path | str | IO[bytes]):
    """Write an editable Word copy of the bundle index."""
    doc = Document()
    doc.styles["Normal"].font.name = "Arial"
    _add_docx_header(doc, config)
    _create_and_populate_table(doc, entries)
    doc.save(output)
