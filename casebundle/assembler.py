import io
import logging
from contextlib import ExitStack
from typing import NamedTuple

from pikepdf import Object, Page, Pdf, PdfError, Rectangle
from reportlab.pdfgen.canvas import Canvas

from casebundle.bundle_config import BundleConfig, Document
from casebundle.page_probe import MalformedDocumentError
from casebundle.pagination import PAGE_HEIGHT, PAGE_SIZE, PAGE_WIDTH, advances_counter, page_label

bundle_logger = logging.getLogger("bundle_logger")

FOOTER_FONT = "Helvetica"
FOOTER_FONT_SIZE = 10
FOOTER_RIGHT_OFFSET = 80
FOOTER_Y = 30


class PageCountMismatchError(Exception):
    def __init__(self, document_name: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"'{document_name}' was recorded with {expected} page(s) but its PDF has {actual}")


class AssemblyResult(NamedTuple):
    first_pages: dict[str, Object]
    labels: list[str]
    counter: int


def render_separator_pages(titles: list[str]) -> bytes:
    """One A4 page per section with its title centred."""
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=PAGE_SIZE)
    for title in titles:
        text = title.upper()
        canvas.setFont("Helvetica-Bold", 24)
        canvas.drawString((PAGE_WIDTH - canvas.stringWidth(text, "Helvetica-Bold", 24)) / 2, PAGE_HEIGHT / 2, text)
        canvas.showPage()
    canvas.save()
    return buffer.getvalue()


def open_source(document: Document, sources: ExitStack) -> Pdf | None:
    """Open a document's bytes as an independent PDF, kept open until ``sources`` unwinds.

    Returns None when the document has no source at all.
    """
    stream = document.source_stream()
    if stream is None:
        return None
    try:
        return sources.enter_context(Pdf.open(stream))
    except PdfError as e:
        bundle_logger.exception(f"[ASM]Could not parse '{document.name}'")
        raise MalformedDocumentError(document.original_name or document.name, str(e)) from e


def _import_document(output: Pdf, document: Document, counter: int, sources: ExitStack, verify_page_counts: bool):
    """Copy every page of ``document`` onto the end of ``output``.

    Returns the page labels used, the first page's object (or None when the
    document contributed nothing) and the advanced counter.
    """
    src_pdf = open_source(document, sources)
    if src_pdf is None:
        bundle_logger.warning(f"[ASM]No source available for '{document.name}'. Skipping.")
        return [], None, counter

    actual = len(src_pdf.pages)
    if actual != document.page_count:
        if verify_page_counts:
            raise PageCountMismatchError(document.name, document.page_count, actual)
        bundle_logger.warning(f"[ASM]'{document.name}' has {actual} pages, {document.page_count} recorded. Numbering will drift.")

    first_index = len(output.pages)
    output.pages.extend(src_pdf.pages)

    labels = []
    for local_index in range(actual):
        labels.append(page_label(document, local_index, counter))
        if advances_counter(document):
            counter += 1

    first_page = output.pages[first_index].obj if actual else None
    bundle_logger.debug(f"[ASM]..'{document.name}': {actual} page(s) labelled {labels[0] if labels else '-'} onwards")
    return labels, first_page, counter


def assemble_body(output: Pdf, config: BundleConfig, counter_start: int, sources: ExitStack, verify_page_counts: bool = True) -> AssemblyResult:
    """Append separator and document pages for every section, in order.

    ``counter_start`` is the page number of the first separator page. The
    returned labels line up one-to-one with the pages appended here.
    """
    labels: list[str] = []
    first_pages: dict[str, Object] = {}
    counter = counter_start
    if not config.sections:
        return AssemblyResult(first_pages, labels, counter)

    separators = sources.enter_context(Pdf.open(io.BytesIO(render_separator_pages([s.title for s in config.sections]))))
    for section_index, section in enumerate(config.sections):
        output.pages.append(separators.pages[section_index])
        labels.append(str(counter))
        bundle_logger.debug(f"[ASM]Separator for '{section.title}' is page {counter}")
        counter += 1

        for document in section.documents:
            document_labels, first_page, counter = _import_document(output, document, counter, sources, verify_page_counts)
            labels.extend(document_labels)
            if first_page is not None:
                first_pages[document.id] = first_page

    return AssemblyResult(first_pages, labels, counter)


def _page_box(page: Page) -> tuple[float, float, float, float]:
    x0, y0, x1, y1 = (float(v) for v in page.mediabox)
    return x0, y0, x1, y1


def render_footer_pages(labels: list[str], boxes: list[tuple[float, float, float, float]]) -> bytes:
    """One transparent page per label, sized like the page it will be stamped on."""
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=PAGE_SIZE)
    for label, (x0, y0, x1, y1) in zip(labels, boxes):
        width = x1 - x0
        canvas.setPageSize((width, y1 - y0))
        canvas.setFont(FOOTER_FONT, FOOTER_FONT_SIZE)
        canvas.drawString(width - FOOTER_RIGHT_OFFSET, FOOTER_Y, f"Page {label}")
        canvas.showPage()
    canvas.save()
    return buffer.getvalue()


def stamp_footers(output: Pdf, labels: list[str], first_body_index: int, sources: ExitStack):
    """Overlay a ``Page <label>`` footer on every page from ``first_body_index`` on."""
    body_pages = list(output.pages)[first_body_index:]
    if len(body_pages) != len(labels):
        msg = f"Page counts do not match: body={len(body_pages)} vs labels={len(labels)}"
        bundle_logger.error(f"[ASM]{msg}")
        raise ValueError(msg)
    if not labels:
        return

    boxes = [_page_box(page) for page in body_pages]
    footer_pdf = sources.enter_context(Pdf.open(io.BytesIO(render_footer_pages(labels, boxes))))
    for page, footer_page, box in zip(body_pages, footer_pdf.pages, boxes):
        page.add_overlay(footer_page, Rectangle(*box))
    bundle_logger.debug(f"[ASM]Stamped {len(labels)} footers")
