import io
import logging
import re

from reportlab.pdfgen.canvas import Canvas

from casebundle.bundle_config import BundleConfig
from casebundle.estimator import PageBudget
from casebundle.pagination import (
    DATE_X,
    DOCUMENT_NAME_X,
    NAME_X,
    PAGE_HEIGHT,
    PAGE_SIZE,
    PAGE_WIDTH,
    PAGE_X,
    IndexEntry,
    header_y,
    layout_index_rows,
)

bundle_logger = logging.getLogger("bundle_logger")

HEADERS = ("Document Name", "Date", "Page")

FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"

PLACEHOLDER_RE = re.compile(r"\{(case_name|case_number|court_name)\}")


def fill_layout_text(text: str, config: BundleConfig) -> str:
    """Substitute ``{case_name}``-style placeholders; any other braces are left as written."""
    details = config.case_details
    return PLACEHOLDER_RE.sub(lambda match: details[match.group(1)], text)


def _draw_title_block(canvas: Canvas, config: BundleConfig):
    title = "INDEX"
    canvas.setFont(BOLD_FONT, 16)
    canvas.drawString((PAGE_WIDTH - canvas.stringWidth(title, BOLD_FONT, 16)) / 2, PAGE_HEIGHT - 50, title)
    canvas.setFont(FONT, 10)
    for item in config.index_layout.items:
        canvas.drawString(item.x, item.y, fill_layout_text(item.text, config))


def _draw_column_headers(canvas: Canvas, y: float):
    canvas.setFont(BOLD_FONT, 10)
    for x, header in zip((NAME_X, DATE_X, PAGE_X), HEADERS):
        canvas.drawString(x, y, header)


def _draw_entry(canvas: Canvas, entry: IndexEntry, y: float):
    if entry.is_heading:
        canvas.setFont(BOLD_FONT, 11)
        canvas.drawString(NAME_X, y, entry.title)
        return
    canvas.setFont(FONT, 10)
    canvas.drawString(DOCUMENT_NAME_X, y, entry.title)
    canvas.drawString(DATE_X, y, entry.date or "-")
    canvas.drawString(PAGE_X, y, entry.page_label)


def render_index_pages(config: BundleConfig, budget: PageBudget, entries: list[IndexEntry]) -> bytes:
    """Draw the index onto exactly ``budget.index_page_count`` A4 pages and return them as PDF bytes."""
    buffer = io.BytesIO()
    canvas = Canvas(buffer, pagesize=PAGE_SIZE)
    layout = config.index_layout

    rows_by_page: dict[int, list] = {i: [] for i in range(budget.index_page_count)}
    for row in layout_index_rows(entries, layout, budget.index_page_count):
        rows_by_page[row.page_index].append(row)

    for page_index in range(budget.index_page_count):
        if page_index == 0:
            _draw_title_block(canvas, config)
        _draw_column_headers(canvas, header_y(page_index, layout))
        for row in rows_by_page[page_index]:
            _draw_entry(canvas, row.entry, row.y)
        bundle_logger.debug(f"[IDX]Index page {page_index + 1} holds {len(rows_by_page[page_index])} rows")
        canvas.showPage()

    canvas.save()
    buffer.seek(0)
    return buffer.getvalue()
