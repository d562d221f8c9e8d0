"""Pagination rules shared by the estimator, the index renderer, the assembler and the link resolver.

Everything that decides how a page is labelled or where an index row lands
lives here, so the render-time and link-time walks over the index can never
disagree.
"""

import logging
import math
import re
from collections.abc import Iterator
from typing import TYPE_CHECKING, NamedTuple

from casebundle.bundle_config import BundleConfig, Document, IndexLayout

if TYPE_CHECKING:
    from casebundle.estimator import PageBudget

bundle_logger = logging.getLogger("bundle_logger")

# A4 canvas, in points
PAGE_WIDTH = 595.28
PAGE_HEIGHT = 841.89
PAGE_SIZE = (PAGE_WIDTH, PAGE_HEIGHT)

ROW_HEIGHT = 18
BOTTOM_MARGIN = 50
CONTINUATION_CAPACITY = 40
CONTINUATION_HEADER_Y = PAGE_HEIGHT - 40

# Column x positions on index pages
NAME_X = 50
DOCUMENT_NAME_X = 60
DATE_X = 400
PAGE_X = 500

ISO_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")


def page_label(document: Document, local_index: int, counter: int) -> str:
    """Footer label for page ``local_index`` (0-based) of ``document``."""
    if document.is_late_addition:
        return f"{document.late_prefix}{local_index + 1}"
    return str(counter)


def advances_counter(document: Document) -> bool:
    """Late additions are numbered locally and leave the global counter alone."""
    return not document.is_late_addition


def index_row_label(document: Document, start_page: int | None) -> str:
    """Page label shown in the index; blank when the document has no start page."""
    if start_page is None:
        return ""
    if document.is_late_addition:
        return f"{document.late_prefix}1"
    return str(start_page)


def format_date(date: str, date_format: str) -> str:
    """Rearrange a stored ``YYYY-MM-DD`` date for display.

    Supported settings are ``DD-MM-YYYY``, ``MM-DD-YYYY`` and ``YYYY-MM-DD``.
    Anything that is not a well-formed ISO date is returned untouched.
    """
    match = ISO_DATE_RE.fullmatch(date or "")
    if not match:
        return date
    year, month, day = match.groups()
    formats = {
        "DD-MM-YYYY": f"{day}-{month}-{year}",
        "MM-DD-YYYY": f"{month}-{day}-{year}",
        "YYYY-MM-DD": f"{year}-{month}-{day}",
    }
    try:
        return formats[date_format]
    except KeyError:
        bundle_logger.error(f"[PAG]Unknown date format setting: {date_format}")
        return date


def first_page_capacity(list_start_y: float) -> int:
    """Rows that fit between the first page's column header and the bottom margin."""
    return max(0, math.floor((list_start_y - BOTTOM_MARGIN) / ROW_HEIGHT))


def index_page_count(total_entries: int, first_capacity: int) -> int:
    if total_entries <= first_capacity:
        return 1
    return 1 + math.ceil((total_entries - first_capacity) / CONTINUATION_CAPACITY)


def count_index_entries(config: BundleConfig) -> int:
    """One heading per section plus one row per document."""
    return sum(len(section.documents) + 1 for section in config.sections)


class IndexEntry(NamedTuple):
    title: str
    is_heading: bool
    date: str = ""
    page_label: str = ""
    document_id: str | None = None


def build_index_entries(config: BundleConfig, budget: "PageBudget") -> list[IndexEntry]:
    """Section headings interleaved with their documents, in configuration order."""
    entries = []
    for section in config.sections:
        entries.append(IndexEntry(title=section.title.upper(), is_heading=True))
        for document in section.documents:
            entries.append(
                IndexEntry(
                    title=document.name,
                    is_heading=False,
                    date=format_date(document.date, config.date_format),
                    page_label=index_row_label(document, budget.start_pages.get(document.id)),
                    document_id=document.id,
                )
            )
    return entries


class IndexRow(NamedTuple):
    page_index: int
    y: float
    entry: IndexEntry


def header_y(page_index: int, layout: IndexLayout) -> float:
    return layout.list_start_y if page_index == 0 else CONTINUATION_HEADER_Y


def page_capacity(page_index: int, layout: IndexLayout) -> int:
    return first_page_capacity(layout.list_start_y) if page_index == 0 else CONTINUATION_CAPACITY


def layout_index_rows(entries: list[IndexEntry], layout: IndexLayout, page_count: int) -> Iterator[IndexRow]:
    """Place every entry on an index page, whole entries only, in order.

    Each page takes as many entries as its capacity allows and the next page
    resumes exactly where the previous one stopped.
    """
    position = 0
    for page_index in range(page_count):
        capacity = page_capacity(page_index, layout)
        top = header_y(page_index, layout)
        for row, entry in enumerate(entries[position : position + capacity]):
            yield IndexRow(page_index=page_index, y=top - ROW_HEIGHT * (row + 1), entry=entry)
        position += capacity
    if position < len(entries):
        msg = f"{len(entries) - position} index entries do not fit on {page_count} index pages"
        raise ValueError(msg)


def row_rect(y: float) -> tuple[float, float, float, float]:
    """Clickable area of an index row whose text baseline is ``y``."""
    return (NAME_X, y - 4, PAGE_WIDTH - NAME_X, y + ROW_HEIGHT - 4)
