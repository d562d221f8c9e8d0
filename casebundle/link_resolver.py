import logging
from itertools import groupby

from pikepdf import Array, Dictionary, Name, Object, Pdf, Rectangle

from casebundle.bundle_config import IndexLayout
from casebundle.estimator import PageBudget
from casebundle.pagination import IndexEntry, layout_index_rows, row_rect

bundle_logger = logging.getLogger("bundle_logger")


def add_index_links(pdf: Pdf, layout: IndexLayout, entries: list[IndexEntry], budget: PageBudget, first_pages: dict[str, Object]) -> int:
    """Make every document row of the index a link to that document's first page.

    The rows are walked again with the same placement rules the renderer used.
    Rows whose document contributed no pages are left unlinked. Returns the
    number of links written.
    """
    targets = [
        (row, first_pages[row.entry.document_id])
        for row in layout_index_rows(entries, layout, budget.index_page_count)
        if not row.entry.is_heading and row.entry.document_id in first_pages
    ]

    added = 0
    for index_page_idx, group in groupby(targets, key=lambda target: target[0].page_index):
        index_page = pdf.pages[index_page_idx]
        if "/Annots" not in index_page:
            index_page.Annots = Array()
        group = list(group)
        try:
            for row, destination in group:
                index_page.Annots.append(
                    Dictionary(
                        Type=Name.Annot,
                        Subtype=Name.Link,
                        Rect=Rectangle(*row_rect(row.y)).as_array(),
                        Border=[0, 0, 0],
                        Dest=[destination, Name.Fit],
                    )
                )
        except Exception:
            bundle_logger.exception(f"[LNK]Failed to add links on index page {index_page_idx}")
            raise
        added += len(group)
        bundle_logger.debug(f"[LNK]Added {len(group)} links to index page {index_page_idx}")

    skipped = sum(1 for entry in entries if not entry.is_heading and entry.document_id not in first_pages)
    if skipped:
        bundle_logger.info(f"[LNK]{skipped} index row(s) have no pages to link to")
    return added
