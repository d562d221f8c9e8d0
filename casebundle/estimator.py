import logging
from typing import NamedTuple

from casebundle.bundle_config import BundleConfig, Document
from casebundle.pagination import advances_counter, count_index_entries, first_page_capacity, index_page_count

bundle_logger = logging.getLogger("bundle_logger")


class PageBudget(NamedTuple):
    index_page_count: int
    first_page_capacity: int
    start_pages: dict[str, int]
    total_entries: int

    @property
    def body_start(self) -> int:
        """Page number of the first separator page."""
        return self.index_page_count + 1


def counted_pages(document: Document) -> int:
    """Pages of ``document`` that will move the global page counter."""
    if not document.has_source or not advances_counter(document):
        return 0
    return document.page_count


def estimate_page_budget(config: BundleConfig) -> PageBudget:
    """Predict the index length and every document's start page before any page exists."""
    total_entries = count_index_entries(config)
    first_capacity = first_page_capacity(config.index_layout.list_start_y)
    pages_for_index = index_page_count(total_entries, first_capacity)
    if first_capacity == 0:
        bundle_logger.warning(f"[EST]List start y {config.index_layout.list_start_y} leaves no room on the first index page")

    start_pages = {}
    counter = pages_for_index + 1
    for section in config.sections:
        counter += 1  # separator page
        for document in section.documents:
            # a document with no source has no page to point at
            if document.has_source:
                start_pages[document.id] = counter
            counter += counted_pages(document)

    bundle_logger.debug(
        f"[EST]{total_entries} index entries, first page holds {first_capacity}: {pages_for_index} index page(s), "
        f"{counter - 1} pages in total"
    )
    return PageBudget(
        index_page_count=pages_for_index,
        first_page_capacity=first_capacity,
        start_pages=start_pages,
        total_entries=total_entries,
    )
