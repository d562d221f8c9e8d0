import io
import logging
from datetime import date
from pathlib import Path

from pikepdf import Pdf, PdfError

from casebundle.bundle_config import DEFAULT_LATE_PREFIX, Document

bundle_logger = logging.getLogger("bundle_logger")


class MalformedDocumentError(Exception):
    details: str

    def __init__(self, filename, details):
        self.filename = filename
        self.details = details
        super().__init__(f"Could not read '{filename}' as a PDF: {details}")


def count_pages(data: bytes, filename: str = "<upload>") -> int:
    """Number of pages in a PDF held in memory. The bytes are neither modified nor kept."""
    try:
        with Pdf.open(io.BytesIO(data)) as pdf:
            return len(pdf.pages)
    except PdfError as e:
        bundle_logger.exception(f"[PRB]Could not count pages of {filename}")
        raise MalformedDocumentError(filename, str(e)) from e


def display_name(filename: str) -> str:
    path = Path(filename)
    return path.stem if path.suffix.lower() == ".pdf" else path.name


def document_from_upload(filename: str, data: bytes) -> Document:
    """Take in an uploaded PDF: probe its page count once and date it today."""
    page_count = count_pages(data, filename)
    bundle_logger.debug(f"[PRB]Took in {filename} with {page_count} page(s)")
    return Document(
        name=display_name(filename),
        original_name=filename,
        date=date.today().isoformat(),
        page_count=page_count,
        late_prefix=DEFAULT_LATE_PREFIX,
        file=data,
    )
