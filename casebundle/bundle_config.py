import base64
import io
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, NamedTuple

DEFAULT_DATE_FORMAT = "DD-MM-YYYY"
DATE_FORMATS = ("DD-MM-YYYY", "MM-DD-YYYY", "YYYY-MM-DD")
DEFAULT_LATE_PREFIX = "A"
DEFAULT_LIST_START_Y = 680.0


def new_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass
class Document:
    """A single uploaded PDF and the details shown for it in the index.

    The source is either a live binary handle (``file``: raw bytes or a
    readable binary stream such as a werkzeug ``FileStorage``) or the
    base64 text it was persisted as (``base64_data``). ``page_count`` is
    probed once when the document is taken in and never recomputed.
    ``late_prefix`` is kept upper-cased.
    """

    name: str
    page_count: int
    date: str = ""
    original_name: str = ""
    is_late_addition: bool = False
    late_prefix: str = DEFAULT_LATE_PREFIX
    ocr: bool = False
    file: bytes | BinaryIO | Any | None = None
    base64_data: str | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.late_prefix = self.late_prefix.upper()

    @property
    def has_source(self) -> bool:
        return self.file is not None or bool(self.base64_data)

    def read_source(self) -> bytes | None:
        """Return the document's bytes, preferring the live handle."""
        if self.file is not None:
            if isinstance(self.file, (bytes, bytearray, memoryview)):
                return bytes(self.file)
            stream = getattr(self.file, "stream", self.file)
            if hasattr(stream, "seek"):
                stream.seek(0)
            return stream.read()
        if self.base64_data:
            return base64.b64decode(self.base64_data, validate=True)
        return None

    def source_stream(self) -> io.BytesIO | None:
        data = self.read_source()
        return io.BytesIO(data) if data is not None else None


@dataclass
class Section:
    title: str
    documents: list[Document] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def move_document(self, document_id: str, direction: str) -> bool:
        """Swap a document with its neighbour. Returns False when nothing moved."""
        index = next((i for i, d in enumerate(self.documents) if d.id == document_id), -1)
        if index == -1:
            return False
        if direction == "up" and index > 0:
            other = index - 1
        elif direction == "down" and index < len(self.documents) - 1:
            other = index + 1
        else:
            return False
        self.documents[index], self.documents[other] = self.documents[other], self.documents[index]
        return True

    def sort_by_date(self):
        # ISO dates sort lexically; ties keep their current order
        self.documents.sort(key=lambda d: d.date)

    def remove_document(self, document_id: str):
        self.documents = [d for d in self.documents if d.id != document_id]


@dataclass
class LayoutItem:
    text: str
    x: float
    y: float
    id: str = field(default_factory=new_id)


def default_layout_items() -> list[LayoutItem]:
    return [
        LayoutItem(id="caseName", text="Case: {case_name}", x=50, y=760),
        LayoutItem(id="caseNumber", text="Case No: {case_number}", x=50, y=745),
        LayoutItem(id="courtName", text="Court: {court_name}", x=50, y=730),
    ]


@dataclass
class IndexLayout:
    items: list[LayoutItem] = field(default_factory=default_layout_items)
    list_start_y: float = DEFAULT_LIST_START_Y


@dataclass
class BundleConfig:
    case_number: str = ""
    case_name: str = ""
    court_name: str = ""
    date_format: str = DEFAULT_DATE_FORMAT
    sections: list[Section] = field(default_factory=list)
    index_layout: IndexLayout = field(default_factory=IndexLayout)

    @property
    def case_details(self) -> dict[str, str]:
        return {"case_name": self.case_name, "case_number": self.case_number, "court_name": self.court_name}

    def iter_documents(self):
        for section in self.sections:
            yield from section.documents

    def add_section(self, title: str = "New Section") -> Section:
        section = Section(title=title)
        self.sections.append(section)
        return section

    def remove_section(self, section_id: str):
        self.sections = [s for s in self.sections if s.id != section_id]

    def find_section(self, section_id: str) -> Section | None:
        return next((s for s in self.sections if s.id == section_id), None)


class BuildOptions(NamedTuple):
    link_index: bool = True
    verify_page_counts: bool = True
    session_id: str | None = None
    timestamp: str | None = None

    def resolved(self) -> "BuildOptions":
        """Fill in the timestamp and session id the way a fresh build names itself."""
        timestamp = self.timestamp or datetime.now().strftime("%Y-%m-%d-%H%M%S")
        return self._replace(timestamp=timestamp, session_id=self.session_id or timestamp)
