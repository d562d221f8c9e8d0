"""Saving and loading bundle configurations as JSON.

Documents are written with their PDF bytes base64-encoded under ``base64Data``
so that a saved configuration can rebuild the same bundle later. Loading
backfills anything older files lack: the index layout, the list start
position and the date format.
"""

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any

from casebundle.bundle_config import (
    DATE_FORMATS,
    DEFAULT_DATE_FORMAT,
    DEFAULT_LATE_PREFIX,
    DEFAULT_LIST_START_Y,
    BundleConfig,
    Document,
    IndexLayout,
    LayoutItem,
    Section,
    default_layout_items,
    new_id,
)

bundle_logger = logging.getLogger("bundle_logger")

# Text used for each anchor of the older {"caseName": {"x": .., "y": ..}} layout shape
LEGACY_LAYOUT_TEXT = {
    "caseName": "Case: {case_name}",
    "caseNumber": "Case No: {case_number}",
    "courtName": "Court: {court_name}",
}


class InvalidConfigurationError(Exception):
    def __init__(self, details):
        self.details = details
        super().__init__(f"Invalid configuration: {details}")


def _document_to_dict(document: Document) -> dict[str, Any]:
    data = document.read_source()
    return {
        "id": document.id,
        "name": document.name,
        "date": document.date,
        "originalName": document.original_name,
        "pageCount": document.page_count,
        "isLateAddition": document.is_late_addition,
        "latePrefix": document.late_prefix,
        "ocr": document.ocr,
        "file": None,
        "base64Data": base64.b64encode(data).decode("ascii") if data is not None else None,
    }


def config_to_dict(config: BundleConfig) -> dict[str, Any]:
    return {
        "caseNumber": config.case_number,
        "caseName": config.case_name,
        "courtName": config.court_name,
        "dateFormat": config.date_format,
        "sections": [
            {"id": section.id, "title": section.title, "documents": [_document_to_dict(d) for d in section.documents]}
            for section in config.sections
        ],
        "indexLayout": {
            "items": [{"id": item.id, "text": item.text, "x": item.x, "y": item.y} for item in config.index_layout.items],
            "listStartY": config.index_layout.list_start_y,
        },
    }


def dumps_config(config: BundleConfig) -> str:
    return json.dumps(config_to_dict(config), indent=2)


def dump_config(config: BundleConfig, path: Path | str):
    Path(path).write_text(dumps_config(config), encoding="utf-8")
    bundle_logger.info(f"[CFG]Configuration saved to {path}")


def _text_or_default(raw: dict[str, Any], key: str, default: str) -> str:
    """Backfill only a missing or null value; an empty string is kept as saved."""
    value = raw.get(key)
    return default if value is None else str(value)


def _document_from_dict(raw: dict[str, Any]) -> Document:
    base64_data = raw.get("base64Data") or None
    if base64_data is not None:
        # fail on load rather than half way through a build
        base64.b64decode(base64_data, validate=True)
    page_count = int(raw["pageCount"])
    if page_count < 0:
        msg = f"negative page count for document {raw.get('name')!r}"
        raise ValueError(msg)
    return Document(
        id=str(raw.get("id") or new_id()),
        name=str(raw["name"]),
        date=_text_or_default(raw, "date", ""),
        original_name=_text_or_default(raw, "originalName", ""),
        page_count=page_count,
        is_late_addition=bool(raw.get("isLateAddition", False)),
        late_prefix=_text_or_default(raw, "latePrefix", DEFAULT_LATE_PREFIX),
        ocr=bool(raw.get("ocr", False)),
        base64_data=base64_data,
    )


def _layout_from_dict(raw: dict[str, Any] | None) -> IndexLayout:
    if not raw:
        return IndexLayout()
    list_start_y = float(raw.get("listStartY", DEFAULT_LIST_START_Y))
    if "items" in raw:
        items = [
            LayoutItem(id=str(item.get("id") or new_id()), text=str(item["text"]), x=float(item["x"]), y=float(item["y"]))
            for item in raw["items"]
        ]
        return IndexLayout(items=items, list_start_y=list_start_y)

    legacy = [key for key in LEGACY_LAYOUT_TEXT if key in raw]
    if not legacy:
        return IndexLayout(items=default_layout_items(), list_start_y=list_start_y)
    bundle_logger.debug(f"[CFG]Converting legacy layout anchors {legacy}")
    items = [LayoutItem(id=key, text=LEGACY_LAYOUT_TEXT[key], x=float(raw[key]["x"]), y=float(raw[key]["y"])) for key in legacy]
    return IndexLayout(items=items, list_start_y=list_start_y)


def config_from_dict(raw: dict[str, Any]) -> BundleConfig:
    """Build a configuration from its JSON form, backfilling missing fields with defaults."""
    try:
        date_format = raw.get("dateFormat") or DEFAULT_DATE_FORMAT
        if date_format not in DATE_FORMATS:
            msg = f"unknown date format {date_format!r}"
            raise ValueError(msg)
        sections = [
            Section(
                id=str(section.get("id") or new_id()),
                title=str(section.get("title", "")),
                documents=[_document_from_dict(d) for d in section.get("documents", [])],
            )
            for section in raw.get("sections", [])
        ]
        config = BundleConfig(
            case_number=str(raw.get("caseNumber") or ""),
            case_name=str(raw.get("caseName") or ""),
            court_name=str(raw.get("courtName") or ""),
            date_format=date_format,
            sections=sections,
            index_layout=_layout_from_dict(raw.get("indexLayout")),
        )
    except (KeyError, TypeError, ValueError, AttributeError, binascii.Error) as e:
        raise InvalidConfigurationError(str(e)) from e

    seen: set[str] = set()
    for document in config.iter_documents():
        if document.id in seen:
            msg = f"duplicate document id {document.id!r}"
            raise InvalidConfigurationError(msg)
        seen.add(document.id)
    return config


def loads_config(text: str | bytes) -> BundleConfig:
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        bundle_logger.error(f"[CFG]Configuration is not valid JSON: {e}")
        raise InvalidConfigurationError(str(e)) from e
    if not isinstance(raw, dict):
        msg = "top level must be an object"
        raise InvalidConfigurationError(msg)
    return config_from_dict(raw)


def load_config(path: Path | str) -> BundleConfig:
    config = loads_config(Path(path).read_text(encoding="utf-8"))
    bundle_logger.info(f"[CFG]Loaded configuration from {path}: {len(config.sections)} section(s)")
    return config
