import pytest
from conftest import make_document

from casebundle.bundle_config import BundleConfig, IndexLayout, Section
from casebundle.estimator import estimate_page_budget
from casebundle.pagination import (
    CONTINUATION_CAPACITY,
    CONTINUATION_HEADER_Y,
    ROW_HEIGHT,
    build_index_entries,
    first_page_capacity,
    format_date,
    index_page_count,
    index_row_label,
    layout_index_rows,
    page_label,
)


@pytest.mark.parametrize(
    ("date_format", "expected"),
    [("DD-MM-YYYY", "07-03-2024"), ("MM-DD-YYYY", "03-07-2024"), ("YYYY-MM-DD", "2024-03-07")],
)
def test_format_date_rearranges_iso_dates(date_format: str, expected: str) -> None:
    assert format_date("2024-03-07", date_format) == expected


@pytest.mark.parametrize("date_format", ["DD-MM-YYYY", "MM-DD-YYYY", "YYYY-MM-DD"])
@pytest.mark.parametrize("value", ["not-a-date", "2024-03", "", "07/03/2024", "2024-3-7"])
def test_format_date_passes_malformed_dates_through(value: str, date_format: str) -> None:
    assert format_date(value, date_format) == value


def test_format_date_unknown_setting_keeps_date() -> None:
    assert format_date("2024-03-07", "uk_longdate") == "2024-03-07"


def test_page_label_uses_counter_for_normal_documents() -> None:
    document = make_document("Doc", 3, with_source=False)
    assert [page_label(document, i, 10 + i) for i in range(3)] == ["10", "11", "12"]


def test_page_label_numbers_late_additions_locally() -> None:
    document = make_document("Late", 3, late=True, prefix="B", with_source=False)
    assert [page_label(document, i, 99) for i in range(3)] == ["B1", "B2", "B3"]


def test_index_row_label() -> None:
    assert index_row_label(make_document("Doc", 4, with_source=False), 7) == "7"
    assert index_row_label(make_document("Late", 4, late=True, prefix="C", with_source=False), 7) == "C1"
    assert index_row_label(make_document("Missing", 4, with_source=False), None) == ""
    assert index_row_label(make_document("Late", 4, late=True, with_source=False), None) == ""


def test_first_page_capacity() -> None:
    assert first_page_capacity(680) == 35
    assert first_page_capacity(50 + 20 * ROW_HEIGHT) == 20
    assert first_page_capacity(60) == 0
    assert first_page_capacity(10) == 0


def test_index_page_count() -> None:
    assert index_page_count(0, 35) == 1
    assert index_page_count(35, 35) == 1
    assert index_page_count(36, 35) == 2
    assert index_page_count(51, 20) == 2
    assert index_page_count(61, 20) == 3
    assert index_page_count(5, 0) == 2


def _config_with(documents: int, list_start_y: float) -> BundleConfig:
    return BundleConfig(
        sections=[Section(title="Docs", documents=[make_document(f"Doc {i}", 1, with_source=False) for i in range(documents)])],
        index_layout=IndexLayout(list_start_y=list_start_y),
    )


def test_layout_index_rows_fills_pages_in_order_without_splitting() -> None:
    config = _config_with(50, 50 + 20 * ROW_HEIGHT)
    budget = estimate_page_budget(config)
    entries = build_index_entries(config, budget)

    rows = list(layout_index_rows(entries, config.index_layout, budget.index_page_count))

    assert [row.entry for row in rows] == entries
    assert [row.page_index for row in rows] == [0] * 20 + [1] * 31
    assert rows[0].y == config.index_layout.list_start_y - ROW_HEIGHT
    assert rows[19].y == pytest.approx(50)
    assert rows[20].y == pytest.approx(CONTINUATION_HEADER_Y - ROW_HEIGHT)


def test_layout_index_rows_continuation_capacity() -> None:
    config = _config_with(CONTINUATION_CAPACITY + 10, 50 + 10 * ROW_HEIGHT)
    budget = estimate_page_budget(config)
    rows = list(layout_index_rows(build_index_entries(config, budget), config.index_layout, budget.index_page_count))

    pages = [row.page_index for row in rows]
    assert pages.count(0) == 10
    assert pages.count(1) == CONTINUATION_CAPACITY
    assert pages.count(2) == 1


def test_layout_index_rows_with_no_first_page_room() -> None:
    config = _config_with(3, 40)
    budget = estimate_page_budget(config)
    rows = list(layout_index_rows(build_index_entries(config, budget), config.index_layout, budget.index_page_count))

    assert budget.index_page_count == 2
    assert {row.page_index for row in rows} == {1}


def test_layout_index_rows_rejects_too_few_pages() -> None:
    config = _config_with(50, 680)
    budget = estimate_page_budget(config)
    with pytest.raises(ValueError, match="do not fit"):
        list(layout_index_rows(build_index_entries(config, budget), config.index_layout, 1))


def test_build_index_entries_interleaves_headings(main_config: BundleConfig) -> None:
    budget = estimate_page_budget(main_config)
    entries = build_index_entries(main_config, budget)

    assert [(e.title, e.is_heading, e.page_label) for e in entries] == [("MAIN", True, ""), ("Doc A", False, "3"), ("Doc B", False, "A1")]
    assert entries[1].date == "07-03-2024"
