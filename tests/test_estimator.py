from conftest import make_document

from casebundle.bundle_config import BundleConfig, IndexLayout, Section
from casebundle.estimator import estimate_page_budget


def test_main_scenario(main_config: BundleConfig) -> None:
    budget = estimate_page_budget(main_config)

    assert budget.index_page_count == 1
    assert budget.body_start == 2
    assert budget.total_entries == 3
    assert budget.start_pages["doc-a"] == 3


def test_fifty_documents_need_two_index_pages() -> None:
    documents = [make_document(f"Doc {i}", 1, with_source=False) for i in range(50)]
    config = BundleConfig(sections=[Section(title="All", documents=documents)], index_layout=IndexLayout(list_start_y=410))

    budget = estimate_page_budget(config)

    assert budget.first_page_capacity == 20
    assert budget.total_entries == 51
    assert budget.index_page_count == 2


def test_empty_section_still_takes_a_separator_and_a_heading() -> None:
    config = BundleConfig(
        sections=[Section(title="Empty"), Section(title="Second", documents=[make_document("Only", 2)])],
    )

    budget = estimate_page_budget(config)

    # index 1, separator 2, separator 3, document 4
    assert budget.total_entries == 3
    assert budget.start_pages == {"only": 4}


def test_late_additions_do_not_move_later_start_pages() -> None:
    config = BundleConfig(
        sections=[
            Section(
                title="Main",
                documents=[make_document("First", 2), make_document("Late", 5, late=True, prefix="B"), make_document("Third", 1)],
            ),
            Section(title="Next", documents=[make_document("Fourth", 3)]),
        ],
    )

    budget = estimate_page_budget(config)

    assert budget.start_pages["first"] == 3
    assert budget.start_pages["late"] == 5
    assert budget.start_pages["third"] == 5
    assert budget.start_pages["fourth"] == 7


def test_documents_without_source_take_no_pages() -> None:
    config = BundleConfig(
        sections=[Section(title="Main", documents=[make_document("Missing", 4, with_source=False), make_document("Present", 2)])],
    )

    budget = estimate_page_budget(config)

    assert budget.start_pages == {"present": 3}


def test_no_sections_needs_one_index_page() -> None:
    budget = estimate_page_budget(BundleConfig())

    assert budget.index_page_count == 1
    assert budget.start_pages == {}
