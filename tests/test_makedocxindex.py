import docx

from casebundle.bundle import generate_index_docx
from casebundle.bundle_config import BundleConfig


def test_docx_index_lists_every_entry(main_config: BundleConfig, tmp_path) -> None:
    path = tmp_path / "index.docx"

    generate_index_docx(main_config, path)

    document = docx.Document(str(path))
    paragraphs = [p.text for p in document.paragraphs]
    assert paragraphs[0] == "INDEX"
    assert "Case: Smith v Jones" in paragraphs
    rows = [[cell.text for cell in row.cells] for row in document.tables[0].rows]
    assert rows[0] == ["Document Name", "Date", "Page"]
    assert rows[1][0] == "MAIN"
    assert rows[2] == ["Doc A", "07-03-2024", "3"]
    assert rows[3] == ["Doc B", "07-03-2024", "A1"]
