import io

from pikepdf import Pdf

from casebundle.bundle import main
from casebundle.bundle_config import BundleConfig
from casebundle.config_store import dump_config


def test_cli_builds_bundle_and_docx(main_config: BundleConfig, tmp_path) -> None:
    config_path = tmp_path / "config.json"
    dump_config(main_config, config_path)
    output = tmp_path / "bundle.pdf"
    docx_path = tmp_path / "index.docx"

    status = main([str(config_path), "-o", str(output), "--docx", str(docx_path), "--logs-dir", str(tmp_path / "logs")])

    assert status == 0
    with Pdf.open(io.BytesIO(output.read_bytes())) as pdf:
        assert len(pdf.pages) == 6
    assert docx_path.exists()
    assert list((tmp_path / "logs").glob("casebundle_*.log"))


def test_cli_rejects_bad_configuration(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text("{broken")

    assert main([str(config_path), "-o", str(tmp_path / "out.pdf")]) == 2
