import argparse
import io
import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import IO

from pikepdf import Pdf
from werkzeug.utils import secure_filename

from casebundle.assembler import assemble_body, stamp_footers
from casebundle.bundle_config import BuildOptions, BundleConfig
from casebundle.config_store import InvalidConfigurationError, load_config
from casebundle.estimator import estimate_page_budget
from casebundle.index_renderer import render_index_pages
from casebundle.link_resolver import add_index_links
from casebundle.logger import configure_logger, dedent_and_log
from casebundle.makedocxindex import create_index_docx
from casebundle.pagination import build_index_entries

CASEBUNDLE_VERSION = "2026.10.19"

bundle_logger = logging.getLogger("bundle_logger")


class BundleGenerationError(Exception):
    """Raised when a bundle cannot be built. The original error is chained as ``__cause__``."""

    def __init__(self, option, details=""):
        self.details = details
        super().__init__(f"Bundle generation failed: {option}")


def _log_build_settings(config: BundleConfig, options: BuildOptions):
    log_msg = f"""\
        =============================================================================
        CASEBUNDLE {CASEBUNDLE_VERSION} -- session {options.session_id} at {options.timestamp}
        ..Case Name: {config.case_name}
        ..Case Number: {config.case_number}
        ..Court: {config.court_name}
        ..Date format: {config.date_format}
        ..Sections: {len(config.sections)}, documents: {sum(len(s.documents) for s in config.sections)}
        ..List start y: {config.index_layout.list_start_y}
        ..Index links: {options.link_index}
        ..Verify page counts: {options.verify_page_counts}
        ============================================================================="""
    dedent_and_log(bundle_logger, log_msg)


def _build(config: BundleConfig, options: BuildOptions) -> bytes:
    budget = estimate_page_budget(config)
    entries = build_index_entries(config, budget)

    with ExitStack() as sources:
        output = sources.enter_context(Pdf.new())
        index_pdf = sources.enter_context(Pdf.open(io.BytesIO(render_index_pages(config, budget, entries))))
        output.pages.extend(index_pdf.pages)
        if len(output.pages) != budget.index_page_count:
            msg = f"rendered {len(output.pages)} index pages, expected {budget.index_page_count}"
            raise RuntimeError(msg)

        result = assemble_body(output, config, budget.body_start, sources, options.verify_page_counts)
        stamp_footers(output, result.labels, budget.index_page_count, sources)

        if options.link_index:
            added = add_index_links(output, config.index_layout, entries, budget, result.first_pages)
            bundle_logger.debug(f"[GB]{added} index links written")

        buffer = io.BytesIO()
        output.save(buffer)
        bundle_logger.info(f"[GB]Bundle built: {len(output.pages)} pages, last page number {result.counter - 1}")
    return buffer.getvalue()


def generate_bundle(config: BundleConfig, options: BuildOptions | None = None) -> bytes:
    """Build the whole bundle and return the PDF bytes.

    Either the complete bundle is returned or ``BundleGenerationError`` is
    raised; nothing partial ever leaves this function.
    """
    options = (options or BuildOptions()).resolved()
    _log_build_settings(config, options)
    try:
        return _build(config, options)
    except Exception as e:
        bundle_logger.exception(f"[GB]Error during generate_bundle for session {options.session_id}")
        raise BundleGenerationError(type(e).__name__, str(e)) from e


def generate_index_docx(config: BundleConfig, output: Path | str | IO[bytes]):
    """Write the index as an editable Word document, with the same page labels as the PDF."""
    budget = estimate_page_budget(config)
    create_index_docx(build_index_entries(config, budget), config, output)
    bundle_logger.info(f"[GB]DOCX index written to {output}")


def _parse_cli_args(argv=None):
    parser = argparse.ArgumentParser(description="Build a paginated PDF bundle with an index from a saved configuration.")
    parser.add_argument("config", help="Saved bundle configuration (JSON)")
    parser.add_argument("-o", "--output_file", help="Output PDF file", default=None)
    parser.add_argument("--docx", help="Also write the index as a DOCX file", default=None)
    parser.add_argument("--no-links", help="Do not link index rows to documents", action="store_true", default=False)
    parser.add_argument("--no-verify", help="Do not check recorded page counts against the PDFs", action="store_true", default=False)
    parser.add_argument("--logs-dir", help="Directory for the session log file", default=None)
    return parser.parse_args(argv)


def main(argv=None):
    """Command-line usage: build a bundle from a configuration file saved by the app."""
    args = _parse_cli_args(argv)
    options = BuildOptions(link_index=not args.no_links, verify_page_counts=not args.no_verify).resolved()
    configure_logger(args.logs_dir, options.session_id)

    try:
        config = load_config(args.config)
    except (InvalidConfigurationError, OSError):
        bundle_logger.exception(f"[CLI]Could not load configuration {args.config}")
        return 2

    output_file = Path(args.output_file or secure_filename(f"{config.case_number or 'bundle'}-{options.timestamp}.pdf"))
    try:
        output_file.write_bytes(generate_bundle(config, options))
    except BundleGenerationError:
        return 1
    bundle_logger.info(f"[CLI]Bundle written to {output_file}")

    if args.docx:
        generate_index_docx(config, args.docx)
    return 0


if __name__ == "__main__":
    sys.exit(main())
