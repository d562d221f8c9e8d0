import io
import logging
import os
import uuid
from datetime import datetime

from colorlog import ColoredFormatter
from flask import Flask, current_app, jsonify, request, send_file
from waitress import serve
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from casebundle.bundle import BundleGenerationError, generate_bundle
from casebundle.bundle_config import BuildOptions, BundleConfig
from casebundle.config_store import InvalidConfigurationError, loads_config
from casebundle.logger import LOG_COLORS, configure_logger
from casebundle.page_probe import MalformedDocumentError, count_pages


def strtobool(value: str) -> bool:
    value = value.lower()
    return value in ("y", "yes", "on", "1", "true", "t", "enabled")


def get_output_filename(config: BundleConfig, timestamp: str) -> str:
    stem = secure_filename(f"{config.case_name}_{config.case_number}")[:80] or "Bundle"
    return f"{stem}_{timestamp}.pdf"


def _read_config_from_request() -> BundleConfig:
    """The configuration comes as a JSON body, a ``config`` form field or an uploaded ``config`` file."""
    if request.is_json:
        return loads_config(request.get_data())
    if "config" in request.files and request.files["config"].filename:
        return loads_config(request.files["config"].stream.read())
    if "config" in request.form:
        return loads_config(request.form["config"])
    msg = "no configuration supplied"
    raise InvalidConfigurationError(msg)


def _attach_uploads(config: BundleConfig, request_files: dict[str, FileStorage]):
    """Use any file uploaded under a document's id as that document's live source."""
    for document in config.iter_documents():
        upload = request_files.get(document.id)
        if upload is not None and upload.filename:
            document.file = upload
            current_app.logger.debug(f"Upload {upload.filename} attached to document {document.id}")


def create_bundle():
    t1 = datetime.now()
    timestamp = t1.strftime("%Y%m%d_%H%M%S")
    session_id = str(uuid.uuid4())[:8]
    current_app.logger.debug(f"New session ID: {session_id} {request.headers.get('User-Agent') or ''}")

    try:
        config = _read_config_from_request()
    except InvalidConfigurationError as e:
        current_app.logger.warning(f"Rejected configuration for session {session_id}: {e.details}")
        return jsonify({"status": "error", "message": f"Invalid configuration: {e.details}"}), 400

    _attach_uploads(config, request.files)
    options = BuildOptions(
        link_index=strtobool(request.args.get("links", "true")),
        verify_page_counts=strtobool(request.args.get("verify", "true")),
        session_id=session_id,
        timestamp=timestamp,
    )
    try:
        pdf_bytes = generate_bundle(config, options)
    except BundleGenerationError:
        current_app.logger.exception("Fatal Error in processing bundle")
        return jsonify({"status": "error", "message": f"Fatal error in creating bundle. Session code: {session_id}"}), 500

    current_app.logger.info(f"Bundle creation completed in {datetime.now() - t1} for session ID: {session_id}")
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=get_output_filename(config, timestamp),
    )


def page_count():
    files = request.files.getlist("files")
    if not files:
        return jsonify({"status": "error", "message": "No files found. Please add files and try again."}), 400

    counts = {}
    for upload in files:
        try:
            counts[upload.filename] = count_pages(upload.stream.read(), upload.filename or "<upload>")
        except MalformedDocumentError as e:
            return jsonify({"status": "error", "message": str(e)}), 400
    return jsonify({"status": "success", "page_counts": counts})


def create_app():
    """Application factory."""
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = int(os.environ.get("CASEBUNDLE_MAX_MB", "100")) * 1024 * 1024
    app.logger.setLevel(logging.DEBUG)
    app.logger.propagate = False

    for handler in app.logger.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setFormatter(ColoredFormatter("%(log_color)s%(asctime)s - %(levelname)s - [APP]: %(message)s", log_colors=LOG_COLORS, reset=True))

    configure_logger(os.environ.get("CASEBUNDLE_LOGS_DIR"), "app")

    @app.route("/")
    def index():
        return jsonify({"status": "ok", "service": "casebundle"})

    app.add_url_rule("/bundle", view_func=create_bundle, methods=["POST"])
    app.add_url_rule("/page-count", view_func=page_count, methods=["POST"])
    return app


def main():
    """Creates and runs the Flask application."""
    created_app = create_app()
    host = os.environ.get("CASEBUNDLE_HOST", "0.0.0.0")  # nosec B104
    port = int(os.environ.get("CASEBUNDLE_PORT", "7001"))

    if os.environ.get("CASEBUNDLE_DEV"):
        created_app.logger.info(f"APP - Starting in DEVELOPMENT mode on {host}:{port}")
        created_app.run(host=host, port=port, debug=True)  # nosec B201
    else:
        created_app.logger.info(f"APP - Server started on {host}:{port} (Production/Waitress).")
        serve(created_app, host=host, port=port, threads=4, connection_limit=100, channel_timeout=120)


if __name__ == "__main__":
    main()
