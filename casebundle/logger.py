import logging
import textwrap
from datetime import datetime
from logging import Logger
from pathlib import Path

from colorlog import ColoredFormatter

LOG_COLORS = {"DEBUG": "cyan", "INFO": "green", "WARNING": "yellow", "ERROR": "red", "CRITICAL": "red,bg_white"}

bundle_logger = logging.getLogger("bundle_logger")


def configure_logger(logs_dir: Path | str | None = None, session_id: str | None = None) -> Logger:
    """Configure the logger used throughout a bundle build.

    Console output is coloured. When ``logs_dir`` is given, every session
    also gets its own plain log file ``casebundle_<session_id>.log`` there.
    Calling this again replaces the handlers from the previous call.
    """
    # pikepdf is chatty at debug level
    logging.getLogger("pikepdf").setLevel(logging.WARNING)

    if bundle_logger.hasHandlers():
        for handler in bundle_logger.handlers:
            handler.close()
        bundle_logger.handlers.clear()

    bundle_logger.setLevel(logging.DEBUG)
    bundle_logger.propagate = False

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(
        ColoredFormatter("%(log_color)s%(asctime)s - %(levelname)s - [BUN]: %(message)s%(reset)s", log_colors=LOG_COLORS)
    )
    bundle_logger.addHandler(console_handler)

    if logs_dir:
        Path(logs_dir).mkdir(parents=True, exist_ok=True)
        if not session_id:
            session_id = datetime.now().strftime("%Y%m%d%H%M%S")  # fallback
        session_file_handler = logging.FileHandler(Path(logs_dir) / f"casebundle_{session_id}.log")
        session_file_handler.setLevel(logging.DEBUG)
        session_file_handler.setFormatter(logging.Formatter("%(asctime)s-%(levelname)s-[BUN]: %(message)s"))
        bundle_logger.addHandler(session_file_handler)
    return bundle_logger


def dedent_and_log(logger: Logger, message: str):
    """Dedent a multi-line string and log it line by line."""
    for line in textwrap.dedent(message).strip().split("\n"):
        logger.debug(line)
