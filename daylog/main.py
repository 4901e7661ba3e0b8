"""Application Bootstrap (Entry Point)."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .cli import app
from .config import get_settings

# Log rotation
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024  # 5MB per file
LOG_FILE_BACKUP_COUNT = 3  # rotated files kept beside daylog.log


def setup_logging() -> None:
    """Configure application-wide logging.

    Logs everything to a rotating file (~/.daylog/data/daylog.log) and
    WARNING+ to stderr so the TUI stays clean. Level comes from
    DAYLOG_LOG_LEVEL (default: INFO).

    Falls back to a local data/ log when settings cannot be loaded, so
    logging is available even with a broken .env.
    """
    try:
        settings = get_settings()
        log_file = settings.log_file
        log_level = settings.log_level
    except Exception as e:
        # Settings failed (e.g. invalid DAYLOG_ value); use defaults
        print(f"Warning: Failed to load settings for logging: {e}", file=sys.stderr)
        log_file = Path("data/daylog.log")
        log_level = "INFO"

    # Log directory may not exist on first run
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Formatters: the file gets timestamps, stderr stays short
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter("%(levelname)-8s | %(name)s | %(message)s")

    # File handler with rotation
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(file_formatter)
    file_handler.setLevel(logging.DEBUG)  # File captures everything

    # stderr only gets WARNING+ so it does not draw over the TUI
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(logging.WARNING)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # Quiet noisy third-party loggers
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> None:
    """Main entry point for the daylog CLI."""
    setup_logging()
    app()


if __name__ == "__main__":
    main()
