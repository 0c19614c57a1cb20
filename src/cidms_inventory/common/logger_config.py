# src/cidms_inventory/common/logger_config.py
"""Application-wide logging configuration."""

import logging
from pathlib import Path

from rich.logging import RichHandler

from cidms_inventory.common.config.settings import settings


def setup_logging(log_file: str | None = None) -> None:
    """Configures the root logger with a Rich console handler and an optional file handler."""
    log_level_str = settings.LOG_LEVEL.upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        markup=True,
        tracebacks_word_wrap=True,
        tracebacks_suppress=[
            logging,
        ],
    )
    handlers: list[logging.Handler] = [rich_handler]

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
        handlers.append(file_handler)

    # Replace whatever was installed before so repeated calls don't duplicate output
    root_logger.handlers = handlers

    # Suppress verbose logging from libraries
    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("schedule").setLevel(logging.WARNING)
