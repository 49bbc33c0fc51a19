"""Logging configuration for Platform Switcher.

Every switch is written to platform_switcher.log in the state directory, so a
partially applied switch can be reconstructed from the copy and delete lines.
"""

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "platform_switcher.log"
ROOT_LOGGER_NAME = "platform_switcher"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _make_handler(handler: logging.Handler, fmt: str, datefmt=None) -> logging.Handler:
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def setup_logging(log_dir: Path, debug: bool = False) -> logging.Logger:
    """Configure application-wide logging.

    Args:
        log_dir: Directory that receives platform_switcher.log
        debug: If True, also echo everything to stdout

    Returns:
        The application's top-level logger
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Calling this twice (tests, repeated main()) must not duplicate lines
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_make_handler(
        logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"), FILE_FORMAT, DATE_FORMAT
    ))

    if debug:
        logger.addHandler(_make_handler(logging.StreamHandler(sys.stdout), CONSOLE_FORMAT))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger, e.g. get_logger("switcher") -> platform_switcher.switcher"""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
