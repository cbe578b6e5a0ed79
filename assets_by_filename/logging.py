"""Logging configuration for the assets-by-filename service."""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
ACCESS_LOG_FORMAT = '%a "%r" %s %b %Tf "%{User-Agent}i"'


def setup_logging(level: int | str = logging.INFO, access_log: bool = True) -> None:
    """
    Configure process-wide logging.

    Installs a single stdout handler on the root logger, replacing whatever
    was there before, so repeated calls (tests, reloads) never duplicate lines.

    Args:
        level: Logging level name or number (default: INFO)
        access_log: Emit aiohttp's per-request access lines at INFO
    """
    if isinstance(level, str):
        level = level.upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(console_handler)

    logging.getLogger("aiohttp.access").setLevel(logging.INFO if access_log else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger (typically ``get_logger(__name__)``)."""
    return logging.getLogger(name)
