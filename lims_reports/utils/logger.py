"""Logging configuration for the report lifecycle engine.

Log lines go to stderr so that command output on stdout stays parseable.
Records about one report carry its form number in ``extra["report"]``;
services get such a logger from ``report_logger``.
"""

import sys

from loguru import logger

from lims_reports.config import settings

NO_REPORT = "-"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<magenta>{extra[report]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[report]} | {name}:{function}:{line} - {message}"


def setup_logger(level=None, log_file=None, serialize=None):
    """Configure the logger for the application.

    Arguments left as None fall back to the ``log_level``, ``log_file`` and
    ``log_json`` settings. With ``serialize`` the file sink writes one JSON
    object per record.
    """
    level = level or settings.log_level
    log_file = settings.log_file if log_file is None else log_file
    serialize = settings.log_json if serialize is None else serialize

    logger.remove()
    logger.configure(extra={"report": NO_REPORT})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if log_file:
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            serialize=serialize,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    return logger


def report_logger(form_number=None):
    """Logger whose records name the report they are about."""
    return logger.bind(report=form_number or NO_REPORT)


# Initialize logger
logger = setup_logger()
