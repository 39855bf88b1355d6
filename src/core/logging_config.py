"""Logging setup for the API process."""

import logging

from config import LOG_FORMAT, LOG_LEVEL


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the root logger once for the whole process.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG".
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
    )
    # SQL echo is noisy at INFO; keep it behind an explicit DEBUG
    if level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
