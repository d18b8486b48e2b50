"""Logging configuration for the asset marketplace API."""
import logging
import sys
from typing import Optional, Union

# Third-party loggers that are only interesting when something goes wrong
QUIET_LOGGERS = ("sqlalchemy", "stripe", "httpx", "aiosqlite")


def setup_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Configure process-wide logging once, at application or script start.

    Args:
        level: Logging level name or number. Falls back to INFO.
    """
    if isinstance(level, str):
        log_level = logging.getLevelName(level.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO
    else:
        log_level = level or logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    logging.getLogger("uvicorn").setLevel(log_level)
    logging.getLogger("uvicorn.access").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
