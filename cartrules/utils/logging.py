# cartrules/utils/logging.py
import logging
import sys

from ..config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger("cartrules")

def configure_logging(level: str | None = None) -> None:
    """
    Attach a stderr handler to the project logger.
    Safe to call more than once (handler is only added the first time).
    """
    logger.setLevel((level or settings.LOG_LEVEL).upper())
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
