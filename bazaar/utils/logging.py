# bazaar/utils/logging.py
import logging

from ..config import settings

_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
_configured = False


def get_logger(name: str = "bazaar") -> logging.Logger:
    global _configured
    if not _configured:
        level = (settings.LOG_LEVEL or "INFO").upper()
        logging.basicConfig(format=_FORMAT, level=getattr(logging, level, logging.INFO))
        _configured = True
    return logging.getLogger(name)
