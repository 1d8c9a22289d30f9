'''
Application logger, configured once from settings.
'''
import logging
import sys

from .config import settings

LOG_FORMAT = '%(asctime)s - %(name)s.%(module)s - %(levelname)s - %(message)s'

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("passlib", "aiosqlite", "sqlalchemy.engine")

def setup_logger(name: str = 'food-ledger', level: str | None = None) -> logging.Logger:
    """
    Returns the application logger writing to stdout.
    Calling it again returns the same logger without stacking handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or settings.LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger

log = setup_logger()
