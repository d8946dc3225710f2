"""
Logging configuration
"""
import logging
import sys
from chefflow.config import get_settings

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level() -> int:
    return logging.DEBUG if settings.DEBUG else logging.INFO


def configure_logging() -> None:
    """Configure the root logger once for the API process and the CLI scripts."""
    root = logging.getLogger()
    if any(getattr(h, "_chefflow", False) for h in root.handlers):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._chefflow = True
    root.addHandler(handler)
    root.setLevel(_level())


def get_logger(name: str) -> logging.Logger:
    """Get a logger with its own stdout handler (used by background jobs)"""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    logger.setLevel(_level())
    return logger
