"""
Logging configuration
"""
import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the package root logger with standard format

    Called once at process entry with the configured level. Calling it
    again only updates the level.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("support_lab")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not logger.handlers:
        # Console handler
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger (usually called with __name__)

    Handlers live on the package logger, so module loggers only propagate.
    """
    return logging.getLogger(name)
