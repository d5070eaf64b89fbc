# core/logging_config.py
import logging
import time

from core.config import settings

LOGGER_NAME = "taman"

# UTC timestamps, same clock as the stored check-in times
LOG_FORMAT = "%(asctime)s.%(msecs)03dZ %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def build_formatter() -> logging.Formatter:
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def setup_logger(level: str = settings.LOG_LEVEL) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Uvicorn reloads re-import this module; keep a single handler
    if logger.handlers:
        return logger

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(build_formatter())
    logger.addHandler(stream_handler)
    logger.propagate = False

    return logger


logger = setup_logger()
