import logging
from logging import FileHandler, Logger, StreamHandler
import os
from typing import Any

from src.main.config import config

LOG_DIR = config.app.LOG_DIR or os.path.join(os.path.dirname(__file__), "..", "logs")
LOG_FILE = os.path.join(LOG_DIR, "tokens.log")

logging_format = "%(asctime)s [%(levelname)s]|[%(process)d]| %(name)s: %(message)s"
time_logging_format = "%Y-%m-%d %H:%M:%S"

log_level = getattr(logging, config.app.LOG_LEVEL, logging.INFO)
file_log_level = getattr(logging, config.app.LOG_LEVEL_FILE, logging.WARNING)


def get_file_handler() -> FileHandler:
    if not os.path.exists(LOG_DIR):
        os.makedirs(LOG_DIR)
    file_handler = logging.FileHandler(LOG_FILE, "a", "utf-8")
    file_handler.setLevel(file_log_level)
    file_handler.setFormatter(logging.Formatter(logging_format, time_logging_format))
    return file_handler


def get_stream_handler() -> StreamHandler:  # type: ignore
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(logging.Formatter(logging_format, time_logging_format))
    return stream_handler


def get_logger(name: Any) -> Logger:
    """
    Return a configured logger for the token modules.

    Handlers are attached once per logger name. The file handler is only
    attached when LOG_TO_FILE is enabled, so importing the package never
    touches the filesystem by default.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(log_level)
    logger.addHandler(get_stream_handler())
    if config.app.LOG_TO_FILE:
        logger.addHandler(get_file_handler())

    logger.propagate = False
    return logger
