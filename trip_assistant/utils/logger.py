# Role: Shared logging setup. One "trip_assistant" logger with a console handler (and an optional rotating
# file handler), configured once; modules call get_logger(__name__) and log key=value context.

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import trip_assistant.config as config

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"

_ROOT_NAME = "trip_assistant"
_configured = False


def _configure() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT_NAME)
    formatter = logging.Formatter(LOG_FORMAT)

    # Prevent duplicate handlers when the app is reloaded.
    if not root.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

        log_file = os.getenv("LOG_FILE")
        if log_file:
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=5 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    root.setLevel(config.LOG_LEVEL if not config.DEBUG else logging.DEBUG)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure()
    if name == _ROOT_NAME or name.startswith(_ROOT_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")


def refresh_level() -> None:
    # Role: re-apply the level after config.load_env() ran (DEBUG may have flipped).
    logging.getLogger(_ROOT_NAME).setLevel(logging.DEBUG if config.DEBUG else config.LOG_LEVEL)
