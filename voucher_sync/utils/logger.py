# voucher_sync/utils/logger.py
from __future__ import annotations
import logging
import os
from logging import Logger
from typing import Set

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_FILE = os.path.join(LOG_DIR, "voucher_sync.log")

# Nombres de los loggers creados con get_logger
_registered: Set[str] = set()


def get_logger(name: str = "app", level: str = "INFO") -> Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        # Handler para consola
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(stream_handler)
        # Handler para archivo
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(file_handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    _registered.add(name)
    return logger


def set_package_level(level: str) -> None:
    """Propaga el LOG_LEVEL configurado a todos los loggers creados con get_logger."""
    for name in sorted(_registered):
        logging.getLogger(name).setLevel(level.upper())


# default module logger
logger = get_logger("voucher_sync")
