"""
Logging — настройка вывода пакета

Один stream handler на логгер "src"; модули пишут через logging.getLogger(__name__).
"""

import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "MMSIM_LOG_LEVEL"
ROOT_LOGGER = "src"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Один stream handler на корневой логгер пакета.

    Уровень: аргумент, затем MMSIM_LOG_LEVEL, затем INFO.
    """
    level_str = (level or os.getenv(LOG_LEVEL_ENV, "INFO")).upper()
    resolved = getattr(logging, level_str, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolved)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger
