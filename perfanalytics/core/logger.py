from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Union


def setup_logging(log_dir: str = "logs", level: Union[int, str] = logging.INFO) -> logging.Logger:
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("perfanalytics")
    logger.setLevel(level if isinstance(level, int) else str(level).upper())
    logger.propagate = False

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        text_path = os.path.join(log_dir, "perfanalytics.log")
        h = RotatingFileHandler(text_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        h.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(h)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(sh)

    return logger


def get_logger(name: str = "") -> logging.Logger:
    return logging.getLogger(f"perfanalytics.{name}" if name else "perfanalytics")
