from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler


def setup_logging(log_dir: str = "logs", *, level: str = "INFO") -> logging.Logger:
    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger("portalgate")
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    logger.propagate = False

    if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        text_path = os.path.join(log_dir, "portalgate.log")
        h = RotatingFileHandler(text_path, maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        h.setFormatter(fmt)
        logger.addHandler(h)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler) for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(sh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under the ``portalgate`` root (``portalgate.<name>``)."""
    return logging.getLogger(f"portalgate.{name}")
