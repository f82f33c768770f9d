"""Logging utilities."""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

LOG_DIR = Path(os.environ.get("MANAGED_VPN_LOG_DIR", "/tmp/managed-vpn"))
LOG_DIR.mkdir(parents=True, exist_ok=True)


def get_logger(name: str, log_file: Path | None = None) -> logging.Logger:
    logger = logging.getLogger(f"managed_vpn.{name}")
    logger.setLevel(logging.DEBUG)
    if log_file is None:
        log_file = LOG_DIR / f"{name}.log"
    if not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers):
        handler = logging.handlers.RotatingFileHandler(log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
