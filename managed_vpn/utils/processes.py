"""Process management helpers."""

from __future__ import annotations

import subprocess
from typing import Sequence

import psutil

from .logging import get_logger

logger = get_logger("processes")


def is_running(process_name: str) -> bool:
    """Return True when a process named ``process_name`` is alive."""

    for proc in psutil.process_iter(["name"]):
        try:
            if proc.info.get("name") == process_name:
                return True
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return False


def ensure_service(command: Sequence[str], process_name: str | None = None) -> bool:
    """Start the connection service unless it is already running.

    Returns True when a new process was spawned.
    """

    if not command:
        logger.debug("No connection service command configured")
        return False
    name = process_name or command[0].rsplit("/", 1)[-1]
    if is_running(name):
        logger.debug("Connection service %s already running", name)
        return False
    logger.info("Starting connection service: %s", " ".join(command))
    subprocess.Popen(
        list(command),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )
    return True
