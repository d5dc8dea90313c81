"""
Logging setup.

Everything logs through the root logger; this wires a file handler and a
console handler onto it once at startup.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty third-party loggers kept at WARNING unless DEBUG is requested
NOISY_LOGGERS = ("uvicorn.access", "urllib3", "ultralytics")


def setup_logging(log_path: str, log_level: str, quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    level = getattr(logging, log_level.upper())
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )

    if level > logging.DEBUG:
        for name in quiet:
            logging.getLogger(name).setLevel(logging.WARNING)
