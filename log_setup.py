"""Centralised logging configuration.

Call configure() once at startup (from app.py or paint_cli.py).
All modules then use logging.getLogger(__name__) normally.

Output:
  console  — configured level, compact single-line format
  logs/visualizer.log — DEBUG level, full format, rotating (5 × 5 MB)

PAINT_VIZ_LOG_DIR moves the log directory.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

LOGS_DIR = Path(os.environ.get("PAINT_VIZ_LOG_DIR") or Path(__file__).parent / "logs")
LOG_FILE_NAME = "visualizer.log"

_CONSOLE_FMT = "%(asctime)s  %(levelname)-7s  %(name)s — %(message)s"
_FILE_FMT    = "%(asctime)s  %(levelname)-7s  %(name)-16s  %(threadName)s  %(filename)s:%(lineno)d — %(message)s"
_DATE_FMT    = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS = ("urllib3", "requests", "werkzeug", "flask_cors")


def configure(level: str = "INFO", logs_dir: Optional[Path] = None, to_file: bool = True) -> None:
    """Set up console + rotating file handlers.  Safe to call multiple times."""
    root = logging.getLogger()
    if root.handlers:
        return  # Already configured

    root.setLevel(logging.DEBUG)  # lowest gate; handlers apply their own levels

    # ── Console ──
    ch = logging.StreamHandler()
    ch.setLevel(getattr(logging, level.upper(), logging.INFO))
    ch.setFormatter(logging.Formatter(_CONSOLE_FMT, datefmt=_DATE_FMT))
    root.addHandler(ch)

    # ── Rotating file ──
    if to_file:
        target_dir = Path(logs_dir) if logs_dir else LOGS_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            target_dir / LOG_FILE_NAME,
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=5,
            encoding="utf-8",
        )
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FMT, datefmt=_DATE_FMT))
        root.addHandler(fh)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
