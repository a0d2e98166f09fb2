#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Logging setup for filter entry points.

Filters talk to pandoc over stdout, so every handler configured here writes
to stderr or to a file.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

_FILTER_FORMAT = "panfilter %(levelname)s: %(message)s"
_TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


def configure_logging(log_level: str, log_file: Optional[str] = None, trace_mode: bool = False) -> None:
    """Send log records of a filter process to stderr and, optionally, a file.

    Parameters
    ----------
    log_level : str
        Level name such as ``"DEBUG"``; unknown names fall back to WARNING
    log_file : str, optional
        File that receives the same records as stderr
    trace_mode : bool, default False
        Prefix records with a timestamp and the logger name

    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    if trace_mode:
        formatter = logging.Formatter(_TRACE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    else:
        formatter = logging.Formatter(_FILTER_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error: Optional[OSError] = None
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))
        except OSError as e:
            file_error = e

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    if file_error is not None:
        root.warning(f"Could not open log file {log_file}: {file_error}")
