"""Logging setup shared by the command-line entry points."""

from __future__ import annotations

import logging
import sys
from pathlib import Path


def setup_logging(log_level: str | int = "INFO", log_file: str | None = None) -> None:
    """Configure root logging for a run.

    Args:
        log_level: Logging level as string ("INFO", "DEBUG") or integer constant
        log_file: Optional path to a log file written next to console output
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            # Console logging only when the directory can't be created.
            pass
        else:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    if isinstance(log_level, int):
        level = log_level
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )
