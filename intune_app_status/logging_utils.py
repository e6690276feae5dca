"""
Logging helpers for Intune App Status.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def resolve_level(verbose: bool = False, quiet: bool = False) -> int:
    """Map the -v/-q flags to a logging level; both together cancel out to INFO."""
    if verbose and not quiet:
        return logging.DEBUG
    if quiet and not verbose:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    logger_name: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure logging for a report run.

    Parameters
    ----------
    verbose: bool
        When True, set level to DEBUG.
    quiet: bool
        When True, set level to WARNING.
    logger_name: Optional[str]
        Name of the application logger; defaults to root.
    log_file: Optional[Path]
        Also append log records to this file (always at DEBUG).
    """
    level = resolve_level(verbose, quiet)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if log_file else level)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        for existing in logging.getLogger().handlers:
            existing.setLevel(level)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
    return logger
