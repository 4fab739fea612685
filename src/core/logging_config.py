"""Structured logging configuration.

This module initializes structlog with a stable JSON line format and
routes it through stdlib logging so each run can capture its events
in the result directory log file.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Any, Iterator

import structlog

from core.errors import SnapdiffIOError

LOGGER_NAMESPACE = "snapdiff"


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger bound under the snapdiff namespace.
    """
    _configure_structlog()
    return structlog.get_logger(f"{LOGGER_NAMESPACE}.{name}")


@contextmanager
def run_log_file(log_path: Path) -> Iterator[Path]:
    """Capture snapdiff log events in one file for the scope of a run.

    Args:
        log_path: Destination log file, created or truncated.

    Yields:
        The log file path.

    Raises:
        SnapdiffIOError: If the log file cannot be opened.
    """
    try:
        handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    except OSError as error:
        raise SnapdiffIOError(
            f"Could not open log file {log_path}: {error}. "
            "Check result directory permissions and retry."
        ) from error
    handler.setFormatter(logging.Formatter("%(message)s"))
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.addHandler(handler)
    try:
        yield log_path
    finally:
        namespace_logger.removeHandler(handler)
        handler.close()


def _configure_structlog() -> None:
    """Configure structlog and the namespace logger once per process."""
    logging.getLogger(LOGGER_NAMESPACE).setLevel(logging.INFO)
    if structlog.is_configured():
        return
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
