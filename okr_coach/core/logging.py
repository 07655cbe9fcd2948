"""
Structured logging configuration using structlog.

JSON lines in production, colored console output when debug is on, and a
per-run log file under the configured logs directory.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.typing import Processor

from okr_coach.core.config import settings


def _cull_old_logs(logs_dir: Path, keep: int) -> None:
    """Delete old run logs, keeping only the N most recent."""
    log_files = sorted(
        logs_dir.glob("okr_coach_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )
    for old_file in log_files[keep:]:
        try:
            old_file.unlink()
        except OSError:
            pass  # file in use or already gone


def configure_logging(
    log_runs_to_keep: int = 5,
    logs_dir: Optional[Path] = None,
    debug: Optional[bool] = None,
) -> Path:
    """Configure structlog for the application.

    Call this once at application startup, before any logging.

    Args:
        log_runs_to_keep: Number of recent run logs to retain
        logs_dir: Override for settings.logs_dir
        debug: Override for settings.debug

    Returns:
        Path of the log file opened for this run
    """
    logs_dir = Path(logs_dir or settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    debug = settings.debug if debug is None else debug

    _cull_old_logs(logs_dir, keep=max(log_runs_to_keep - 1, 0))

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"okr_coach_{timestamp}.log"

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]

    if debug:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    # Reconfiguration (tests, reloads) must not stack handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    root_logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, mode="w")
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(file_handler)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return log_file


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger instance with the given name.

    Usage:
        log = get_logger(__name__)
        log.info("turn_processed", session_id="abc")
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind request-scoped context (session_id, request_id) to all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables so they do not leak between requests."""
    structlog.contextvars.clear_contextvars()
