"""
Orchestration context logger.

Provides logging interface for the orchestration context with automatic
[watch] prefix, and the logger setup used by the CLI.
All orchestration modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from relaxed import __version__
from relaxed.utils.logger import setup_logger as _setup_logger
from relaxed.utils.timestamp import now

CONTEXT_PREFIX = "[watch]"


def setup_orchestration_logger(
    input_path: Path, log_root: Optional[Path] = None, level: str = "INFO"
) -> Optional[Path]:
    """
    Setup logger for a ReLaXed run.

    When log_root is set, logs go to a timestamped session directory beneath it
    as well as the console.

    Returns:
        Path to log file, or None when logging to the console only
    """
    log_dir = Path(log_root) / f"relaxed_{now()}" if log_root else None
    return _setup_logger(
        context_name="relaxed",
        log_dir=log_dir,
        level=level,
        extra_provenance={"ReLaXed": __version__, "Input": input_path},
    )


# Wrapper functions with automatic [watch] prefix


def _log_info(message: str) -> None:
    """Log info message with [watch] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [watch] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [watch] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [watch] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [watch] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level orchestration helpers


def log_watch_started(input_name: str, watch_roots: Iterable[Path]) -> None:
    _log_info(f"Now waiting for changes in {input_name} and its directory")
    for root in watch_roots:
        _log_debug(f"  Watching: {root}")


def log_change_processing(short_name: str, task_kind: str) -> None:
    _log_info(f"Processing detected change in {short_name}...")
    _log_debug(f"  Task: {task_kind}")


def log_change_dropped(short_name: str) -> None:
    _log_warning(f"( detected change in {short_name}, but too busy right now )")


def log_task_done(elapsed_time: float) -> None:
    _log_success(f"... Done in {elapsed_time:.2f}s")


def log_task_failed(short_name: str, error: BaseException, elapsed_time: float) -> None:
    """Log a failed task; multi-line error messages are kept intact."""
    _log_error(f"Task for {short_name} failed after {elapsed_time:.2f}s")
    logger.opt(raw=True).error(f"{error}\n")
