"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

CONTEXT_PREFIX = "[render]"


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_conversion_written(source: Path, artifact: Path) -> None:
    """Log an artifact written by a converter."""
    _log_success(f"{Path(source).name} -> {Path(artifact).name}")
    _log_debug(f"  Artifact: {artifact}")


def log_document_built(result) -> None:
    """
    Log the outcome of a master document build.

    Args:
        result: BuildResult from master_document_to_pdf()
    """
    pages = f"{result.page_count} pages" if result.page_count is not None else "page count unknown"
    _log_success(f"PDF written: {result.output_path} ({pages})")
    _log_debug(f"  Intermediate HTML: {result.html_path}")


def log_page_error(error) -> None:
    """Log a script error raised inside the shared page."""
    _log_warning(f"Page error: {error}")


def log_session_error(message: str) -> None:
    """Log a session-level failure reported by the browser (e.g. page crash)."""
    _log_error(f"Error: {message}")
