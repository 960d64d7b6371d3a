"""Custom exceptions for the rendering context."""

from pathlib import Path
from typing import Optional


class ConversionError(Exception):
    """
    Exception raised when a converter cannot produce its artifact.

    Attributes:
        message: Error description
        source_path: The file being converted
        original_error: The underlying error (browser, parser, or I/O)
    """

    def __init__(
        self,
        message: str,
        source_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.source_path = source_path
        self.original_error = original_error

        parts = [message]

        if source_path:
            parts.append(f"Source: {source_path}")

        if original_error:
            parts.append(f"Original error: {type(original_error).__name__}: {original_error}")

        super().__init__("\n".join(parts))
