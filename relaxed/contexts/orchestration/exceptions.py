"""Custom exceptions for the orchestration context."""

from pathlib import Path
from typing import Optional, Union


class ConfigurationError(Exception):
    """
    Exception raised when the run cannot be configured.

    Covers a missing input document, an invalid --temp directory and an
    unreadable config file. Always fatal: the CLI reports it and exits 1.

    Attributes:
        message: Error description
        path: The offending path, when there is one
    """

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.message = message
        self.path = path

        if path is not None:
            super().__init__(f"{message}: {path}")
        else:
            super().__init__(message)
