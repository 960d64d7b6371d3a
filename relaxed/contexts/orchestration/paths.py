"""
Path resolution for a run.

Resolves the master document, the PDF output, the intermediate HTML file and
the watch roots once at startup. Resolution errors are fatal configuration
errors.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union

from relaxed.contexts.orchestration.exceptions import ConfigurationError

TEMP_HTML_SUFFIX = "_temp.htm"

PathLike = Union[str, Path]


@dataclass(frozen=True)
class DocumentPaths:
    """
    Every path a run needs, all absolute.

    Attributes:
        input_path: The master document
        output_path: Where the PDF is written
        temp_html_path: Where the intermediate HTML is written
        watch_roots: Directories observed in watch mode; the input's directory first
    """

    input_path: Path
    output_path: Path
    temp_html_path: Path
    watch_roots: Tuple[Path, ...]

    @property
    def input_dir(self) -> Path:
        return self.input_path.parent


def parse_watch_locations(values: Optional[Iterable[str]]) -> list[str]:
    """
    Flatten repeated and comma-separated --watch values.

    Examples:
        >>> parse_watch_locations(["figs,data", "../shared"])
        ['figs', 'data', '../shared']
    """
    locations = []
    for value in values or []:
        locations.extend(part.strip() for part in value.split(",") if part.strip())
    return locations


def resolve_document_paths(
    input: Optional[PathLike],
    output: Optional[PathLike] = None,
    temp: Optional[PathLike] = None,
    watch_locations: Iterable[PathLike] = (),
) -> DocumentPaths:
    """
    Resolve all run paths from CLI values.

    Args:
        input: Master document path (required)
        output: PDF path; defaults to <input dir>/<input stem>.pdf
        temp: Directory for the intermediate HTML; defaults to the input's directory.
            An empty string (a bare -t) is invalid
        watch_locations: Extra directories to watch

    Returns:
        DocumentPaths with absolute paths

    Raises:
        ConfigurationError: If input is missing or temp is not an existing directory
    """
    if not input:
        raise ConfigurationError("no input file specified")

    input_path = Path(input).resolve()
    input_dir = input_path.parent
    # Only the last extension is dropped: report.v2.pug -> report.v2
    stem = input_path.stem

    output_path = Path(output).resolve() if output else input_dir / f"{stem}.pdf"

    if temp is not None:
        if not str(temp):
            raise ConfigurationError("Could not find specified --temp directory")
        temp_dir = Path(temp)
        if not temp_dir.is_dir():
            raise ConfigurationError("Could not find specified --temp directory", temp)
        temp_dir = temp_dir.resolve()
    else:
        temp_dir = input_dir

    roots = [input_dir]
    for location in watch_locations:
        root = Path(location).resolve()
        if root not in roots:
            roots.append(root)

    return DocumentPaths(
        input_path=input_path,
        output_path=output_path,
        temp_html_path=temp_dir / f"{stem}{TEMP_HTML_SUFFIX}",
        watch_roots=tuple(roots),
    )


def short_path(path: PathLike, roots: Iterable[Path]) -> str:
    """Path relative to the first watch root containing it, else the full path."""
    path = Path(path)
    for root in roots:
        try:
            return str(path.relative_to(root))
        except ValueError:
            continue
    return str(path)
