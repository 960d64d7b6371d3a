"""
CSV table transpiling.

Turns `x.table.csv` / `x.htable.csv` into an `x.pug` fragment that the master
document can `include`. In an `.htable.csv` the first row is the header.
"""

import csv
import html
from pathlib import Path
from typing import List, Union

from relaxed.contexts.rendering.exceptions import ConversionError
from relaxed.contexts.rendering.logger import log_conversion_written

TABLE_SUFFIXES = (".htable.csv", ".table.csv")
INDENT = "  "


def table_output_path(csv_path: Path) -> Path:
    """`data.table.csv` -> `data.pug`, `data.htable.csv` -> `data.pug`."""
    name = csv_path.name
    for suffix in TABLE_SUFFIXES:
        if name.endswith(suffix):
            return csv_path.with_name(name[: -len(suffix)] + ".pug")
    raise ConversionError("Not a table file", source_path=csv_path)


def _cell_text(value: str) -> str:
    # Pug interpolates #{...} and #[...] in plain text
    return html.escape(value.strip(), quote=False).replace("#", "&#35;")


def _row_lines(tag: str, row: List[str], depth: int) -> List[str]:
    lines = [f"{INDENT * depth}tr"]
    for value in row:
        text = _cell_text(value)
        lines.append(f"{INDENT * (depth + 1)}{tag} {text}".rstrip())
    return lines


def rows_to_pug(rows: List[List[str]], has_header: bool) -> str:
    """Render parsed CSV rows as a Pug table."""
    lines = ["table"]
    body = rows
    if has_header and rows:
        lines.append(f"{INDENT}thead")
        lines.extend(_row_lines("th", rows[0], depth=2))
        body = rows[1:]
    lines.append(f"{INDENT}tbody")
    for row in body:
        lines.extend(_row_lines("td", row, depth=2))
    return "\n".join(lines) + "\n"


def table_to_pug(csv_path: Union[str, Path]) -> Path:
    """
    Transpile a CSV table file into a Pug fragment next to it.

    Synchronous: the watch loop runs it inline without holding the gate.

    Returns:
        Path of the written .pug file

    Raises:
        ConversionError: If the file is not a table file or cannot be read
    """
    csv_path = Path(csv_path)
    output_path = table_output_path(csv_path)
    has_header = csv_path.name.endswith(".htable.csv")

    try:
        with open(csv_path, newline="", encoding="utf-8") as f:
            rows = [row for row in csv.reader(f) if any(cell.strip() for cell in row)]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ConversionError("Could not read CSV table", source_path=csv_path, original_error=e) from e

    output_path.write_text(rows_to_pug(rows, has_header), encoding="utf-8")
    log_conversion_written(csv_path, output_path)
    return output_path
