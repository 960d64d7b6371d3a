"""
Per-format converters.

Every converter takes a source file and writes an artifact next to it. The
diagram converters drive the session's shared page: they load the charting
library into a blank document, run it against the source, and save the
result. The master document and CSV table converters live in their own
modules and are re-exported here so callers have one place to look.

    x.chart.js        -> x.png   (Chart.js, canvas screenshot)
    x.mermaid         -> x.svg   (mermaid)
    x.flowchart       -> x.svg   (flowchart.js, options from x.flowchart.json)
    x.vegalite.json   -> x.svg   (vega-lite + vega)
    x.o.svg           -> x.svg   (scour)
    x.table.csv       -> x.pug   (see tables.py)
    master document   -> PDF     (see master.py)
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from jinja2 import Template
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from scour import scour

from relaxed.config import DEFAULTS
from relaxed.contexts.rendering.exceptions import ConversionError
from relaxed.contexts.rendering.logger import _log_debug, log_conversion_written
from relaxed.contexts.rendering.master import BuildResult, master_document_to_pdf
from relaxed.contexts.rendering.tables import table_to_pug

__all__ = [
    "BuildResult",
    "chartjs_to_png",
    "flowchart_to_svg",
    "master_document_to_pdf",
    "mermaid_to_svg",
    "svg_to_optimized_svg",
    "table_to_pug",
    "vegalite_to_svg",
]

CHART_SIZE = {"width": 800, "height": 500}

SCRIPT_PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
{% for src in scripts %}<script src="{{ src }}"></script>
{% endfor %}</head>
<body style="margin: 0; background: white;">
<div id="diagram"></div>
</body>
</html>
"""
)

MERMAID_JS = """
async (code) => {
    mermaid.initialize({ startOnLoad: false });
    const { svg } = await mermaid.render('relaxed-mermaid', code);
    return svg;
}
"""

CHARTJS_JS = """
({ code, width, height }) => {
    const config = eval('(' + code.trim().replace(/;\\s*$/, '') + ')');
    config.options = Object.assign({}, config.options, { animation: false, responsive: false });
    const canvas = document.createElement('canvas');
    canvas.width = width;
    canvas.height = height;
    document.getElementById('diagram').appendChild(canvas);
    new Chart(canvas.getContext('2d'), config);
}
"""

FLOWCHART_JS = """
({ code, options }) => {
    const container = document.getElementById('diagram');
    container.innerHTML = '';
    flowchart.parse(code).drawSVG('diagram', options);
    return container.innerHTML;
}
"""

VEGALITE_JS = """
async (spec) => {
    const compiled = vegaLite.compile(spec).spec;
    const view = new vega.View(vega.parse(compiled), { renderer: 'none' });
    return await view.toSVG();
}
"""


def _replace_suffix(path: Path, old: str, new: str) -> Path:
    name = path.name
    if not name.endswith(old):
        raise ConversionError(f"Expected a '{old}' file", source_path=path)
    return path.with_name(name[: -len(old)] + new)


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConversionError("Could not read source file", source_path=path, original_error=e) from e


def _library(libraries: Optional[Mapping[str, str]], name: str) -> str:
    if libraries and name in libraries:
        return libraries[name]
    return DEFAULTS["libraries"][name]


async def _load_scripts(page: Page, *scripts: str) -> None:
    await page.set_content(SCRIPT_PAGE.render(scripts=scripts), wait_until="load")


async def _evaluate(page: Page, source: Path, scripts: list, expression: str, arg: Any) -> Any:
    try:
        await _load_scripts(page, *scripts)
        return await page.evaluate(expression, arg)
    except PlaywrightError as e:
        raise ConversionError("Browser failed to render diagram", source_path=source, original_error=e) from e


def _write_artifact(source: Path, artifact: Path, content: str) -> Path:
    artifact.write_text(content, encoding="utf-8")
    log_conversion_written(source, artifact)
    return artifact


async def chartjs_to_png(
    path: Union[str, Path], page: Page, libraries: Optional[Mapping[str, str]] = None
) -> Path:
    """Render a Chart.js config (`x.chart.js`) to `x.png`."""
    path = Path(path)
    output_path = _replace_suffix(path, ".chart.js", ".png")
    arg = {"code": _read_source(path), **CHART_SIZE}

    await _evaluate(page, path, [_library(libraries, "chartjs")], CHARTJS_JS, arg)
    try:
        await page.locator("#diagram canvas").screenshot(path=str(output_path))
    except PlaywrightError as e:
        raise ConversionError("Could not capture chart", source_path=path, original_error=e) from e

    log_conversion_written(path, output_path)
    return output_path


async def mermaid_to_svg(
    path: Union[str, Path], page: Page, libraries: Optional[Mapping[str, str]] = None
) -> Path:
    """Render a mermaid diagram (`x.mermaid`) to `x.svg`."""
    path = Path(path)
    output_path = _replace_suffix(path, ".mermaid", ".svg")
    svg = await _evaluate(
        page, path, [_library(libraries, "mermaid")], MERMAID_JS, _read_source(path)
    )
    return _write_artifact(path, output_path, svg)


async def flowchart_to_svg(
    path: Union[str, Path], page: Page, libraries: Optional[Mapping[str, str]] = None
) -> Path:
    """
    Render a flowchart.js diagram (`x.flowchart`) to `x.svg`.

    Drawing options are read from `x.flowchart.json` when it exists, which is
    why a change to that file re-renders the diagram.
    """
    path = Path(path)
    output_path = _replace_suffix(path, ".flowchart", ".svg")

    options = {}
    options_path = path.with_name(path.name + ".json")
    if options_path.exists():
        try:
            options = json.loads(_read_source(options_path))
        except json.JSONDecodeError as e:
            raise ConversionError(
                "Invalid flowchart options", source_path=options_path, original_error=e
            ) from e
        _log_debug(f"  Flowchart options: {options_path}")

    scripts = [_library(libraries, "raphael"), _library(libraries, "flowchart")]
    arg = {"code": _read_source(path), "options": options}
    svg = await _evaluate(page, path, scripts, FLOWCHART_JS, arg)
    return _write_artifact(path, output_path, svg)


async def vegalite_to_svg(
    path: Union[str, Path], page: Page, libraries: Optional[Mapping[str, str]] = None
) -> Path:
    """Render a vega-lite spec (`x.vegalite.json`) to `x.svg`."""
    path = Path(path)
    output_path = _replace_suffix(path, ".vegalite.json", ".svg")
    try:
        spec = json.loads(_read_source(path))
    except json.JSONDecodeError as e:
        raise ConversionError("Invalid vega-lite spec", source_path=path, original_error=e) from e

    scripts = [_library(libraries, "vega"), _library(libraries, "vega_lite")]
    svg = await _evaluate(page, path, scripts, VEGALITE_JS, spec)
    return _write_artifact(path, output_path, svg)


def _scour_options():
    options = scour.sanitizeOptions()
    options.strip_comments = True
    options.remove_metadata = True
    options.enable_viewboxing = True
    options.shorten_ids = True
    return options


def optimize_svg(svg: str) -> str:
    """Optimise SVG markup with scour."""
    return scour.scourString(svg, _scour_options())


async def svg_to_optimized_svg(path: Union[str, Path]) -> Path:
    """Optimise `x.o.svg` into `x.svg`; scour runs in a worker thread."""
    path = Path(path)
    output_path = _replace_suffix(path, ".o.svg", ".svg")
    source = _read_source(path)
    try:
        optimized = await asyncio.to_thread(optimize_svg, source)
    except Exception as e:
        raise ConversionError("Could not optimise SVG", source_path=path, original_error=e) from e
    return _write_artifact(path, output_path, optimized)
