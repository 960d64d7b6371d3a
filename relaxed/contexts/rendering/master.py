"""
Master Document Rendering

Renders the master document (Pug, Markdown or HTML) to HTML, loads it in the
shared page and prints it to PDF.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import markdown
from jinja2 import Environment, FileSystemLoader, Template
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from relaxed.config import DEFAULTS
from relaxed.contexts.rendering.exceptions import ConversionError
from relaxed.contexts.rendering.logger import _log_debug, _log_info, log_document_built
from relaxed.utils.pdf_processing import page_count

PUG_SUFFIXES = {".pug", ".jade"}
MARKDOWN_SUFFIXES = {".md", ".markdown"}
HTML_SUFFIXES = {".html", ".htm"}

MARKDOWN_EXTENSIONS = ["tables", "fenced_code", "toc", "attr_list"]

DEFAULT_PDF_OPTIONS = DEFAULTS["pdf"]

MARKDOWN_PAGE = Template(
    """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
{% if stylesheet %}<link rel="stylesheet" href="{{ stylesheet }}">{% endif %}
</head>
<body>
{{ body }}
</body>
</html>
"""
)

# Lifts #page-header / #page-footer out of the document so they can become
# the PDF header and footer templates.
EXTRACT_HEADER_FOOTER_JS = """
() => {
    const take = (id) => {
        const el = document.getElementById(id);
        if (!el) return null;
        const html = el.innerHTML;
        el.remove();
        return html;
    };
    return { header: take('page-header'), footer: take('page-footer') };
}
"""


@dataclass
class BuildResult:
    """
    Result of a master document build.

    Attributes:
        output_path: The PDF that was written
        html_path: The intermediate HTML file
        page_count: Number of pages in the PDF (None if unreadable)
    """

    output_path: Path
    html_path: Path
    page_count: Optional[int] = None


def _render_pug(input_path: Path) -> str:
    env = Environment(
        loader=FileSystemLoader(str(input_path.parent)),
        extensions=["pypugjs.ext.jinja.PyPugJSExtension"],
    )
    return env.get_template(input_path.name).render()


def _read_html(input_path: Path) -> str:
    return input_path.read_text(encoding="utf-8")


def _render_markdown(input_path: Path) -> str:
    body = markdown.markdown(
        input_path.read_text(encoding="utf-8"), extensions=MARKDOWN_EXTENSIONS
    )
    stylesheet = input_path.with_suffix(".css")
    return MARKDOWN_PAGE.render(
        title=input_path.stem,
        body=body,
        stylesheet=stylesheet.resolve().as_uri() if stylesheet.exists() else None,
    )


def render_html(input_path: Path) -> str:
    """
    Render the master document source to a complete HTML string.

    Raises:
        ConversionError: On an unsupported suffix or a template/markup error
    """
    suffix = input_path.suffix.lower()
    if suffix in PUG_SUFFIXES:
        renderer = _render_pug
    elif suffix in MARKDOWN_SUFFIXES:
        renderer = _render_markdown
    elif suffix in HTML_SUFFIXES:
        renderer = _read_html
    else:
        raise ConversionError(
            f"Unsupported master document type '{suffix}'", source_path=input_path
        )

    try:
        return renderer(input_path)
    except Exception as e:
        raise ConversionError(
            "Could not render master document to HTML", source_path=input_path, original_error=e
        ) from e


def _header_footer_options(header: Optional[str], footer: Optional[str]) -> dict:
    if header is None and footer is None:
        return {"display_header_footer": False}
    return {
        "display_header_footer": True,
        "header_template": header or "<span></span>",
        "footer_template": footer or "<span></span>",
    }


def _split_pdf_options(pdf_options: Optional[Mapping[str, Any]]) -> Tuple[dict, dict]:
    options = {**DEFAULT_PDF_OPTIONS, **(pdf_options or {})}
    navigation = {"wait_until": options.pop("wait_until"), "timeout": options.pop("timeout_ms")}
    return navigation, options


async def master_document_to_pdf(
    input_path: Path,
    page: Page,
    temp_html_path: Path,
    output_path: Path,
    pdf_options: Optional[Mapping[str, Any]] = None,
) -> BuildResult:
    """
    Build the master document into a PDF using the shared page.

    Args:
        input_path: Master document (.pug, .md or .html)
        page: The session's shared page
        temp_html_path: Where the intermediate HTML is written
        output_path: Where the PDF is written
        pdf_options: Overrides for DEFAULT_PDF_OPTIONS (the `pdf` config section)

    Returns:
        BuildResult describing the written PDF

    Raises:
        ConversionError: If rendering, navigation or printing fails
    """
    input_path = Path(input_path)
    temp_html_path = Path(temp_html_path)
    output_path = Path(output_path)

    _log_info(f"Rendering {input_path.name} to HTML")
    temp_html_path.write_text(render_html(input_path), encoding="utf-8")
    _log_debug(f"  HTML: {temp_html_path}")

    navigation, options = _split_pdf_options(pdf_options)
    try:
        await page.goto(temp_html_path.resolve().as_uri(), **navigation)
        parts = await page.evaluate(EXTRACT_HEADER_FOOTER_JS)
        options.update(_header_footer_options(parts["header"], parts["footer"]))
        _log_info("Printing PDF")
        await page.pdf(path=str(output_path), **options)
    except PlaywrightError as e:
        raise ConversionError(
            "Browser failed while printing the document", source_path=input_path, original_error=e
        ) from e

    result = BuildResult(
        output_path=output_path,
        html_path=temp_html_path,
        page_count=page_count(output_path),
    )
    log_document_built(result)
    return result
