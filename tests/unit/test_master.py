"""Unit tests for master document HTML rendering (no browser needed)."""

import pytest

from relaxed.config import DEFAULTS
from relaxed.contexts.rendering.exceptions import ConversionError
from relaxed.contexts.rendering.master import (
    DEFAULT_PDF_OPTIONS,
    _header_footer_options,
    _split_pdf_options,
    render_html,
)


@pytest.mark.unit
def test_render_pug(tmp_path):
    source = tmp_path / "doc.pug"
    source.write_text("html\n  body\n    p Hello\n", encoding="utf-8")

    html = render_html(source)

    assert "<p>Hello</p>" in html
    assert "<body>" in html


@pytest.mark.unit
def test_render_pug_with_include(tmp_path):
    (tmp_path / "table.pug").write_text("table\n  tbody\n    tr\n      td cell\n", encoding="utf-8")
    source = tmp_path / "doc.pug"
    source.write_text("div\n  include table.pug\n", encoding="utf-8")

    html = render_html(source)

    assert "<td>cell</td>" in html


@pytest.mark.unit
def test_render_markdown_links_sibling_stylesheet(tmp_path):
    source = tmp_path / "notes.md"
    source.write_text("# Title\n\n| a | b |\n|---|---|\n| 1 | 2 |\n", encoding="utf-8")
    (tmp_path / "notes.css").write_text("h1 { color: red; }", encoding="utf-8")

    html = render_html(source)

    assert "Title</h1>" in html
    assert "<table>" in html
    assert (tmp_path / "notes.css").resolve().as_uri() in html


@pytest.mark.unit
def test_render_markdown_without_stylesheet(tmp_path):
    source = tmp_path / "notes.md"
    source.write_text("plain text\n", encoding="utf-8")
    assert "stylesheet" not in render_html(source)


@pytest.mark.unit
def test_render_html_passthrough(tmp_path):
    source = tmp_path / "doc.html"
    source.write_text("<html><body><p>As is</p></body></html>", encoding="utf-8")
    assert render_html(source) == "<html><body><p>As is</p></body></html>"


@pytest.mark.unit
def test_unsupported_suffix(tmp_path):
    source = tmp_path / "doc.tex"
    source.write_text("\\documentclass{article}", encoding="utf-8")
    with pytest.raises(ConversionError, match="Unsupported master document type '.tex'"):
        render_html(source)


@pytest.mark.unit
def test_render_errors_are_wrapped(tmp_path):
    with pytest.raises(ConversionError, match="Could not render master document") as excinfo:
        render_html(tmp_path / "missing.md")
    assert excinfo.value.original_error is not None


@pytest.mark.unit
def test_header_footer_options():
    assert _header_footer_options(None, None) == {"display_header_footer": False}
    options = _header_footer_options("<span>Title</span>", None)
    assert options["display_header_footer"] is True
    assert options["header_template"] == "<span>Title</span>"
    assert options["footer_template"] == "<span></span>"


@pytest.mark.unit
def test_split_pdf_options():
    navigation, options = _split_pdf_options({"format": "Letter", "timeout_ms": 5000})
    assert navigation == {"wait_until": DEFAULT_PDF_OPTIONS["wait_until"], "timeout": 5000}
    assert options["format"] == "Letter"
    assert "timeout_ms" not in options
    assert "wait_until" not in options


@pytest.mark.unit
def test_pdf_defaults_come_from_config_and_are_not_mutated():
    assert DEFAULT_PDF_OPTIONS is DEFAULTS["pdf"]
    _split_pdf_options({"wait_until": "load", "timeout_ms": 1})
    assert DEFAULTS["pdf"]["wait_until"] == "networkidle"
    assert DEFAULTS["pdf"]["timeout_ms"] == 30000
