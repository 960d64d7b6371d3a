"""
Task dispatch.

Turns a Classification into a call on the rendering context's converters.
Asynchronous converters come back as an awaitable for the watch loop to track;
synchronous work (CSV tables) runs inline and, like ignored changes, yields
None, meaning "already settled".
"""

from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from playwright.async_api import Page

from relaxed.contexts.orchestration.classifier import Classification, TaskKind
from relaxed.contexts.orchestration.paths import DocumentPaths
from relaxed.contexts.rendering import converters as default_converters

Handler = Callable[[Path], Optional[Awaitable[Any]]]


class TaskDispatcher:
    """
    Maps each TaskKind to the converter call that handles it.

    Args:
        page: The build session's shared page
        paths: Resolved document paths (for master rebuilds)
        converters: Object exposing the converter functions; defaults to
            relaxed.contexts.rendering.converters
        pdf_options: `pdf` config section, forwarded to master rebuilds
        libraries: `libraries` config section, forwarded to diagram converters
    """

    def __init__(
        self,
        page: Page,
        paths: DocumentPaths,
        converters: Any = default_converters,
        pdf_options: Optional[Mapping[str, Any]] = None,
        libraries: Optional[Mapping[str, str]] = None,
    ):
        self.page = page
        self.paths = paths
        self.converters = converters
        self.pdf_options = dict(pdf_options) if pdf_options else None
        self.libraries = dict(libraries) if libraries else None

        self._handlers: Dict[TaskKind, Handler] = {
            TaskKind.CHARTJS_RENDER: self._page_task("chartjs_to_png"),
            TaskKind.MERMAID_RENDER: self._page_task("mermaid_to_svg"),
            TaskKind.FLOWCHART_RENDER: self._page_task("flowchart_to_svg"),
            TaskKind.FLOWCHART_JSON_RENDER: self._page_task("flowchart_to_svg"),
            TaskKind.VEGALITE_RENDER: self._page_task("vegalite_to_svg"),
            TaskKind.TABLE_TRANSPILE: self._transpile_table,
            TaskKind.SVG_OPTIMIZE: lambda path: self.converters.svg_to_optimized_svg(path),
            TaskKind.MASTER_REBUILD: lambda _path: self.build_master(),
            TaskKind.IGNORE: lambda _path: None,
        }

    def _page_task(self, name: str) -> Handler:
        def handler(path: Path) -> Awaitable[Any]:
            return getattr(self.converters, name)(path, self.page, libraries=self.libraries)

        return handler

    def _transpile_table(self, path: Path) -> None:
        self.converters.table_to_pug(path)
        return None

    def build_master(self) -> Awaitable[Any]:
        """Rebuild the master document into the output PDF."""
        return self.converters.master_document_to_pdf(
            self.paths.input_path,
            self.page,
            self.paths.temp_html_path,
            self.paths.output_path,
            pdf_options=self.pdf_options,
        )

    def dispatch(self, classification: Classification) -> Optional[Awaitable[Any]]:
        """
        Start the task for a classified change.

        Returns:
            An awaitable that settles when the converter finishes, or None
            when the task completed synchronously (tables) or there was
            nothing to do (ignored changes)

        Raises:
            Whatever a synchronous converter raises
        """
        return self._handlers[classification.kind](classification.path)
