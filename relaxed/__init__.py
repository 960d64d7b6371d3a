"""
ReLaXed - a document-build watcher

Renders a master markup document (Pug, Markdown or HTML) to PDF through a
headless browser, and rebuilds it automatically when its sources change.

Architecture:
- Orchestration Context: change classification, single-flight gating,
  task dispatch, the watch loop and run-mode selection
- Rendering Context: browser session lifecycle and per-format converters
"""

__version__ = "0.1.0"
