"""Shared fixtures: fake converters, a fake build session, and log capture."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from loguru import logger

from relaxed.config import load_config
from relaxed.contexts.orchestration.paths import resolve_document_paths
from relaxed.contexts.rendering.exceptions import ConversionError
from relaxed.utils.event_logging import configure_events_file


class FakeConverters:
    """
    Stands in for relaxed.contexts.rendering.converters.

    Records every call as (name, path). Asynchronous converters sleep for
    `delay` seconds and raise ConversionError when `fail` is set. `on_call`
    runs synchronously at call time, e.g. to inspect the gate.
    """

    def __init__(self, delay: float = 0.0, fail: bool = False, on_call=None):
        self.delay = delay
        self.fail = fail
        self.on_call = on_call
        self.calls = []
        self.release = None

    def _record(self, name, path):
        self.calls.append((name, Path(path)))
        if self.on_call is not None:
            self.on_call(name, Path(path))

    async def _work(self):
        if self.release is not None:
            await self.release.wait()
        else:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConversionError("converter exploded")

    def _async_call(self, name, path):
        self._record(name, path)
        return self._work()

    def chartjs_to_png(self, path, page, libraries=None):
        return self._async_call("chartjs_to_png", path)

    def mermaid_to_svg(self, path, page, libraries=None):
        return self._async_call("mermaid_to_svg", path)

    def flowchart_to_svg(self, path, page, libraries=None):
        return self._async_call("flowchart_to_svg", path)

    def vegalite_to_svg(self, path, page, libraries=None):
        return self._async_call("vegalite_to_svg", path)

    def svg_to_optimized_svg(self, path):
        return self._async_call("svg_to_optimized_svg", path)

    def master_document_to_pdf(self, input_path, page, temp_html_path, output_path, pdf_options=None):
        return self._async_call("master_document_to_pdf", input_path)

    def table_to_pug(self, path):
        self._record("table_to_pug", path)
        if self.fail:
            raise ConversionError("bad table")
        return Path(path).with_suffix(".pug")


class FakeSession:
    def __init__(self, options):
        self.options = options
        self.page = object()
        self.closed = False


class FakeSessionFactory:
    """Callable with the BuildSession.launch signature; remembers its sessions."""

    def __init__(self, fail_on_launch: bool = False):
        self.fail_on_launch = fail_on_launch
        self.sessions = []

    def __call__(self, **options):
        return self._launch(options)

    @asynccontextmanager
    async def _launch(self, options):
        if self.fail_on_launch:
            raise RuntimeError("Executable doesn't exist")
        session = FakeSession(options)
        self.sessions.append(session)
        try:
            yield session
        finally:
            session.closed = True


@pytest.fixture(autouse=True)
def no_events_file():
    """Keep build events out of the filesystem unless a test opts in."""
    configure_events_file(None)
    yield
    configure_events_file(None)


@pytest.fixture
def log_messages():
    """Capture loguru messages emitted during the test."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def fake_converters():
    return FakeConverters()


@pytest.fixture
def session_factory():
    return FakeSessionFactory()


@pytest.fixture
def doc_dir(tmp_path):
    """A document directory containing doc.pug."""
    tmp_path = tmp_path.resolve()
    (tmp_path / "doc.pug").write_text("p Hello\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def doc_paths(doc_dir):
    return resolve_document_paths(doc_dir / "doc.pug")


@pytest.fixture
def config(doc_dir):
    return load_config(doc_dir)


@pytest.fixture
def converters_factory():
    """Build FakeConverters with custom delay / failure behaviour."""
    return FakeConverters
