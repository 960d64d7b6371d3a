"""Unit tests for the browser session, with Playwright replaced by fakes."""

import asyncio

import pytest

from relaxed.contexts.rendering import session as session_module
from relaxed.contexts.rendering.session import NO_SANDBOX_FLAG, BuildSession, launch_args


class FakeEmitter:
    def __init__(self):
        self.handlers = {}

    def on(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def emit(self, event, *args):
        for handler in self.handlers.get(event, []):
            handler(*args)


class FakePage(FakeEmitter):
    def __init__(self, fail_close=False):
        super().__init__()
        self.fail_close = fail_close
        self.closed = False

    def is_closed(self):
        return self.closed

    async def close(self):
        if self.fail_close:
            raise RuntimeError("page already gone")
        self.closed = True


class FakeBrowser(FakeEmitter):
    def __init__(self, fail_close=False):
        super().__init__()
        self.fail_close = fail_close
        self.connected = True
        self.page = FakePage()

    def is_connected(self):
        return self.connected

    async def new_page(self):
        return self.page

    async def close(self):
        if self.fail_close:
            raise RuntimeError("browser hung up")
        self.connected = False
        self.emit("disconnected", self)


class FakeChromium:
    def __init__(self, browser, fail_launch=False):
        self.browser = browser
        self.fail_launch = fail_launch
        self.launches = []

    async def launch(self, **kwargs):
        self.launches.append(kwargs)
        if self.fail_launch:
            raise RuntimeError("Executable doesn't exist")
        return self.browser


class FakePlaywright:
    def __init__(self, browser=None, fail_launch=False, fail_stop=False):
        self.chromium = FakeChromium(browser or FakeBrowser(), fail_launch)
        self.fail_stop = fail_stop
        self.stopped = False

    async def start(self):
        return self

    async def stop(self):
        if self.fail_stop:
            raise RuntimeError("driver exited")
        self.stopped = True


def _wired_session(page=None, browser=None, playwright=None):
    browser = browser or FakeBrowser()
    session = BuildSession(playwright or FakePlaywright(browser), browser, page or browser.page)
    session._wire_error_hooks()
    return session


class TestLaunchArgs:
    """Tests for Chromium argument assembly."""

    @pytest.mark.unit
    def test_sandboxed_by_default(self):
        assert launch_args() == []

    @pytest.mark.unit
    def test_disabling_sandbox_adds_flag(self):
        assert launch_args(sandbox=False) == [NO_SANDBOX_FLAG]

    @pytest.mark.unit
    def test_extra_args_are_kept(self):
        args = launch_args(sandbox=False, extra_args=["--disable-gpu"])
        assert args == [NO_SANDBOX_FLAG, "--disable-gpu"]

    @pytest.mark.unit
    def test_flag_not_duplicated(self):
        assert launch_args(sandbox=False, extra_args=[NO_SANDBOX_FLAG]) == [NO_SANDBOX_FLAG]


class TestErrorHooks:
    """Page and browser runtime errors are logged, never raised."""

    @pytest.mark.unit
    def test_page_error_is_logged(self, log_messages):
        session = _wired_session()
        session.page.emit("pageerror", "ReferenceError: mermaid is not defined")
        assert any("Page error: ReferenceError: mermaid is not defined" in m for m in log_messages)

    @pytest.mark.unit
    def test_page_crash_is_logged(self, log_messages):
        session = _wired_session()
        session.page.emit("crash", session.page)
        assert any("Error: page crashed" in m for m in log_messages)

    @pytest.mark.unit
    def test_unexpected_disconnect_is_logged(self, log_messages):
        session = _wired_session()
        session.browser.emit("disconnected", session.browser)
        assert any("Error: browser disconnected" in m for m in log_messages)

    @pytest.mark.unit
    def test_disconnect_during_close_is_quiet(self, log_messages):
        session = _wired_session()
        asyncio.run(session.close())
        assert not session.browser.is_connected()
        assert not any("browser disconnected" in m for m in log_messages)


class TestClose:
    """Teardown failures are reported as warnings and never propagate."""

    @pytest.mark.unit
    def test_close_releases_everything(self):
        session = _wired_session()
        asyncio.run(session.close())
        assert session.page.is_closed()
        assert not session.browser.is_connected()
        assert session.playwright.stopped

    @pytest.mark.unit
    def test_close_swallows_teardown_errors(self, log_messages):
        browser = FakeBrowser(fail_close=True)
        page = FakePage(fail_close=True)
        playwright = FakePlaywright(browser, fail_stop=True)
        session = _wired_session(page=page, browser=browser, playwright=playwright)

        asyncio.run(session.close())

        assert any("Could not close page: page already gone" in m for m in log_messages)
        assert any("Could not close browser: browser hung up" in m for m in log_messages)
        assert any("Could not stop Playwright: driver exited" in m for m in log_messages)


class TestLaunch:
    """Tests for the launch() async context manager."""

    @pytest.mark.unit
    def test_launch_yields_session_and_tears_down(self, monkeypatch):
        playwright = FakePlaywright()
        monkeypatch.setattr(session_module, "async_playwright", lambda: playwright)

        async def scenario():
            async with BuildSession.launch(sandbox=False, extra_args=["--disable-gpu"]) as session:
                assert session.page is playwright.chromium.browser.page
                assert "pageerror" in session.page.handlers
            return session

        session = asyncio.run(scenario())
        assert playwright.chromium.launches == [
            {"headless": True, "args": [NO_SANDBOX_FLAG, "--disable-gpu"]}
        ]
        assert session.page.is_closed()
        assert playwright.stopped

    @pytest.mark.unit
    def test_launch_failure_stops_playwright(self, monkeypatch):
        playwright = FakePlaywright(fail_launch=True)
        monkeypatch.setattr(session_module, "async_playwright", lambda: playwright)

        async def scenario():
            async with BuildSession.launch():
                pass

        with pytest.raises(RuntimeError, match="Executable doesn't exist"):
            asyncio.run(scenario())
        assert playwright.stopped

    @pytest.mark.unit
    def test_session_is_closed_when_the_body_raises(self, monkeypatch):
        playwright = FakePlaywright()
        monkeypatch.setattr(session_module, "async_playwright", lambda: playwright)

        async def scenario():
            async with BuildSession.launch():
                raise KeyError("interrupted")

        with pytest.raises(KeyError):
            asyncio.run(scenario())
        assert not playwright.chromium.browser.is_connected()
        assert playwright.stopped
