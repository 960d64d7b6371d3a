"""
Build Session

Owns the headless Chromium instance and the single page that every rendering
task shares for the lifetime of the process.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Sequence

from playwright.async_api import Browser, Page, Playwright, async_playwright

from relaxed.contexts.rendering.logger import (
    _log_debug,
    _log_info,
    _log_warning,
    log_page_error,
    log_session_error,
)

NO_SANDBOX_FLAG = "--no-sandbox"


def launch_args(sandbox: bool = True, extra_args: Sequence[str] = ()) -> List[str]:
    """Chromium command-line arguments for a session."""
    args = list(extra_args)
    if not sandbox and NO_SANDBOX_FLAG not in args:
        args.insert(0, NO_SANDBOX_FLAG)
    return args


class BuildSession:
    """
    One launched browser and one reusable page.

    Use BuildSession.launch() rather than constructing directly; it wires the
    error hooks and guarantees teardown.
    """

    def __init__(self, playwright: Playwright, browser: Browser, page: Page):
        self.playwright = playwright
        self.browser = browser
        self.page = page
        self._closing = False

    @classmethod
    @asynccontextmanager
    async def launch(
        cls,
        headless: bool = True,
        sandbox: bool = True,
        extra_args: Sequence[str] = (),
    ) -> AsyncIterator["BuildSession"]:
        """
        Start Chromium, open the shared page, and close everything on exit.

        Args:
            headless: Run without a visible window
            sandbox: When False, Chromium starts with --no-sandbox (needed in
                some containers and CI runners)
            extra_args: Additional Chromium arguments from config

        Yields:
            The live BuildSession
        """
        args = launch_args(sandbox, extra_args)
        _log_debug(f"Launching Chromium (headless={headless}, args={args})")

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=headless, args=args)
        except Exception:
            await playwright.stop()
            raise

        page = await browser.new_page()
        session = cls(playwright, browser, page)
        session._wire_error_hooks()
        _log_info("Browser session ready")

        try:
            yield session
        finally:
            await session.close()

    def _wire_error_hooks(self) -> None:
        # Runtime errors inside the page are reported, never raised
        self.page.on("pageerror", log_page_error)
        self.page.on("crash", lambda _page: log_session_error("page crashed"))
        self.browser.on("disconnected", self._on_disconnected)

    def _on_disconnected(self, _browser: Browser) -> None:
        if not self._closing:
            log_session_error("browser disconnected")

    async def close(self) -> None:
        """Close page, browser and Playwright; teardown failures are logged only."""
        self._closing = True
        if not self.page.is_closed():
            try:
                await self.page.close()
            except Exception as e:
                _log_warning(f"Could not close page: {e}")
        if self.browser.is_connected():
            try:
                await self.browser.close()
            except Exception as e:
                _log_warning(f"Could not close browser: {e}")
        try:
            await self.playwright.stop()
        except Exception as e:
            _log_warning(f"Could not stop Playwright: {e}")
        _log_debug("Browser session closed")
