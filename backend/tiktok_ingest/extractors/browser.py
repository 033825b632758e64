"""Shared headless Chromium handle.

One browser process is started lazily on first use and reused; every logical
operation gets its own context and page, bounded by a semaphore. The handle is
created once per process and passed to the extractor explicitly.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, Optional

from playwright.async_api import async_playwright

from tiktok_ingest.config import Settings
from tiktok_ingest.errors import (
    BrowserDependenciesError,
    BrowserLaunchError,
    BrowserNotInstalledError,
    BrowserPermissionError,
)
from tiktok_ingest.utils.user_agent import get_random_user_agent

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--disable-extensions",
    "--no-first-run",
    "--disable-default-apps",
]

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}

DEFAULT_VIEWPORT = {"width": 1920, "height": 1080}

HIDE_WEBDRIVER_SCRIPT = "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"

# Checked in order: a missing .so also reports "No such file or directory".
_LAUNCH_FAILURE_MARKERS = (
    (
        BrowserDependenciesError,
        ("error while loading shared libraries", "cannot open shared object file",
         "host system is missing dependencies", "missing dependencies", "install-deps"),
        "Chromium is missing system libraries. Run `playwright install-deps chromium`.",
    ),
    (
        BrowserNotInstalledError,
        ("executable doesn't exist", "playwright install", "no such file or directory", "enoent"),
        "Chromium is not installed. Run `playwright install chromium`.",
    ),
    (
        BrowserPermissionError,
        ("permission denied", "eacces", "operation not permitted", "no usable sandbox", "setuid sandbox"),
        "Chromium could not be started due to a permission or sandbox error. "
        "Check file permissions or run with --no-sandbox.",
    ),
)


def classify_launch_error(exc: BaseException) -> BrowserLaunchError:
    """Map a raw launch failure to a specific, actionable BrowserLaunchError."""
    text = str(exc)
    lowered = text.lower()
    for error_cls, markers, hint in _LAUNCH_FAILURE_MARKERS:
        if any(marker in lowered for marker in markers):
            return error_cls(hint, details={"reason": text})
    return BrowserLaunchError(f"Failed to launch browser: {text}", details={"reason": text})


def _build_proxy(proxy: Optional[str]) -> Optional[Dict[str, str]]:
    if not proxy:
        return None
    return {"server": proxy}


class BrowserManager:
    """Lazily started, process-wide Chromium with bounded concurrent pages."""

    def __init__(
        self,
        headless: bool = True,
        proxy: Optional[str] = None,
        user_agent: Optional[str] = None,
        executable_path: Optional[str] = None,
        timeout_ms: int = 60000,
        max_pages: int = 4,
        playwright_factory: Callable[[], Any] = async_playwright,
    ):
        self.headless = headless
        self.proxy = proxy or None
        self.user_agent = user_agent or None
        self.executable_path = executable_path or None
        self.timeout_ms = timeout_ms
        self.max_pages = max(1, int(max_pages))
        self._playwright_factory = playwright_factory
        self._playwright = None
        self._browser = None
        self._lock = asyncio.Lock()
        self._pages = asyncio.Semaphore(self.max_pages)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BrowserManager":
        return cls(
            headless=settings.browser_headless,
            proxy=settings.browser_proxy,
            user_agent=settings.browser_user_agent,
            executable_path=settings.browser_executable_path,
            timeout_ms=settings.browser_timeout_ms,
            max_pages=settings.browser_max_pages,
        )

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self):
        """Return the shared browser, launching it on first use."""
        async with self._lock:
            if self.is_running:
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected; relaunching")
                await self._stop_locked()

            logger.info("Launching headless Chromium (headless=%s)", self.headless)
            try:
                self._playwright = await self._playwright_factory().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=LAUNCH_ARGS,
                    proxy=_build_proxy(self.proxy),
                    executable_path=self.executable_path,
                )
            except Exception as exc:
                await self._stop_locked()
                error = classify_launch_error(exc)
                logger.error("Browser launch failed (%s): %s", error.code, exc)
                raise error from exc
            return self._browser

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Any]:
        """Open a fresh context and page for one operation; always closed on exit."""
        browser = await self.acquire()
        async with self._pages:
            context = await browser.new_context(
                user_agent=self.user_agent or get_random_user_agent(),
                locale="en-US",
                viewport=DEFAULT_VIEWPORT,
                extra_http_headers=DEFAULT_HEADERS,
            )
            try:
                await context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
                page = await context.new_page()
                page.set_default_timeout(self.timeout_ms)
                yield page
            finally:
                await context.close()

    async def shutdown(self) -> None:
        async with self._lock:
            await self._stop_locked()

    async def _stop_locked(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except Exception as exc:
                logger.warning("Error closing browser: %s", exc)
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:
                logger.warning("Error stopping Playwright: %s", exc)
