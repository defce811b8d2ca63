"""Playwright-backed browser session used to drive the external audit form."""

import time
from collections.abc import Callable
from pathlib import Path

from playwright.sync_api import Browser, BrowserContext, Download, Page, Playwright, sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from app.browser.base import BaseBrowserSession
from app.browser.exceptions import (
    BrowserError,
    ConfigError,
    ElementNotFoundError,
    LaunchError,
    NavigationTimeoutError,
)
from app.logging.logger import Log

# Chromium cannot use its sandbox inside most containers.
CHROMIUM_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

HIDE_WEBDRIVER_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined});"
)

PARTIAL_SUFFIX = ".part"


class PlaywrightBrowserSession(BaseBrowserSession):
    """One isolated browser, context and page owned by a single pipeline run."""

    def __init__(
        self,
        *,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
        field_timeout_seconds: float,
    ) -> None:
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._field_timeout_ms = field_timeout_seconds * 1000
        self._download_dir: Path | None = None
        self._navigated = False
        self._closed = False

    @classmethod
    def launch(
        cls,
        *,
        browser_type: str = "chromium",
        headless: bool = True,
        user_agent: str | None = None,
        field_timeout_seconds: float = 5,
    ) -> "PlaywrightBrowserSession":
        """Start Playwright and open a fresh browser with a single page.

        Anything already started is torn down again when a later launch
        step fails.

        Raises:
            LaunchError: if the browser or its page cannot be created.
        """
        playwright: Playwright | None = None
        browser: Browser | None = None
        try:
            playwright = sync_playwright().start()
            launcher = getattr(playwright, browser_type)
            browser = launcher.launch(
                headless=headless,
                args=CHROMIUM_LAUNCH_ARGS if browser_type == "chromium" else [],
            )
            context = browser.new_context(
                accept_downloads=True,
                user_agent=user_agent,
                viewport={"width": 1366, "height": 768},
                locale="en-US",
            )
            context.add_init_script(HIDE_WEBDRIVER_SCRIPT)
            page = context.new_page()
        except Exception as exc:
            if browser is not None:
                _release_quietly("browser", browser.close)
            if playwright is not None:
                _release_quietly("playwright", playwright.stop)
            raise LaunchError(f"Could not launch {browser_type}: {exc}") from exc

        Log.info(f"Launched {browser_type} browser (headless={headless})")
        return cls(
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
            field_timeout_seconds=field_timeout_seconds,
        )

    def configure_downloads(self, target_dir: Path) -> None:
        if self._closed:
            raise ConfigError("Cannot configure downloads on a closed session")
        if self._navigated:
            raise ConfigError("Downloads must be configured before the first navigation")
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"Download directory {target_dir} is not usable: {exc}") from exc
        if self._download_dir is None:
            self._page.on("download", self._save_download)
        self._download_dir = target_dir
        Log.info(f"Downloads will be saved to {target_dir}")

    def navigate(self, url: str, timeout_seconds: float) -> None:
        self._navigated = True
        try:
            self._page.goto(url, wait_until="networkidle", timeout=timeout_seconds * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError(
                f"{url} did not settle within {timeout_seconds}s"
            ) from exc
        except PlaywrightError as exc:
            raise BrowserError(f"Navigation to {url} failed: {exc}") from exc

    def fill_field(self, selector: str, value: str) -> None:
        try:
            self._page.locator(selector).first.fill(value, timeout=self._field_timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ElementNotFoundError(f"Field '{selector}' not found") from exc
        except PlaywrightError as exc:
            raise BrowserError(f"Could not fill '{selector}': {exc}") from exc

    def submit_and_await_navigation(self, selector: str, timeout_seconds: float) -> None:
        try:
            with self._page.expect_navigation(
                wait_until="networkidle",
                timeout=timeout_seconds * 1000,
            ):
                try:
                    self._page.locator(selector).first.click(timeout=self._field_timeout_ms)
                except PlaywrightTimeoutError as exc:
                    raise ElementNotFoundError(f"Submit control '{selector}' not found") from exc
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeoutError(
                f"Navigation after submit did not settle within {timeout_seconds}s"
            ) from exc
        except PlaywrightError as exc:
            raise BrowserError(f"Submitting via '{selector}' failed: {exc}") from exc

    def pause(self, seconds: float) -> None:
        # Sync Playwright only dispatches events (downloads included) while
        # one of its calls is in progress.
        if self._closed:
            time.sleep(seconds)
            return
        try:
            self._page.wait_for_timeout(seconds * 1000)
        except PlaywrightError as exc:
            Log.warning(f"Browser pause failed, sleeping instead: {exc}")
            time.sleep(seconds)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        _release_quietly("context", self._context.close)
        _release_quietly("browser", self._browser.close)
        _release_quietly("playwright", self._playwright.stop)
        Log.info("Browser session closed")

    def _save_download(self, download: Download) -> None:
        if self._download_dir is None:
            return
        name = Path(download.suggested_filename).name
        target = self._download_dir / name
        partial = self._download_dir / f"{name}{PARTIAL_SUFFIX}"
        try:
            download.save_as(partial)
            partial.replace(target)
        except (PlaywrightError, OSError) as exc:
            Log.error(f"Could not save download '{name}': {exc}")
            return
        Log.info(f"Download saved to {target}")


def _release_quietly(what: str, release: Callable[[], object]) -> None:
    try:
        release()
    except Exception as exc:
        Log.warning(f"Could not close {what}: {exc}")
