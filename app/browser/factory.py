from app.browser.base import BaseBrowserSession
from app.browser.playwright_adapter import PlaywrightBrowserSession
from app.config.settings import Settings


class BrowserSessionFactory:
    """Opens the configured browser session."""

    BROWSER_TYPES: tuple[str, ...] = ("chromium", "firefox", "webkit")

    @classmethod
    def create(cls, settings: Settings) -> BaseBrowserSession:
        """Launch a new isolated browser session.

        Raises:
            ValueError: for an unknown browser type.
            LaunchError: if the browser cannot be started.
        """
        browser_type = settings.browser_type.lower()
        if browser_type not in cls.BROWSER_TYPES:
            raise ValueError(
                f"Unknown browser type '{browser_type}'. Choose from: {list(cls.BROWSER_TYPES)}"
            )
        return PlaywrightBrowserSession.launch(
            browser_type=browser_type,
            headless=settings.browser_headless,
            user_agent=settings.browser_user_agent or None,
            field_timeout_seconds=settings.field_timeout_seconds,
        )
