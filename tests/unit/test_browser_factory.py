from unittest.mock import patch

import pytest

from app.browser.factory import BrowserSessionFactory
from app.config.settings import Settings


class TestBrowserSessionFactory:
    def test_launches_configured_browser(self) -> None:
        settings = Settings(
            browser_type="Firefox",
            browser_headless=False,
            browser_user_agent="",
            field_timeout_seconds=7,
        )
        with patch(
            "app.browser.factory.PlaywrightBrowserSession.launch"
        ) as launch:
            session = BrowserSessionFactory.create(settings)

        launch.assert_called_once_with(
            browser_type="firefox",
            headless=False,
            user_agent=None,
            field_timeout_seconds=7,
        )
        assert session is launch.return_value

    def test_unknown_browser_raises(self) -> None:
        settings = Settings(browser_type="netscape")
        with (
            patch("app.browser.factory.PlaywrightBrowserSession.launch") as launch,
            pytest.raises(ValueError, match="Unknown browser type"),
        ):
            BrowserSessionFactory.create(settings)

        launch.assert_not_called()
