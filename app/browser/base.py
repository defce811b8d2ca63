from abc import ABC, abstractmethod
from pathlib import Path


class BaseBrowserSession(ABC):
    """Contract for a single request-scoped browser instance and tab."""

    @abstractmethod
    def configure_downloads(self, target_dir: Path) -> None:
        """Route every download triggered by the page into target_dir.

        Must be called before the first navigation.

        Raises:
            ConfigError: if called too late or the session is closed.
        """

    @abstractmethod
    def navigate(self, url: str, timeout_seconds: float) -> None:
        """Open url and wait for the page to reach network idle.

        Raises:
            NavigationTimeoutError: if the budget elapses first.
        """

    @abstractmethod
    def fill_field(self, selector: str, value: str) -> None:
        """Type value into the field matching selector.

        Raises:
            ElementNotFoundError: if the field does not appear in time.
        """

    @abstractmethod
    def submit_and_await_navigation(self, selector: str, timeout_seconds: float) -> None:
        """Click the submit control and wait for the resulting navigation.

        Raises:
            ElementNotFoundError: if the control does not appear in time.
            NavigationTimeoutError: if the navigation does not settle in time.
        """

    @abstractmethod
    def pause(self, seconds: float) -> None:
        """Let the browser process background events for the given time."""

    @abstractmethod
    def close(self) -> None:
        """Release the browser. Idempotent and never raises."""
