class BrowserError(Exception):
    """Base exception for all browser session errors."""


class LaunchError(BrowserError):
    """Raised when the browser process cannot be started."""


class ConfigError(BrowserError):
    """Raised when the session cannot be configured (e.g. download target)."""


class NavigationTimeoutError(BrowserError):
    """Raised when a page does not reach network idle within its budget."""


class ElementNotFoundError(BrowserError):
    """Raised when a form control is absent within the implicit wait."""
