class DownloadError(Exception):
    """Base exception for download watching errors."""


class DownloadTimeoutError(DownloadError):
    """Raised when no matching file appears within the time budget."""


class DownloadCancelledError(DownloadError):
    """Raised when the caller cancels while the watcher is waiting."""
