class StorageError(Exception):
    """Base exception for remote storage errors."""


class CredentialsError(StorageError):
    """Raised when storage credentials are missing or cannot be decoded."""


class UploadError(StorageError):
    """Raised when an upload fails.

    retryable tells the caller whether the same upload may succeed later.
    Nothing in this package retries on its own.
    """

    def __init__(
        self,
        message: str,
        *,
        retryable: bool,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code
