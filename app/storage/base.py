from abc import ABC, abstractmethod
from pathlib import Path

from app.storage.models import UploadResult


class BaseUploadClient(ABC):
    """Contract for remote storage adapters."""

    @abstractmethod
    def upload(self, file_path: Path, display_name: str | None = None) -> UploadResult:
        """Upload one local file and return its remote reference.

        Args:
            file_path: Local file to stream to the remote service.
            display_name: Remote file name; defaults to the local base name.

        Returns:
            UploadResult with the remote id and a shareable link.

        Raises:
            UploadError: on any failure, with retryable set.
        """
