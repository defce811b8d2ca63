import json
import socket
from pathlib import Path

import httplib2
from google.auth.exceptions import GoogleAuthError, RefreshError, TransportError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from app.logging.logger import Log
from app.storage.base import BaseUploadClient
from app.storage.credentials import CredentialProvider
from app.storage.exceptions import CredentialsError, UploadError
from app.storage.models import UploadResult

DEFAULT_LINK_TEMPLATE = "https://drive.google.com/file/d/{file_id}/view"


def _normalize_reason(reason: str) -> str:
    # "userRateLimitExceeded" and "USER_RATE_LIMIT_EXCEEDED" compare equal.
    return reason.replace("_", "").lower()


RETRYABLE_REASONS = frozenset(
    _normalize_reason(reason)
    for reason in (
        "rateLimitExceeded",
        "userRateLimitExceeded",
        "dailyLimitExceeded",
        "quotaExceeded",
        "storageQuotaExceeded",
        "sharingRateLimitExceeded",
        "resourceExhausted",
        "backendError",
    )
)


class GoogleDriveUploadClient(BaseUploadClient):
    """Uploads report files to Google Drive with a service account."""

    def __init__(
        self,
        *,
        credentials: CredentialProvider,
        folder_id: str = "",
        link_template: str = DEFAULT_LINK_TEMPLATE,
        mime_type: str = "application/pdf",
    ) -> None:
        self._credentials = credentials
        self._folder_id = folder_id
        self._link_template = link_template
        self._mime_type = mime_type

    def upload(self, file_path: Path, display_name: str | None = None) -> UploadResult:
        path = Path(file_path)
        if not path.is_file():
            raise UploadError(f"Report file not found: {path}", retryable=False)
        try:
            credentials = self._credentials.get()
        except CredentialsError as exc:
            raise UploadError(str(exc), retryable=False) from exc

        metadata: dict[str, object] = {"name": display_name or path.name}
        if self._folder_id:
            metadata["parents"] = [self._folder_id]

        media: MediaFileUpload | None = None
        try:
            # Service objects are not thread-safe; credentials are.
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            media = MediaFileUpload(str(path), mimetype=self._mime_type, resumable=True)
            response = (
                service.files()
                .create(body=metadata, media_body=media, fields="id")
                .execute()
            )
        except HttpError as exc:
            raise self._classify_http_error(exc) from exc
        except RefreshError as exc:
            raise UploadError(f"Google authentication failed: {exc}", retryable=False) from exc
        except TransportError as exc:
            raise UploadError(f"Network error during authentication: {exc}", retryable=True) from exc
        except GoogleAuthError as exc:
            raise UploadError(f"Google authentication failed: {exc}", retryable=False) from exc
        except (httplib2.HttpLib2Error, socket.gaierror, TimeoutError, ConnectionError) as exc:
            raise UploadError(f"Network error during upload: {exc}", retryable=True) from exc
        except OSError as exc:
            raise UploadError(f"Cannot read report file {path}: {exc}", retryable=False) from exc
        finally:
            # MediaFileUpload keeps the report open until collected.
            if media is not None:
                media.stream().close()

        remote_id = response.get("id") if isinstance(response, dict) else None
        if not remote_id:
            raise UploadError("Google Drive returned no file id", retryable=True)

        Log.info(f"Uploaded {path.name} to Google Drive as {remote_id}")
        return UploadResult(
            remote_id=remote_id,
            shareable_link=self._link_template.format(file_id=remote_id),
        )

    @staticmethod
    def _classify_http_error(exc: HttpError) -> UploadError:
        status = int(getattr(exc.resp, "status", 0) or 0)
        reasons = _error_reasons(exc)
        if status == 429 or reasons & RETRYABLE_REASONS:
            return UploadError(
                f"Google Drive rate limit or quota exceeded ({status}): {sorted(reasons)}",
                retryable=True,
                status_code=status,
            )
        if status in (401, 403):
            return UploadError(
                f"Google Drive rejected the credentials ({status})",
                retryable=False,
                status_code=status,
            )
        if status >= 500:
            return UploadError(
                f"Google Drive server error ({status})",
                retryable=True,
                status_code=status,
            )
        return UploadError(
            f"Google Drive upload failed ({status}): {exc}",
            retryable=False,
            status_code=status,
        )


def _error_reasons(exc: HttpError) -> set[str]:
    """Collect the normalized `reason` codes Google attaches to an API error.

    A Drive error body may carry both the legacy `errors` list and ErrorInfo
    `details`; `HttpError.error_details` exposes only one of them, so both
    are read from the raw body as well.
    """
    items: list[object] = []
    details = getattr(exc, "error_details", None)
    if isinstance(details, list):
        items.extend(details)
    try:
        error = json.loads(exc.content).get("error", {})
    except (TypeError, ValueError, AttributeError):
        error = {}
    if isinstance(error, dict):
        for key in ("errors", "details"):
            entries = error.get(key)
            if isinstance(entries, list):
                items.extend(entries)
    return {
        _normalize_reason(str(item["reason"]))
        for item in items
        if isinstance(item, dict) and item.get("reason")
    }
