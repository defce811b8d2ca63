import base64
import binascii
import json
from pathlib import Path

from google.oauth2 import service_account

from app.config.settings import Settings
from app.logging.logger import Log
from app.storage.exceptions import CredentialsError


def decode_service_account_secret(secret: str) -> dict[str, object]:
    """Decode a base64-encoded service account JSON document.

    Raises:
        CredentialsError: if the secret is not valid base64 JSON object.
    """
    try:
        raw = base64.b64decode(secret.strip(), validate=True)
        info = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise CredentialsError(f"Service account secret is not valid base64 JSON: {exc}") from exc
    if not isinstance(info, dict):
        raise CredentialsError("Service account secret must decode to a JSON object")
    return info


class CredentialProvider:
    """Service account credentials loaded once at startup and shared read-only."""

    def __init__(self, credentials: service_account.Credentials | None) -> None:
        self._credentials = credentials

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialProvider":
        """Build credentials from the base64 secret, falling back to a key file.

        Missing configuration only logs a warning; uploads then fail with
        CredentialsError. A secret that is present but unusable raises.
        """
        scopes = settings.google_drive_scopes
        if settings.google_application_credentials_base64:
            info = decode_service_account_secret(settings.google_application_credentials_base64)
            try:
                credentials = service_account.Credentials.from_service_account_info(
                    info, scopes=scopes
                )
            except ValueError as exc:
                raise CredentialsError(f"Invalid service account info: {exc}") from exc
            Log.info("Loaded Google service account credentials from environment secret")
            return cls(credentials)

        if settings.google_application_credentials_file:
            key_path = Path(settings.google_application_credentials_file)
            try:
                credentials = service_account.Credentials.from_service_account_file(
                    str(key_path), scopes=scopes
                )
            except (OSError, ValueError) as exc:
                raise CredentialsError(f"Cannot load key file {key_path}: {exc}") from exc
            Log.info(f"Loaded Google service account credentials from {key_path}")
            return cls(credentials)

        Log.warning(
            "GOOGLE_APPLICATION_CREDENTIALS_BASE64 environment variable not set. "
            "Google Drive uploads will fail."
        )
        return cls(None)

    @property
    def configured(self) -> bool:
        return self._credentials is not None

    def get(self) -> service_account.Credentials:
        if self._credentials is None:
            raise CredentialsError("Google Drive credentials are not configured")
        return self._credentials
