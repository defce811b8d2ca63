import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from app.config.settings import Settings
from app.storage.credentials import CredentialProvider, decode_service_account_secret
from app.storage.exceptions import CredentialsError

SERVICE_ACCOUNT_INFO = {
    "type": "service_account",
    "project_id": "audit-bot",
    "client_email": "bot@audit-bot.iam.gserviceaccount.com",
    "token_uri": "https://oauth2.googleapis.com/token",
}


def _encode(document: object) -> str:
    return base64.b64encode(json.dumps(document).encode()).decode()


def _make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "google_application_credentials_base64": "",
        "google_application_credentials_file": "",
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


class TestDecodeServiceAccountSecret:
    def test_decodes_json_object(self) -> None:
        assert decode_service_account_secret(_encode(SERVICE_ACCOUNT_INFO)) == SERVICE_ACCOUNT_INFO

    def test_tolerates_surrounding_whitespace(self) -> None:
        secret = f"  {_encode(SERVICE_ACCOUNT_INFO)}\n"
        assert decode_service_account_secret(secret)["project_id"] == "audit-bot"

    def test_rejects_invalid_base64(self) -> None:
        with pytest.raises(CredentialsError, match="base64"):
            decode_service_account_secret("not*base64!")

    def test_rejects_non_json_payload(self) -> None:
        secret = base64.b64encode(b"plain text").decode()
        with pytest.raises(CredentialsError):
            decode_service_account_secret(secret)

    def test_rejects_json_array(self) -> None:
        with pytest.raises(CredentialsError, match="JSON object"):
            decode_service_account_secret(_encode(["a", "b"]))


class TestCredentialProviderFromSettings:
    def test_missing_configuration_is_not_an_error(self) -> None:
        provider = CredentialProvider.from_settings(_make_settings())

        assert provider.configured is False
        with pytest.raises(CredentialsError, match="not configured"):
            provider.get()

    def test_loads_from_base64_secret(self) -> None:
        settings = _make_settings(
            google_application_credentials_base64=_encode(SERVICE_ACCOUNT_INFO)
        )
        with patch(
            "app.storage.credentials.service_account.Credentials.from_service_account_info",
        ) as from_info:
            provider = CredentialProvider.from_settings(settings)

        from_info.assert_called_once_with(
            SERVICE_ACCOUNT_INFO,
            scopes=["https://www.googleapis.com/auth/drive.file"],
        )
        assert provider.configured is True
        assert provider.get() is from_info.return_value

    def test_incomplete_service_account_raises(self) -> None:
        settings = _make_settings(
            google_application_credentials_base64=_encode(SERVICE_ACCOUNT_INFO)
        )
        with (
            patch(
                "app.storage.credentials.service_account.Credentials.from_service_account_info",
                side_effect=ValueError("missing private_key"),
            ),
            pytest.raises(CredentialsError, match="private_key"),
        ):
            CredentialProvider.from_settings(settings)

    def test_falls_back_to_key_file(self) -> None:
        settings = _make_settings(google_application_credentials_file="/secrets/key.json")
        with patch(
            "app.storage.credentials.service_account.Credentials.from_service_account_file",
            return_value=MagicMock(),
        ) as from_file:
            provider = CredentialProvider.from_settings(settings)

        assert from_file.call_args.args[0] == "/secrets/key.json"
        assert provider.configured is True

    def test_unreadable_key_file_raises(self) -> None:
        settings = _make_settings(google_application_credentials_file="/missing/key.json")
        with (
            patch(
                "app.storage.credentials.service_account.Credentials.from_service_account_file",
                side_effect=FileNotFoundError("/missing/key.json"),
            ),
            pytest.raises(CredentialsError, match="key file"),
        ):
            CredentialProvider.from_settings(settings)
