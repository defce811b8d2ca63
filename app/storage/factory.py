from app.config.settings import Settings
from app.storage.base import BaseUploadClient
from app.storage.credentials import CredentialProvider
from app.storage.drive_adapter import GoogleDriveUploadClient


class UploadClientFactory:
    """Creates the configured upload client."""

    @classmethod
    def create(cls, settings: Settings, credentials: CredentialProvider) -> BaseUploadClient:
        return GoogleDriveUploadClient(
            credentials=credentials,
            folder_id=settings.google_drive_folder_id,
            link_template=settings.shareable_link_template,
        )
