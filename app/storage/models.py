from dataclasses import dataclass


@dataclass(frozen=True)
class UploadResult:
    """Remote identifier of an uploaded report and the link built from it."""

    remote_id: str
    shareable_link: str
