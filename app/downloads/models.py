from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class DownloadArtifact:
    """A report file found on disk, consumed once by the upload step."""

    path: Path
    discovered_at: datetime

    @property
    def name(self) -> str:
        return self.path.name
