import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from app.browser.base import BaseBrowserSession
from app.downloads.models import DownloadArtifact
from app.processor.models import AuditRequest, Stage
from app.storage.models import UploadResult


@dataclass(slots=True)
class AuditContext:
    request: AuditRequest
    run_id: str
    cancel_event: threading.Event | None = None
    workspace: Path | None = None
    session: BaseBrowserSession | None = None
    artifact: DownloadArtifact | None = None
    upload_result: UploadResult | None = None

    def require_session(self) -> BaseBrowserSession:
        if self.session is None:
            raise ValueError("AuditContext.session must be set before browser steps")
        return self.session

    def require_workspace(self) -> Path:
        if self.workspace is None:
            raise ValueError("AuditContext.workspace must be set before this step")
        return self.workspace


class PipelineStep(ABC):
    stage: ClassVar[Stage]

    @abstractmethod
    def run(self, context: AuditContext) -> AuditContext:
        raise NotImplementedError
