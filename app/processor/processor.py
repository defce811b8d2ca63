import threading
import uuid
from collections.abc import Callable
from contextlib import ExitStack
from functools import partial
from pathlib import Path
from typing import TypeVar

from app.browser.base import BaseBrowserSession
from app.browser.exceptions import (
    BrowserError,
    ConfigError,
    ElementNotFoundError,
)
from app.browser.factory import BrowserSessionFactory
from app.config.settings import Settings
from app.downloads.exceptions import DownloadCancelledError, DownloadTimeoutError
from app.downloads.watcher import DownloadWatcher, suffix_matcher
from app.logging.logger import Log
from app.processor.exceptions import PipelineCancelledError, PipelineError
from app.processor.models import AuditRequest, Stage
from app.processor.pipeline import AuditContext, PipelineStep
from app.processor.steps import (
    AwaitDownloadStep,
    ConfigureDownloadsStep,
    FillFormStep,
    NavigateStep,
    SubmitFormStep,
    UploadReportStep,
    ValidateRequestStep,
)
from app.processor.workspace import scoped_workspace
from app.storage.credentials import CredentialProvider
from app.storage.exceptions import UploadError
from app.storage.factory import UploadClientFactory
from app.storage.models import UploadResult

T = TypeVar("T")


class AuditPipeline:
    """Runs one audit end to end: form submission, download, upload.

    Pipeline: validate -> workspace + browser -> configure downloads ->
    navigate -> fill -> submit -> wait for report -> upload.

    Validation happens before anything is acquired. The workspace and the
    browser session are released on every exit path, and the downloaded
    report is deleted whether or not the upload succeeded. Any failure
    surfaces as a PipelineError tagged with the stage it happened in.
    """

    def __init__(
        self,
        *,
        open_session: Callable[[], BaseBrowserSession],
        steps: list[PipelineStep],
        downloads_root: Path,
        validate_step: PipelineStep | None = None,
    ) -> None:
        self._open_session = open_session
        self._steps = steps
        self._downloads_root = downloads_root
        self._validate_step = validate_step or ValidateRequestStep()

    def validate(self, request: AuditRequest) -> None:
        """Reject an incomplete request without acquiring anything.

        Raises:
            PipelineError: tagged VALIDATION, caused by AuditValidationError.
        """
        context = AuditContext(request=request, run_id=uuid.uuid4().hex[:8])
        self._run_step(self._validate_step, context, check_cancel=False)

    def run(
        self,
        request: AuditRequest,
        cancel_event: threading.Event | None = None,
    ) -> UploadResult:
        context = AuditContext(
            request=request,
            run_id=uuid.uuid4().hex[:8],
            cancel_event=cancel_event,
        )
        Log.info(f"[{context.run_id}] Starting audit for {request.website!r}")
        self._run_step(self._validate_step, context, check_cancel=False)

        with ExitStack() as cleanup:
            context.workspace = self._acquire(
                context, lambda: cleanup.enter_context(scoped_workspace(self._downloads_root))
            )
            session = self._acquire(context, self._open_session)
            context.session = session
            cleanup.callback(self._close_session, context.run_id, session)
            cleanup.callback(self._discard_artifact, context)

            for step in self._steps:
                self._run_step(step, context)

        if context.upload_result is None:
            raise PipelineError(Stage.UPLOAD, "Pipeline finished without an upload result")
        Log.info(f"[{context.run_id}] Audit complete: {context.upload_result.shareable_link}")
        return context.upload_result

    def _acquire(self, context: AuditContext, acquire: Callable[[], T]) -> T:
        self._raise_if_cancelled(Stage.LAUNCH, context)
        try:
            return acquire()
        except Exception as exc:
            Log.error(f"[{context.run_id}] Could not acquire resources: {exc}")
            raise PipelineError(Stage.LAUNCH, str(exc), retryable=is_retryable(exc)) from exc

    def _run_step(
        self,
        step: PipelineStep,
        context: AuditContext,
        check_cancel: bool = True,
    ) -> None:
        if check_cancel:
            self._raise_if_cancelled(step.stage, context)
        Log.debug(f"[{context.run_id}] Running {type(step).__name__}")
        try:
            step.run(context)
        except PipelineError:
            raise
        except DownloadCancelledError as exc:
            Log.warning(f"[{context.run_id}] Cancelled during {step.stage.value}")
            raise PipelineCancelledError(step.stage) from exc
        except Exception as exc:
            Log.error(f"[{context.run_id}] Stage {step.stage.value} failed: {exc}")
            raise PipelineError(step.stage, str(exc), retryable=is_retryable(exc)) from exc

    @staticmethod
    def _raise_if_cancelled(stage: Stage, context: AuditContext) -> None:
        if context.cancel_event is not None and context.cancel_event.is_set():
            Log.warning(f"[{context.run_id}] Cancelled before {stage.value}")
            raise PipelineCancelledError(stage)

    @staticmethod
    def _close_session(run_id: str, session: BaseBrowserSession) -> None:
        try:
            session.close()
        except Exception as exc:
            Log.warning(f"[{run_id}] Could not close browser session: {exc}")

    @staticmethod
    def _discard_artifact(context: AuditContext) -> None:
        if context.artifact is None:
            return
        try:
            context.artifact.path.unlink(missing_ok=True)
            Log.info(f"[{context.run_id}] Deleted local report {context.artifact.path}")
        except OSError as exc:
            Log.warning(f"[{context.run_id}] Could not delete {context.artifact.path}: {exc}")


def is_retryable(exc: BaseException) -> bool:
    """Whether the same stage might succeed if attempted again later."""
    if isinstance(exc, UploadError):
        return exc.retryable
    if isinstance(exc, DownloadTimeoutError):
        return True
    if isinstance(exc, (ElementNotFoundError, ConfigError)):
        return False
    return isinstance(exc, BrowserError)


def build_pipeline(settings: Settings, credentials: CredentialProvider) -> AuditPipeline:
    """Build an AuditPipeline with the configured browser and storage adapters."""
    watcher = DownloadWatcher(
        poll_interval_seconds=settings.download_poll_interval_seconds,
        timeout_seconds=settings.download_timeout_seconds,
        require_stable_size=settings.download_require_stable_size,
    )
    steps: list[PipelineStep] = [
        ConfigureDownloadsStep(),
        NavigateStep(settings.audit_tool_url, settings.navigation_timeout_seconds),
        FillFormStep(
            site_selector=settings.site_field_selector,
            name_selector=settings.name_field_selector,
            email_selector=settings.email_field_selector,
        ),
        SubmitFormStep(settings.submit_selector, settings.submit_timeout_seconds),
        AwaitDownloadStep(watcher, suffix_matcher(settings.report_extension)),
        UploadReportStep(UploadClientFactory.create(settings, credentials)),
    ]
    return AuditPipeline(
        open_session=partial(BrowserSessionFactory.create, settings),
        steps=steps,
        downloads_root=Path(settings.downloads_root),
    )
