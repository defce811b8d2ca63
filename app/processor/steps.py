from dataclasses import replace

from app.downloads.watcher import DownloadWatcher, FileMatcher
from app.logging.logger import Log
from app.processor.exceptions import AuditValidationError
from app.processor.models import Stage
from app.processor.pipeline import AuditContext, PipelineStep
from app.storage.base import BaseUploadClient


class ValidateRequestStep(PipelineStep):
    stage = Stage.VALIDATION

    def run(self, context: AuditContext) -> AuditContext:
        missing = context.request.missing_fields()
        if missing:
            raise AuditValidationError(missing)
        request = context.request
        context.request = replace(
            request,
            website=request.website.strip(),
            requester_name=request.requester_name.strip(),
            requester_email=request.requester_email.strip(),
        )
        return context


class ConfigureDownloadsStep(PipelineStep):
    stage = Stage.LAUNCH

    def run(self, context: AuditContext) -> AuditContext:
        context.require_session().configure_downloads(context.require_workspace())
        return context


class NavigateStep(PipelineStep):
    stage = Stage.NAVIGATION

    def __init__(self, url: str, timeout_seconds: float) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds

    def run(self, context: AuditContext) -> AuditContext:
        context.require_session().navigate(self._url, self._timeout_seconds)
        Log.info(f"[{context.run_id}] Navigated to {self._url}")
        return context


class FillFormStep(PipelineStep):
    stage = Stage.FORM_FILL

    def __init__(self, *, site_selector: str, name_selector: str, email_selector: str) -> None:
        self._site_selector = site_selector
        self._name_selector = name_selector
        self._email_selector = email_selector

    def run(self, context: AuditContext) -> AuditContext:
        session = context.require_session()
        request = context.request
        session.fill_field(self._site_selector, request.website)
        session.fill_field(self._name_selector, request.requester_name)
        session.fill_field(self._email_selector, request.requester_email)
        Log.info(f"[{context.run_id}] Form fields filled")
        return context


class SubmitFormStep(PipelineStep):
    stage = Stage.SUBMIT

    def __init__(self, selector: str, timeout_seconds: float) -> None:
        self._selector = selector
        self._timeout_seconds = timeout_seconds

    def run(self, context: AuditContext) -> AuditContext:
        context.require_session().submit_and_await_navigation(
            self._selector, self._timeout_seconds
        )
        Log.info(f"[{context.run_id}] Form submitted, results page loaded")
        return context


class AwaitDownloadStep(PipelineStep):
    stage = Stage.DOWNLOAD_TIMEOUT

    def __init__(self, watcher: DownloadWatcher, match: FileMatcher) -> None:
        self._watcher = watcher
        self._match = match

    def run(self, context: AuditContext) -> AuditContext:
        session = context.require_session()
        watcher = self._watcher.with_sleep(session.pause)
        context.artifact = watcher.wait_for(
            context.require_workspace(),
            self._match,
            cancel_event=context.cancel_event,
        )
        Log.info(f"[{context.run_id}] Report downloaded: {context.artifact.name}")
        return context


class UploadReportStep(PipelineStep):
    stage = Stage.UPLOAD

    def __init__(self, upload_client: BaseUploadClient) -> None:
        self._upload_client = upload_client

    def run(self, context: AuditContext) -> AuditContext:
        if context.artifact is None:
            raise ValueError("AuditContext.artifact must be set before upload")
        context.upload_result = self._upload_client.upload(context.artifact.path)
        Log.info(f"[{context.run_id}] Report uploaded: {context.upload_result.shareable_link}")
        return context
