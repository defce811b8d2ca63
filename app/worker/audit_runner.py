import threading

from app.logging.logger import Log
from app.processor.exceptions import PipelineCancelledError, PipelineError
from app.processor.models import AuditRequest, Stage
from app.processor.processor import AuditPipeline
from app.storage.models import UploadResult


class AuditRunner:
    """Run one audit at a time per slot, logging the outcome.

    Incomplete requests are rejected before a slot is taken. At most
    max_concurrent audits hold a browser at once; further callers
    wait for a free slot. Failures are logged and re-raised unchanged, the
    whole pipeline is never retried here.
    """

    def __init__(
        self,
        pipeline: AuditPipeline,
        *,
        max_concurrent: int = 2,
        slot_poll_seconds: float = 1.0,
    ) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self._pipeline = pipeline
        self._slots = threading.BoundedSemaphore(max_concurrent)
        self._slot_poll_seconds = slot_poll_seconds

    def run(
        self,
        request: AuditRequest,
        cancel_event: threading.Event | None = None,
    ) -> UploadResult:
        try:
            self._pipeline.validate(request)
        except PipelineError as exc:
            self._log_failure(request, exc)
            raise

        self._acquire_slot(cancel_event)
        try:
            result = self._pipeline.run(request, cancel_event)
        except PipelineError as exc:
            self._log_failure(request, exc)
            raise
        finally:
            self._slots.release()
        Log.info(f"Audit for {request.website!r} completed: {result.shareable_link}")
        return result

    def _acquire_slot(self, cancel_event: threading.Event | None) -> None:
        while not self._slots.acquire(timeout=self._slot_poll_seconds):
            if cancel_event is not None and cancel_event.is_set():
                raise PipelineCancelledError(
                    Stage.LAUNCH, "Audit cancelled while waiting for a free browser slot"
                )
            Log.debug("All browser slots busy, waiting")

    @staticmethod
    def _log_failure(request: AuditRequest, exc: PipelineError) -> None:
        if exc.stage is Stage.VALIDATION:
            Log.warning(f"Rejected audit request: {exc.message}")
        elif exc.retryable:
            Log.error(
                f"Audit for {request.website!r} failed at {exc.stage.value} "
                f"(retryable): {exc.message}"
            )
        else:
            Log.exception(
                f"Audit for {request.website!r} failed at {exc.stage.value}: {exc.message}"
            )
