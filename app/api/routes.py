import asyncio
import threading

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from app.api.schemas import AuditRunRequest, AuditRunResponse, ErrorResponse, HealthResponse
from app.logging.logger import Log
from app.worker.audit_runner import AuditRunner

router = APIRouter()

DISCONNECT_POLL_SECONDS = 1.0


@router.post(
    "/run-audit",
    response_model=AuditRunResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def run_audit(body: AuditRunRequest, request: Request) -> AuditRunResponse:
    runner: AuditRunner = request.app.state.audit_runner
    cancel_event = threading.Event()
    disconnect_watch = asyncio.create_task(_cancel_on_disconnect(request, cancel_event))
    try:
        # Sync Playwright must stay on one thread for the whole run.
        result = await run_in_threadpool(runner.run, body.to_audit_request(), cancel_event)
    finally:
        disconnect_watch.cancel()
    return AuditRunResponse(audit_link=result.shareable_link)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    return HealthResponse(
        status="ok",
        credentials_configured=request.app.state.credentials_configured,
    )


async def _cancel_on_disconnect(request: Request, cancel_event: threading.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            Log.warning("Client disconnected, cancelling audit")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
