from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.schemas import WIRE_FIELD_NAMES, ErrorResponse
from app.logging.logger import Log
from app.processor.exceptions import AuditValidationError, PipelineError
from app.processor.models import Stage


def error_response(*, status_code: int, detail: str, stage: str, retryable: bool) -> JSONResponse:
    body = ErrorResponse(detail=detail, stage=stage, retryable=retryable)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def validation_detail(exc: PipelineError) -> str:
    """Describe a rejected request using the body keys the client sent."""
    cause = exc.__cause__
    if not isinstance(cause, AuditValidationError):
        return exc.message
    missing = [WIRE_FIELD_NAMES.get(name, name) for name in cause.missing]
    return f"Missing required fields: {', '.join(missing)}"


def add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
        if exc.stage is Stage.VALIDATION:
            return error_response(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=validation_detail(exc),
                stage=exc.stage.value,
                retryable=False,
            )
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate audit: {exc.message}",
            stage=exc.stage.value,
            retryable=exc.retryable,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        Log.warning(f"Malformed audit request: {exc.errors()}")
        return error_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be a JSON object with string fields "
            "'website', 'name' and 'email'.",
            stage=Stage.VALIDATION.value,
            retryable=False,
        )
