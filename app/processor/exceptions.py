from app.processor.models import Stage


class AuditValidationError(ValueError):
    """Raised when an audit request is missing required fields."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(missing)}")
        self.missing = missing


class PipelineError(Exception):
    """Terminal failure of one pipeline execution, tagged with its stage.

    The underlying exception, if any, is available as __cause__.
    """

    def __init__(self, stage: Stage, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.stage = stage
        self.message = message
        self.retryable = retryable

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(stage={self.stage.value!r}, "
            f"message={self.message!r}, retryable={self.retryable})"
        )


class PipelineCancelledError(PipelineError):
    """Raised when the caller cancels a run; stage is where it was interrupted."""

    def __init__(self, stage: Stage, message: str = "Audit cancelled by caller") -> None:
        super().__init__(stage, message, retryable=True)
