from pydantic import BaseModel, ConfigDict, Field

from app.processor.models import AuditRequest

# AuditRequest attribute -> request body key
WIRE_FIELD_NAMES = {
    "website": "website",
    "requester_name": "name",
    "requester_email": "email",
}


class AuditRunRequest(BaseModel):
    """Body of POST /run-audit. Presence is checked by the pipeline."""

    website: str | None = None
    name: str | None = None
    email: str | None = None

    def to_audit_request(self) -> AuditRequest:
        return AuditRequest(
            website=self.website or "",
            requester_name=self.name or "",
            requester_email=self.email or "",
        )


class AuditRunResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    audit_link: str = Field(alias="auditLink")


class ErrorResponse(BaseModel):
    detail: str
    stage: str
    retryable: bool = False


class HealthResponse(BaseModel):
    status: str
    credentials_configured: bool
