from dataclasses import dataclass, fields
from enum import Enum


class Stage(str, Enum):
    """Pipeline stage a failure is attributed to."""

    VALIDATION = "validation"
    LAUNCH = "launch"
    NAVIGATION = "navigation"
    FORM_FILL = "form_fill"
    SUBMIT = "submit"
    DOWNLOAD_TIMEOUT = "download_timeout"
    UPLOAD = "upload"


@dataclass(frozen=True)
class AuditRequest:
    """Website to audit and the requester the report is generated for."""

    website: str
    requester_name: str
    requester_email: str

    def missing_fields(self) -> list[str]:
        """Names of fields that are absent or blank."""
        return [
            f.name
            for f in fields(self)
            if not isinstance(getattr(self, f.name), str) or not getattr(self, f.name).strip()
        ]
