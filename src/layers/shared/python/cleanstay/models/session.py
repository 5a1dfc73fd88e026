"""Cleaning session model: one cleaner on site, tracked over WhatsApp."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import Field, field_validator

from cleanstay.models.base import BaseModel, ensure_utc

# Sessions nobody closes are timed out after this long
SESSION_LENGTH = timedelta(hours=4)


class SessionStatus(str, Enum):
    """Session status."""

    OPEN = "open"
    CLOSED = "closed"


class CloseReason(str, Enum):
    """Why a session was closed."""

    DONE = "done"
    TIMEOUT = "timeout"
    MANUAL = "manual"


class CleaningSession(BaseModel):
    """A cleaner's stay at a property, opened by "začínám ..." and closed by "hotovo".

    A cleaner has at most one open session at a time.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: SESSION#{id}
        GSI1PK: CLEANER#{tenant_id}#{cleaner_phone}
        GSI1SK: SESSION#{status}#{started_at}
        GSI2PK: TENANT#{tenant_id}#SESSIONS#{status}
        GSI2SK: {expected_end_at}#{id}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    property_id: str = Field(..., description="Property being cleaned")
    cleaning_id: str = Field(..., description="Cleaning the session reports on")
    cleaner_phone: str = Field(..., description="Cleaner's WhatsApp number")

    status: SessionStatus = Field(default=SessionStatus.OPEN)
    started_at: datetime
    expected_end_at: datetime
    ended_at: datetime | None = None
    close_reason: CloseReason | None = None

    gdpr_erased: bool = Field(default=False, description="Personal data anonymized")

    @field_validator("started_at", "expected_end_at", "ended_at")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: SESSION#{id}."""
        return f"SESSION#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for a cleaner's sessions by status."""
        return {
            "GSI1PK": f"CLEANER#{self.tenant_id}#{self.cleaner_phone}",
            "GSI1SK": f"SESSION#{SessionStatus(self.status).value}#{self.started_at.isoformat()}",
        }

    def get_gsi2_keys(self) -> dict[str, str]:
        """Get GSI2 keys for a tenant's sessions by status and deadline."""
        return {
            "GSI2PK": f"TENANT#{self.tenant_id}#SESSIONS#{SessionStatus(self.status).value}",
            "GSI2SK": f"{self.expected_end_at.isoformat()}#{self.id}",
        }

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN.value
