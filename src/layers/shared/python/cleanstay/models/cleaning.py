"""Cleaning job and cleaning event models."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel as PydanticBaseModel, Field, field_validator

from cleanstay.models.base import BaseModel, ensure_utc


class CleaningStatus(str, Enum):
    """Cleaning lifecycle status."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CleaningPriority(str, Enum):
    """Cleaning priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CleaningEventType(str, Enum):
    """Timeline event types."""

    SCHEDULED = "cleaning_scheduled"
    STARTED = "cleaning_started"
    COMPLETED = "cleaning_completed"
    CANCELLED = "cleaning_cancelled"
    CONFIRMATION = "confirmation"
    NOTE = "note"
    SUPPLY_OUT = "supply_out"
    LINEN_USED = "linen_used"
    PHOTO = "photo_meta"


# Allowed status transitions
STATUS_TRANSITIONS: dict[str, set[str]] = {
    CleaningStatus.SCHEDULED.value: {CleaningStatus.IN_PROGRESS.value, CleaningStatus.CANCELLED.value},
    CleaningStatus.IN_PROGRESS.value: {CleaningStatus.COMPLETED.value, CleaningStatus.CANCELLED.value},
    CleaningStatus.COMPLETED.value: set(),
    CleaningStatus.CANCELLED.value: set(),
}


class Cleaning(BaseModel):
    """Cleaning entity - one scheduled cleaning visit.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: CLEANING#{id}
        GSI1PK: PROPERTY#{property_id}
        GSI1SK: CLEANING#{scheduled_date}
        GSI2PK: CLIENT#{client_id}  (only when a client is assigned)
        GSI2SK: CLEANING#{scheduled_date}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    property_id: str = Field(..., description="Property being cleaned")
    cleaner_id: str | None = Field(None, description="Assigned cleaner user ID")
    client_id: str | None = Field(None, description="Client user ID")

    status: CleaningStatus = Field(default=CleaningStatus.SCHEDULED)
    priority: CleaningPriority = Field(default=CleaningPriority.MEDIUM)
    scheduled_date: datetime = Field(..., description="Planned start")
    scheduled_end: datetime | None = Field(None, description="Planned end")
    estimated_duration_hours: float = Field(default=2, gt=0)

    started_at: datetime | None = None
    completed_at: datetime | None = None
    client_confirmed_at: datetime | None = None
    cleaner_confirmed_at: datetime | None = None

    notes: str | None = Field(None, max_length=5000)
    special_instructions: str | None = Field(None, max_length=5000)
    price_czk: int | None = Field(None, ge=0, description="Agreed price")
    rating: int | None = Field(None, ge=1, le=5)
    client_feedback: str | None = Field(None, max_length=5000)

    @field_validator(
        "scheduled_date",
        "scheduled_end",
        "started_at",
        "completed_at",
        "client_confirmed_at",
        "cleaner_confirmed_at",
    )
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: CLEANING#{id}."""
        return f"CLEANING#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for property schedule lookup."""
        return {
            "GSI1PK": f"PROPERTY#{self.property_id}",
            "GSI1SK": f"CLEANING#{self.scheduled_date.isoformat()}",
        }

    def get_gsi2_keys(self) -> dict[str, str] | None:
        """Get GSI2 keys for client lookup (if client assigned)."""
        if self.client_id:
            return {
                "GSI2PK": f"CLIENT#{self.client_id}",
                "GSI2SK": f"CLEANING#{self.scheduled_date.isoformat()}",
            }
        return None

    def can_transition_to(self, status: str) -> bool:
        """Check whether moving to the given status is allowed."""
        return status in STATUS_TRANSITIONS.get(self.status, set())

    @property
    def duration_minutes(self) -> int | None:
        """Actual duration in minutes, when started and completed."""
        if self.started_at and self.completed_at:
            return int((self.completed_at - self.started_at).total_seconds() // 60)
        return None


class CleaningEvent(BaseModel):
    """Timeline event attached to a cleaning.

    Key Pattern:
        PK: CLEANING#{cleaning_id}
        SK: EVENT#{created_at}#{id}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    cleaning_id: str = Field(..., description="Parent cleaning ID")
    type: CleaningEventType = Field(..., description="Event type")
    actor_id: str | None = Field(None, description="User who caused the event")
    data: dict[str, Any] = Field(default_factory=dict)

    def get_pk(self) -> str:
        """Get partition key: CLEANING#{cleaning_id}."""
        return f"CLEANING#{self.cleaning_id}"

    def get_sk(self) -> str:
        """Get sort key: EVENT#{created_at}#{id}."""
        return f"EVENT#{self.created_at.isoformat()}#{self.id}"


class CreateCleaningRequest(PydanticBaseModel):
    """Request model for scheduling a cleaning."""

    property_id: str = Field(..., min_length=1)
    cleaner_id: str | None = None
    client_id: str | None = None
    scheduled_date: datetime
    estimated_duration_hours: float = Field(default=2, gt=0, le=24)
    notes: str | None = Field(None, max_length=5000)
    special_instructions: str | None = Field(None, max_length=5000)
    priority: CleaningPriority = CleaningPriority.MEDIUM
    price_czk: int | None = Field(None, ge=0)

    @field_validator("scheduled_date")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    def scheduled_end(self) -> datetime:
        """Planned end from start and estimated duration."""
        return self.scheduled_date + timedelta(hours=self.estimated_duration_hours)


class UpdateCleaningStatusRequest(PydanticBaseModel):
    """Request model for PATCH /admin/cleanings/{id}/status."""

    status: CleaningStatus
    rating: int | None = Field(None, ge=1, le=5)
    client_feedback: str | None = Field(None, max_length=5000)
