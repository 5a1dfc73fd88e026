"""Lead model for sales enquiries from the chat widget and contact form."""

from enum import Enum

from pydantic import AliasChoices, BaseModel as PydanticBaseModel, Field, field_validator

from cleanstay.models.base import BaseModel


class LeadSource(str, Enum):
    """Where the lead was captured."""

    CHAT = "chat"
    CONTACT_FORM = "contact_form"


class Lead(BaseModel):
    """Lead entity - a visitor who left contact details.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: LEAD#{id}
        GSI1PK: CONV#{conversation_id}  (only when linked to a conversation)
        GSI1SK: LEAD#{id}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    source: LeadSource = Field(default=LeadSource.CHAT, description="Capture channel")
    session_id: str | None = Field(None, description="Chat session ID")
    conversation_id: str | None = Field(None, description="Linked conversation ID")

    name: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, max_length=40)
    consent: bool = Field(default=False, description="GDPR consent given")

    service_type: str | None = Field(None, max_length=50, description="Requested service")
    city: str | None = Field(None, max_length=100)
    size_m2: float | None = Field(None, gt=0)
    cadence: str | None = Field(None, max_length=50, description="One-off, weekly, ...")
    rush_flag: bool = Field(default=False, description="Express request")
    message: str | None = Field(None, max_length=5000, description="Free-text message")
    gdpr_erased: bool = Field(default=False, description="Personal data anonymized")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        """Normalize email to lowercase."""
        if v is not None:
            v = v.strip().lower()
            return v or None
        return v

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: LEAD#{id}."""
        return f"LEAD#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str] | None:
        """Get GSI1 keys for conversation lookup (if linked)."""
        if self.conversation_id:
            return {
                "GSI1PK": f"CONV#{self.conversation_id}",
                "GSI1SK": f"LEAD#{self.id}",
            }
        return None

    def contact_preview(self) -> str:
        """One-line "name email phone" preview for notifications."""
        return " ".join(part for part in (self.name, self.email, self.phone) if part)


class CreateLeadRequest(PydanticBaseModel):
    """Request model for POST /public/lead.

    Accepts the widget's camelCase field names as well as snake_case.
    """

    session_id: str | None = Field(
        None, max_length=200, validation_alias=AliasChoices("session_id", "sessionId")
    )
    conversation_id: str | None = Field(
        None, max_length=100, validation_alias=AliasChoices("conversation_id", "conversationId")
    )
    name: str | None = Field(None, max_length=200)
    email: str | None = Field(None, max_length=254)
    phone: str | None = Field(None, max_length=40)
    consent: bool = False
    service_type: str | None = Field(
        None, max_length=50, validation_alias=AliasChoices("service_type", "serviceType")
    )
    city: str | None = Field(None, max_length=100)
    size_m2: float | None = Field(
        None, gt=0, validation_alias=AliasChoices("size_m2", "sizeM2")
    )
    cadence: str | None = Field(None, max_length=50)
    rush_flag: bool = Field(
        default=False, validation_alias=AliasChoices("rush_flag", "rushFlag")
    )

    @field_validator("name", "email", "phone", "city", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class ContactFormRequest(PydanticBaseModel):
    """Request model for POST /public/contact."""

    name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=254)
    message: str = Field(default="", max_length=5000)

    @field_validator("name", "email", "message", mode="before")
    @classmethod
    def strip_value(cls, v):
        """Strip whitespace; missing values become empty strings."""
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v
