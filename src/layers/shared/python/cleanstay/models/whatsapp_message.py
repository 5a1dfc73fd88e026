"""Inbound WhatsApp message model."""

from enum import Enum
from typing import Any

from pydantic import Field

from cleanstay.models.base import BaseModel


class WhatsAppMessageStatus(str, Enum):
    """Processing status of an inbound message."""

    RECEIVED = "received"
    STORED = "stored"
    MEDIA_PENDING = "media_pending"
    FAILED = "failed"


class WhatsAppMessage(BaseModel):
    """A message received through the WhatsApp Business webhook.

    Stored once per WhatsApp message ID so webhook retries are idempotent.

    Key Pattern:
        PK: WAMSG#{wa_message_id}
        SK: META
        GSI1PK: TENANT#{tenant_id}#WA
        GSI1SK: {timestamp}#{wa_message_id}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    wa_message_id: str = Field(..., description="WhatsApp message ID (wamid)")
    from_number: str = Field(..., description="Sender phone number")
    phone_number_id: str | None = Field(None, description="Receiving business number ID")
    timestamp: str = Field(..., description="Sender timestamp (unix seconds)")
    message_type: str = Field(..., description="text, image, document, ...")

    text: str | None = Field(None, max_length=8000)
    media_id: str | None = None
    media_mime_type: str | None = None
    caption: str | None = Field(None, max_length=2000)

    status: WhatsAppMessageStatus = Field(default=WhatsAppMessageStatus.RECEIVED)

    # Filled when the text was run through the message parser
    parsed_type: str | None = None
    parsed_confidence: float | None = Field(None, ge=0, le=1)
    parsed_priority: str | None = None
    parsed_payload: dict[str, Any] | None = None

    gdpr_erased: bool = Field(default=False, description="Personal data anonymized")

    def get_pk(self) -> str:
        """Get partition key: WAMSG#{wa_message_id}."""
        return f"WAMSG#{self.wa_message_id}"

    def get_sk(self) -> str:
        """Get sort key: META."""
        return "META"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for tenant listing."""
        return {
            "GSI1PK": f"TENANT#{self.tenant_id}#WA",
            "GSI1SK": f"{self.timestamp.zfill(12)}#{self.wa_message_id}",
        }

    @property
    def has_media(self) -> bool:
        return self.media_id is not None
