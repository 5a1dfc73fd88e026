"""Conversation and chat message models for the website chat widget."""

from enum import Enum

from pydantic import AliasChoices, BaseModel as PydanticBaseModel, Field, field_validator

from cleanstay.models.base import BaseModel


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    ADMIN = "admin"


class MessageSource(str, Enum):
    """Channel a chat message arrived through."""

    WEB = "web"
    WHATSAPP = "whatsapp"
    ADMIN = "admin"


class Conversation(BaseModel):
    """Conversation entity - one chat widget session.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: CONV#{id}
        GSI1PK: SESSION#{session_id}
        GSI1SK: CONV#{id}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    session_id: str = Field(..., min_length=1, max_length=200, description="Browser session ID")
    origin_url: str | None = Field(None, max_length=2000, description="Page the chat started on")
    locale: str = Field(default="cs", description="Visitor locale")

    last_message_at: str | None = Field(None, description="Timestamp of last message")
    last_message_preview: str | None = Field(None, max_length=200)
    message_count: int = Field(default=0, description="Total message count")

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: CONV#{id}."""
        return f"CONV#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for session lookup."""
        return {
            "GSI1PK": f"SESSION#{self.session_id}",
            "GSI1SK": f"CONV#{self.id}",
        }


class ChatMessage(BaseModel):
    """A single message within a conversation.

    Key Pattern:
        PK: CONV#{conversation_id}
        SK: MSG#{created_at}#{id}
        GSI1PK: TENANT#{tenant_id}#SRC#{source}
        GSI1SK: {created_at}#{id}
        GSI2PK: MSG#{id}
        GSI2SK: MSG
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    conversation_id: str = Field(..., description="Parent conversation ID")
    role: MessageRole = Field(..., description="Message author")
    text: str = Field(..., max_length=8000, description="Message text")
    source: MessageSource = Field(default=MessageSource.WEB, description="Source channel")
    unread: bool = Field(default=False, description="Unread by the admin team")

    intent: str | None = Field(None, description="Detected intent (user messages)")
    confidence: float | None = Field(None, ge=0, le=1, description="Intent confidence")

    # LLM accounting (assistant messages)
    model_id: str | None = None
    input_tokens: int | None = None
    output_tokens: int | None = None
    fallback: bool = Field(default=False, description="Reply came from canned content")

    def get_pk(self) -> str:
        """Get partition key: CONV#{conversation_id}."""
        return f"CONV#{self.conversation_id}"

    def get_sk(self) -> str:
        """Get sort key: MSG#{created_at}#{id}."""
        return f"MSG#{self.created_at.isoformat()}#{self.id}"

    def get_gsi1_keys(self) -> dict[str, str]:
        """Get GSI1 keys for tenant-wide listing by source."""
        return {
            "GSI1PK": f"TENANT#{self.tenant_id}#SRC#{self.source}",
            "GSI1SK": f"{self.created_at.isoformat()}#{self.id}",
        }

    def get_gsi2_keys(self) -> dict[str, str]:
        """Get GSI2 keys for lookup by message ID."""
        return {
            "GSI2PK": f"MSG#{self.id}",
            "GSI2SK": "MSG",
        }

    def to_summary(self) -> dict:
        """Row shape used by the admin inbox."""
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "created_at": self.created_at.isoformat(),
            "source": self.source,
            "role": self.role,
            "text": self.text,
            "unread": self.unread,
        }


class ChatMetadata(PydanticBaseModel):
    """Optional widget metadata sent with a chat message."""

    origin_url: str | None = Field(
        None, max_length=2000, validation_alias=AliasChoices("origin_url", "originUrl")
    )
    locale: str | None = Field(None, max_length=10)


class ChatRequest(PydanticBaseModel):
    """Request model for POST /public/chat."""

    session_id: str = Field(
        ..., min_length=1, max_length=200, validation_alias=AliasChoices("session_id", "sessionId")
    )
    text: str = Field(..., min_length=1, max_length=2000)
    metadata: ChatMetadata | None = None

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject whitespace-only messages."""
        v = v.strip()
        if not v:
            raise ValueError("text must not be empty")
        return v


class MarkReadRequest(PydanticBaseModel):
    """Request model for POST /admin/messages/mark-read."""

    id: str = Field(..., min_length=1)
