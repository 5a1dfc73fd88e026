"""Conversation and chat message repositories."""

import structlog

from cleanstay.models.base import utc_now
from cleanstay.models.conversation import ChatMessage, Conversation, MessageRole
from cleanstay.repositories.base import BaseRepository

logger = structlog.get_logger()


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for Conversation entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize conversation repository."""
        super().__init__(Conversation, table_name)

    def get_by_id(self, tenant_id: str, conversation_id: str) -> Conversation | None:
        """Get conversation by ID."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"CONV#{conversation_id}")

    def get_by_session(self, session_id: str) -> Conversation | None:
        """Get the conversation for a browser session using GSI1."""
        items, _ = self.query(
            pk=f"SESSION#{session_id}",
            sk_begins_with="CONV#",
            index_name="GSI1",
            limit=1,
        )
        return items[0] if items else None

    def list_all(self, tenant_id: str) -> list[Conversation]:
        """Every conversation of a tenant."""
        return self.query_all(pk=f"TENANT#{tenant_id}", sk_begins_with="CONV#")

    def get_or_create_for_session(
        self,
        tenant_id: str,
        session_id: str,
        origin_url: str | None = None,
        locale: str | None = None,
    ) -> tuple[Conversation, bool]:
        """Find the session's conversation or start a new one.

        Returns:
            Tuple of (conversation, created).
        """
        existing = self.get_by_session(session_id)
        if existing:
            return existing, False

        conversation = Conversation(
            tenant_id=tenant_id,
            session_id=session_id,
            origin_url=origin_url,
            locale=locale or "cs",
        )
        self.create(conversation)

        logger.info(
            "Conversation created",
            conversation_id=conversation.id,
            tenant_id=tenant_id,
        )
        return conversation, True

    def record_message(self, conversation: Conversation, preview: str) -> Conversation:
        """Update last-message bookkeeping after a message is stored."""
        conversation.last_message_at = utc_now().isoformat()
        conversation.last_message_preview = preview[:200]
        conversation.message_count += 1
        return self.update(conversation, check_version=False)


class MessageRepository(BaseRepository[ChatMessage]):
    """Repository for ChatMessage entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize message repository."""
        super().__init__(ChatMessage, table_name)

    def add(self, message: ChatMessage) -> ChatMessage:
        """Store a new message."""
        return self.create(message)

    def get_by_id(self, message_id: str) -> ChatMessage | None:
        """Get a message by ID using GSI2."""
        items, _ = self.query(
            pk=f"MSG#{message_id}",
            index_name="GSI2",
            limit=1,
        )
        return items[0] if items else None

    def list_for_conversation(self, conversation_id: str) -> list[ChatMessage]:
        """All messages of a conversation, oldest first."""
        return self.query_all(
            pk=f"CONV#{conversation_id}",
            sk_begins_with="MSG#",
            scan_forward=True,
        )

    def recent_history(self, conversation_id: str, limit: int = 20) -> list[ChatMessage]:
        """Last user/assistant messages for LLM context, oldest first.

        Args:
            conversation_id: The conversation ID.
            limit: Maximum number of messages to return.
        """
        items = self.query_all(
            pk=f"CONV#{conversation_id}",
            sk_begins_with="MSG#",
            scan_forward=False,
            filter_expression="#role IN (:user, :assistant)",
            expression_names={"#role": "role"},
            expression_values={
                ":user": MessageRole.USER.value,
                ":assistant": MessageRole.ASSISTANT.value,
            },
            max_items=limit,
        )
        return list(reversed(items))

    def list_by_source(self, tenant_id: str, source: str, limit: int = 200) -> list[ChatMessage]:
        """Latest messages of a tenant from one source, newest first."""
        return self.query_all(
            pk=f"TENANT#{tenant_id}#SRC#{source}",
            index_name="GSI1",
            scan_forward=False,
            limit=limit,
            max_items=limit,
        )

    def mark_read(self, message_id: str) -> ChatMessage | None:
        """Clear the unread flag on a message.

        Returns:
            The updated message, or None if it does not exist.
        """
        message = self.get_by_id(message_id)
        if not message:
            return None

        if message.unread:
            message.unread = False
            self.update(message, check_version=False)
            logger.info("Message marked read", message_id=message_id)

        return message
