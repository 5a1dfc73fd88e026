"""Inbound WhatsApp message repository."""

import structlog

from cleanstay.models.whatsapp_message import WhatsAppMessage
from cleanstay.repositories.base import BaseRepository
from cleanstay.utils.exceptions import ConflictError

logger = structlog.get_logger()


class WhatsAppMessageRepository(BaseRepository[WhatsAppMessage]):
    """Repository for WhatsAppMessage entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize WhatsApp message repository."""
        super().__init__(WhatsAppMessage, table_name)

    def get_by_wa_id(self, wa_message_id: str) -> WhatsAppMessage | None:
        """Get a message by its WhatsApp message ID."""
        return self.get(pk=f"WAMSG#{wa_message_id}", sk="META")

    def create_if_new(self, message: WhatsAppMessage) -> bool:
        """Store a message unless it was already received.

        Returns:
            True if stored, False if it is a duplicate delivery.
        """
        try:
            self.create(message)
            return True
        except ConflictError:
            logger.info("Duplicate WhatsApp message ignored", wa_message_id=message.wa_message_id)
            return False

    def list_between(self, tenant_id: str, start_ts: int, end_ts: int) -> list[WhatsAppMessage]:
        """Messages whose sender timestamp is in [start_ts, end_ts).

        Args:
            tenant_id: The tenant ID.
            start_ts: Unix seconds, inclusive.
            end_ts: Unix seconds, exclusive.
        """
        low = str(start_ts).zfill(12)
        # Keys at end_ts sort after the bare prefix, so the upper bound is exclusive
        high = str(end_ts).zfill(12)
        return self.query_all(
            pk=f"TENANT#{tenant_id}#WA",
            index_name="GSI1",
            sk_between=(low, high),
        )

    def list_all(self, tenant_id: str) -> list[WhatsAppMessage]:
        """Every message of a tenant, oldest first."""
        return self.query_all(pk=f"TENANT#{tenant_id}#WA", index_name="GSI1")
