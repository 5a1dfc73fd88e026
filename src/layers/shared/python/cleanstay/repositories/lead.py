"""Lead repository for DynamoDB operations."""

from cleanstay.models.lead import Lead
from cleanstay.repositories.base import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize lead repository."""
        super().__init__(Lead, table_name)

    def get_by_id(self, tenant_id: str, lead_id: str) -> Lead | None:
        """Get lead by ID."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"LEAD#{lead_id}")

    def get_by_conversation(self, conversation_id: str) -> Lead | None:
        """Get the most recent lead linked to a conversation using GSI1."""
        items, _ = self.query(
            pk=f"CONV#{conversation_id}",
            sk_begins_with="LEAD#",
            index_name="GSI1",
            scan_forward=False,
            limit=1,
        )
        return items[0] if items else None

    def list_by_tenant(
        self,
        tenant_id: str,
        limit: int = 50,
        last_key: dict | None = None,
    ) -> tuple[list[Lead], dict | None]:
        """List leads of a tenant, newest first (ULIDs sort by time).

        Args:
            tenant_id: The tenant ID.
            limit: Maximum leads to return.
            last_key: Pagination key.

        Returns:
            Tuple of (leads, next_key).
        """
        return self.query(
            pk=f"TENANT#{tenant_id}",
            sk_begins_with="LEAD#",
            scan_forward=False,
            limit=limit,
            last_key=last_key,
        )

    def list_all(self, tenant_id: str) -> list[Lead]:
        """All leads of a tenant, newest first."""
        return self.query_all(
            pk=f"TENANT#{tenant_id}",
            sk_begins_with="LEAD#",
            scan_forward=False,
        )
