"""Property repository for DynamoDB operations."""

from cleanstay.models.property import Property
from cleanstay.repositories.base import BaseRepository


class PropertyRepository(BaseRepository[Property]):
    """Repository for Property entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize property repository."""
        super().__init__(Property, table_name)

    def get_by_id(self, tenant_id: str, property_id: str) -> Property | None:
        """Get property by ID."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"PROPERTY#{property_id}")

    def list_by_tenant(
        self,
        tenant_id: str,
        limit: int = 50,
        last_key: dict | None = None,
    ) -> tuple[list[Property], dict | None]:
        """List properties of a tenant.

        Returns:
            Tuple of (properties, next_key).
        """
        return self.query(
            pk=f"TENANT#{tenant_id}",
            sk_begins_with="PROPERTY#",
            limit=limit,
            last_key=last_key,
        )

    def list_all(self, tenant_id: str) -> list[Property]:
        """Every property of a tenant."""
        return self.query_all(pk=f"TENANT#{tenant_id}", sk_begins_with="PROPERTY#")

    def list_by_client(self, client_id: str) -> list[Property]:
        """All properties owned by a client using GSI1."""
        return self.query_all(
            pk=f"CLIENT#{client_id}",
            sk_begins_with="PROPERTY#",
            index_name="GSI1",
        )

    def get_many(self, tenant_id: str, property_ids: set[str]) -> dict[str, Property]:
        """Batch-load properties keyed by ID."""
        keys = [(f"TENANT#{tenant_id}", f"PROPERTY#{pid}") for pid in property_ids]
        return {p.id: p for p in self.batch_get(keys)}
