"""Erasure record repository."""

from cleanstay.models.gdpr import ErasureRecord
from cleanstay.repositories.base import BaseRepository


class ErasureRecordRepository(BaseRepository[ErasureRecord]):
    """Repository for ErasureRecord entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize erasure record repository."""
        super().__init__(ErasureRecord, table_name)

    def get_by_hash(self, tenant_id: str, subject_hash: str) -> ErasureRecord | None:
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"ERASURE#{subject_hash}")

    def any_erased(self, tenant_id: str, subject_hashes: list[str]) -> bool:
        """Whether any of the identifiers was erased before."""
        return any(self.get_by_hash(tenant_id, h) for h in subject_hashes)
