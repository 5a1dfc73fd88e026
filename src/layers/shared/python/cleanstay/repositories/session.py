"""Cleaning session repository."""

from datetime import datetime

from cleanstay.models.session import CleaningSession, SessionStatus
from cleanstay.repositories.base import BaseRepository


class CleaningSessionRepository(BaseRepository[CleaningSession]):
    """Repository for CleaningSession entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize cleaning session repository."""
        super().__init__(CleaningSession, table_name)

    def get_by_id(self, tenant_id: str, session_id: str) -> CleaningSession | None:
        """Get session by ID."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"SESSION#{session_id}")

    def get_active(self, tenant_id: str, cleaner_phone: str) -> CleaningSession | None:
        """The cleaner's open session using GSI1, latest started if several."""
        items, _ = self.query(
            pk=f"CLEANER#{tenant_id}#{cleaner_phone}",
            sk_begins_with=f"SESSION#{SessionStatus.OPEN.value}#",
            index_name="GSI1",
            scan_forward=False,
            limit=1,
        )
        return items[0] if items else None

    def list_for_cleaner(self, tenant_id: str, cleaner_phone: str) -> list[CleaningSession]:
        """Every session of a cleaner, any status."""
        return self.query_all(
            pk=f"CLEANER#{tenant_id}#{cleaner_phone}",
            sk_begins_with="SESSION#",
            index_name="GSI1",
        )

    def list_expired(self, tenant_id: str, now: datetime) -> list[CleaningSession]:
        """Open sessions whose expected end is before ``now`` using GSI2."""
        return self.query_all(
            pk=f"TENANT#{tenant_id}#SESSIONS#{SessionStatus.OPEN.value}",
            sk_between=("0", now.isoformat()),
            index_name="GSI2",
        )

    def list_all(self, tenant_id: str) -> list[CleaningSession]:
        """All sessions of a tenant."""
        return self.query_all(
            pk=f"TENANT#{tenant_id}",
            sk_begins_with="SESSION#",
        )
