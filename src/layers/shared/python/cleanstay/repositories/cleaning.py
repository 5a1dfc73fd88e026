"""Cleaning and cleaning event repositories."""

from datetime import datetime

import structlog

from cleanstay.models.cleaning import Cleaning, CleaningEvent, CleaningEventType
from cleanstay.repositories.base import BaseRepository

logger = structlog.get_logger()


class CleaningRepository(BaseRepository[Cleaning]):
    """Repository for Cleaning entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize cleaning repository."""
        super().__init__(Cleaning, table_name)

    def get_by_id(self, tenant_id: str, cleaning_id: str) -> Cleaning | None:
        """Get cleaning by ID."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"CLEANING#{cleaning_id}")

    def list_by_tenant(
        self,
        tenant_id: str,
        status: str | None = None,
        property_id: str | None = None,
    ) -> list[Cleaning]:
        """All cleanings of a tenant, latest scheduled first.

        Args:
            tenant_id: The tenant ID.
            status: Optional status filter.
            property_id: Optional property filter.
        """
        filters = []
        values: dict[str, str] = {}
        names: dict[str, str] = {}

        if status:
            filters.append("#status = :status")
            names["#status"] = "status"
            values[":status"] = status
        if property_id:
            filters.append("property_id = :property_id")
            values[":property_id"] = property_id

        items = self.query_all(
            pk=f"TENANT#{tenant_id}",
            sk_begins_with="CLEANING#",
            filter_expression=" AND ".join(filters) or None,
            expression_values=values or None,
            expression_names=names or None,
        )
        return sorted(items, key=lambda c: c.scheduled_date, reverse=True)

    def list_by_property(self, property_id: str, limit: int | None = None) -> list[Cleaning]:
        """Cleanings of a property using GSI1, latest scheduled first."""
        return self.query_all(
            pk=f"PROPERTY#{property_id}",
            sk_begins_with="CLEANING#",
            index_name="GSI1",
            scan_forward=False,
            max_items=limit,
        )

    def list_by_client(self, client_id: str, limit: int | None = None) -> list[Cleaning]:
        """Cleanings of a client using GSI2, latest scheduled first."""
        return self.query_all(
            pk=f"CLIENT#{client_id}",
            sk_begins_with="CLEANING#",
            index_name="GSI2",
            scan_forward=False,
            max_items=limit,
        )

    def list_scheduled_between(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
        status: str | None = None,
    ) -> list[Cleaning]:
        """Cleanings whose scheduled start falls in [start, end), earliest first."""
        items = self.list_by_tenant(tenant_id, status=status)
        return sorted(
            (c for c in items if start <= c.scheduled_date < end),
            key=lambda c: c.scheduled_date,
        )

    def list_completed_between(
        self,
        tenant_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Cleaning]:
        """Completed cleanings whose completion falls in [start, end)."""
        items = self.list_by_tenant(tenant_id, status="completed")
        return [c for c in items if c.completed_at and start <= c.completed_at < end]


class CleaningEventRepository(BaseRepository[CleaningEvent]):
    """Repository for CleaningEvent entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize cleaning event repository."""
        super().__init__(CleaningEvent, table_name)

    def log(
        self,
        tenant_id: str,
        cleaning_id: str,
        event_type: CleaningEventType,
        actor_id: str | None = None,
        data: dict | None = None,
    ) -> CleaningEvent:
        """Append an event to a cleaning's timeline."""
        event = CleaningEvent(
            tenant_id=tenant_id,
            cleaning_id=cleaning_id,
            type=event_type,
            actor_id=actor_id,
            data=data or {},
        )
        self.create(event)
        logger.info(
            "Cleaning event logged",
            cleaning_id=cleaning_id,
            event_type=event.type,
        )
        return event

    def list_for_cleaning(self, cleaning_id: str) -> list[CleaningEvent]:
        """Timeline of a cleaning, oldest first."""
        return self.query_all(
            pk=f"CLEANING#{cleaning_id}",
            sk_begins_with="EVENT#",
        )
