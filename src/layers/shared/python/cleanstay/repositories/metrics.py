"""Daily metrics and monthly KPI repositories."""

from decimal import Decimal
from typing import Any

import structlog
from botocore.exceptions import ClientError

from cleanstay.models.base import generate_ulid, utc_now
from cleanstay.models.metrics import DailyMetrics, MonthlyKPI
from cleanstay.repositories.base import BaseRepository

logger = structlog.get_logger()


def _to_decimal(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    return value


class DailyMetricsRepository(BaseRepository[DailyMetrics]):
    """Repository for DailyMetrics entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize daily metrics repository."""
        super().__init__(DailyMetrics, table_name)

    def get_for_date(self, tenant_id: str, date: str) -> DailyMetrics | None:
        """Get metrics for one day (YYYY-MM-DD)."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"METRICS#DAY#{date}")

    def list_range(self, tenant_id: str, from_date: str, to_date: str) -> list[DailyMetrics]:
        """Daily rows in an inclusive date range, oldest first."""
        return self.query_all(
            pk=f"TENANT#{tenant_id}",
            sk_between=(f"METRICS#DAY#{from_date}", f"METRICS#DAY#{to_date}"),
        )

    def _upsert(self, tenant_id: str, date: str, expression: str, values: dict) -> None:
        now = utc_now().isoformat()
        try:
            self.table.update_item(
                Key={"PK": f"TENANT#{tenant_id}", "SK": f"METRICS#DAY#{date}"},
                UpdateExpression=(
                    f"{expression}, "
                    "#id = if_not_exists(#id, :id), "
                    "tenant_id = :tenant_id, #date = :date, "
                    "created_at = if_not_exists(created_at, :now), "
                    "updated_at = :now, #version = if_not_exists(#version, :one)"
                ),
                ExpressionAttributeNames={"#id": "id", "#date": "date", "#version": "version"},
                ExpressionAttributeValues={
                    **values,
                    ":id": generate_ulid(),
                    ":tenant_id": tenant_id,
                    ":date": date,
                    ":now": now,
                    ":one": 1,
                },
            )
        except ClientError as e:
            logger.error("Daily metrics update failed", error=str(e), tenant_id=tenant_id, date=date)
            raise

    def increment(self, tenant_id: str, date: str, counters: dict[str, int | float]) -> None:
        """Atomically add to usage counters, creating the row if needed.

        Args:
            tenant_id: The tenant ID.
            date: Day (YYYY-MM-DD).
            counters: Field name to increment.
        """
        if not counters:
            return

        values: dict[str, Any] = {":zero": 0}
        assignments = []
        for i, (name, amount) in enumerate(counters.items()):
            values[f":inc{i}"] = _to_decimal(amount)
            assignments.append(f"{name} = if_not_exists({name}, :zero) + :inc{i}")

        self._upsert(tenant_id, date, "SET " + ", ".join(assignments), values)

    def set_fields(self, tenant_id: str, date: str, fields: dict[str, Any]) -> DailyMetrics:
        """Overwrite aggregated fields without touching usage counters.

        Returns:
            The metrics row after the write.
        """
        values = {f":f{i}": _to_decimal(v) for i, v in enumerate(fields.values())}
        assignments = [f"{name} = :f{i}" for i, name in enumerate(fields)]
        self._upsert(tenant_id, date, "SET " + ", ".join(assignments), values)
        return self.get_for_date(tenant_id, date)


class MonthlyKPIRepository(BaseRepository[MonthlyKPI]):
    """Repository for MonthlyKPI entities."""

    def __init__(self, table_name: str | None = None):
        """Initialize monthly KPI repository."""
        super().__init__(MonthlyKPI, table_name)

    def get_for_month(self, tenant_id: str, month: str) -> MonthlyKPI | None:
        """Get KPIs for one month (YYYY-MM)."""
        return self.get(pk=f"TENANT#{tenant_id}", sk=f"METRICS#MONTH#{month}")

    def list_for_year(self, tenant_id: str, year: int) -> list[MonthlyKPI]:
        """All monthly rows of a year, January first."""
        return self.query_all(
            pk=f"TENANT#{tenant_id}",
            sk_begins_with=f"METRICS#MONTH#{year:04d}-",
        )

    def save(self, kpi: MonthlyKPI) -> MonthlyKPI:
        """Write the KPI row, replacing any previous aggregation."""
        existing = self.get_for_month(kpi.tenant_id, kpi.month)
        if existing:
            kpi.id = existing.id
            kpi.created_at = existing.created_at
            kpi.version = existing.version
            return self.update(kpi, check_version=False)
        return self.put(kpi)
