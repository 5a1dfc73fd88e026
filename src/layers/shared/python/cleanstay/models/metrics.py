"""Daily usage metrics and monthly KPI models."""

from pydantic import Field

from cleanstay.models.base import BaseModel


class DailyMetrics(BaseModel):
    """Per-tenant counters for one calendar day.

    Usage counters (AI tokens, WhatsApp messages and their costs) are
    incremented atomically as traffic happens; cleaning counters are filled
    in by the daily aggregation.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: METRICS#DAY#{date}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", description="YYYY-MM-DD")

    ai_tokens_in: int = 0
    ai_tokens_out: int = 0
    ai_cost_eur: float = 0.0
    whatsapp_messages_in: int = 0
    whatsapp_messages_out: int = 0
    whatsapp_cost_eur: float = 0.0

    cleanings_done: int = 0
    photos_uploaded: int = 0
    supplies_out: int = 0
    avg_cleaning_time_min: float = 0.0

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: METRICS#DAY#{date}."""
        return f"METRICS#DAY#{self.date}"

    @property
    def total_cost_eur(self) -> float:
        return round(self.ai_cost_eur + self.whatsapp_cost_eur, 4)


class MonthlyKPI(BaseModel):
    """Per-tenant business KPIs for one calendar month.

    Key Pattern:
        PK: TENANT#{tenant_id}
        SK: METRICS#MONTH#{month}
    """

    tenant_id: str = Field(..., description="Owning tenant ID")
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")

    total_cleanings: int = 0
    revenue_est: float = Field(default=0.0, description="CZK")
    costs_est: float = Field(default=0.0, description="CZK, usage costs converted from EUR")
    profit_est: float = 0.0
    avg_rating: float = 0.0
    utilization_rate: float = Field(default=0.0, ge=0, le=1)

    def get_pk(self) -> str:
        """Get partition key: TENANT#{tenant_id}."""
        return f"TENANT#{self.tenant_id}"

    def get_sk(self) -> str:
        """Get sort key: METRICS#MONTH#{month}."""
        return f"METRICS#MONTH#{self.month}"
