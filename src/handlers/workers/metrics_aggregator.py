"""Nightly metrics aggregation Lambda.

Scheduled to run at 01:00 UTC daily. Aggregates yesterday's metrics and the
KPIs of yesterday's month for the site tenant, then checks the cost limits.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id, is_cleanstay_enabled
from cleanstay.services.metrics_service import (
    aggregate_daily_metrics,
    aggregate_monthly_kpi,
    check_cost_limits,
)

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Aggregate daily metrics and monthly KPIs.

    Triggered by EventBridge cron schedule. The event may carry an explicit
    "date" (YYYY-MM-DD) to re-run a past day.
    """
    logger.info("Metrics aggregator started")

    if not is_cleanstay_enabled():
        logger.info("CleanStay disabled, skipping aggregation")
        return {"status": "skipped", "reason": "disabled"}

    tenant_id = get_default_tenant_id()
    if not tenant_id:
        logger.error("DEFAULT_TENANT_ID not configured")
        return {"status": "skipped", "reason": "no_tenant"}

    day = (event or {}).get("date") or (
        datetime.now(timezone.utc).date() - timedelta(days=1)
    ).isoformat()
    month = day[:7]

    daily = aggregate_daily_metrics(tenant_id, day)
    kpi = aggregate_monthly_kpi(tenant_id, month)
    limits = check_cost_limits(tenant_id, day)

    logger.info(
        "Metrics aggregation completed",
        tenant_id=tenant_id,
        date=day,
        month=month,
        cleanings_done=daily.cleanings_done,
        total_cleanings=kpi.total_cleanings,
        **limits,
    )

    return {
        "status": "success",
        "date": day,
        "month": month,
        "cleanings_done": daily.cleanings_done,
        "total_cleanings": kpi.total_cleanings,
        **limits,
    }
