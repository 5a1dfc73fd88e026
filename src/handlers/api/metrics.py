"""Admin metrics and KPI API handler."""

from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog

from cleanstay.services.metrics_service import (
    aggregate_daily_metrics,
    aggregate_monthly_kpi,
    current_month_str,
    get_cleaning_performance_trends,
    get_cost_trends,
    get_daily_metrics_summary,
    get_metrics_summary,
    get_monthly_kpis,
)
from cleanstay.utils.auth import STAFF_ROLES, get_auth_context, require_role, require_tenant
from cleanstay.utils.exceptions import CleanStayError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import error, from_exception, success
from cleanstay.utils.validation import parse_json_object

logger = structlog.get_logger()

DAILY_VIEWS = ("summary", "costs", "performance")
AGGREGATE_TYPES = ("daily", "monthly")


@requires_cleanstay(Feature.ADMIN_API)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle metrics requests.

    Routes:
        GET  /admin/metrics/summary
        GET  /admin/metrics/daily?from=&to=&type=
        GET  /admin/metrics/monthly?year=
        POST /admin/metrics/aggregate
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "").rstrip("/")

        auth = get_auth_context(event)
        require_role(auth, *STAFF_ROLES)
        tenant_id = require_tenant(auth)

        if path.endswith("/aggregate"):
            if http_method == "POST":
                return run_aggregation(tenant_id, event)
            return error("Method not allowed", 405)

        if http_method != "GET":
            return error("Method not allowed", 405)

        if path.endswith("/summary"):
            return success(get_metrics_summary(tenant_id))
        if path.endswith("/daily"):
            return get_daily(tenant_id, event)
        if path.endswith("/monthly"):
            return get_monthly(tenant_id, event)

        return error("Not found", 404)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Metrics handler error", error=str(e))
        return error("Internal server error", 500)


def _parse_date(value: Any) -> date | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def get_daily(tenant_id: str, event: dict) -> dict:
    """Daily rows or a trend view.

    Query params:
        from: First day (YYYY-MM-DD), required for the summary view
        to: Last day (YYYY-MM-DD), required for the summary view
        type: summary (default), costs or performance
    """
    query_params = event.get("queryStringParameters", {}) or {}
    view = query_params.get("type") or "summary"

    if view not in DAILY_VIEWS:
        return error(f"Invalid type: {view}", 400)
    if view == "costs":
        return success(get_cost_trends(tenant_id))
    if view == "performance":
        return success(get_cleaning_performance_trends(tenant_id))

    from_date = _parse_date(query_params.get("from"))
    to_date = _parse_date(query_params.get("to"))
    if not from_date or not to_date:
        return error("from and to must be dates in YYYY-MM-DD format", 400)
    if from_date > to_date:
        return error("from must not be after to", 400)

    rows = get_daily_metrics_summary(tenant_id, from_date.isoformat(), to_date.isoformat())
    return success({"items": rows, "count": len(rows)})


def get_monthly(tenant_id: str, event: dict) -> dict:
    query_params = event.get("queryStringParameters", {}) or {}
    year_raw = query_params.get("year")
    year = datetime.now(timezone.utc).year

    if year_raw:
        try:
            year = int(year_raw)
        except ValueError:
            return error(f"Invalid year: {year_raw}", 400)

    rows = get_monthly_kpis(tenant_id, year)
    return success({"year": year, "items": rows})


def run_aggregation(tenant_id: str, event: dict) -> dict:
    """Recompute a day's metrics or a month's KPIs on demand."""
    body = parse_json_object(event.get("body"))

    aggregate_type = body.get("type")
    if aggregate_type not in AGGREGATE_TYPES:
        return error("type must be 'daily' or 'monthly'", 400)

    if aggregate_type == "daily":
        day_raw = body.get("date")
        day = _parse_date(day_raw) if day_raw else datetime.now(timezone.utc).date() - timedelta(days=1)
        if not day:
            return error(f"Invalid date: {day_raw}", 400)

        metrics = aggregate_daily_metrics(tenant_id, day.isoformat())
        return success({"type": "daily", "result": metrics.model_dump(mode="json")})

    month = body.get("month") or current_month_str()
    if not isinstance(month, str):
        return error(f"Invalid month: {month}", 400)
    try:
        datetime.strptime(month, "%Y-%m")
    except ValueError:
        return error(f"Invalid month: {month}", 400)

    kpi = aggregate_monthly_kpi(tenant_id, month)
    return success({"type": "monthly", "result": kpi.model_dump(mode="json")})
