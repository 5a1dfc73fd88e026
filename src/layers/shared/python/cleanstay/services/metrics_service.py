"""Usage metering and business KPI aggregation.

Usage counters (AI tokens, WhatsApp traffic) are incremented on today's
DailyMetrics row as traffic happens. Cleaning figures are filled in by the
daily aggregation, and monthly KPIs are derived from the daily rows and the
completed cleanings of the month. All dates are UTC calendar days.
"""

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Any

import structlog

from cleanstay.config import get_settings
from cleanstay.models.metrics import DailyMetrics, MonthlyKPI
from cleanstay.models.whatsapp_message import WhatsAppMessageStatus
from cleanstay.repositories.cleaning import CleaningRepository
from cleanstay.repositories.metrics import DailyMetricsRepository, MonthlyKPIRepository
from cleanstay.repositories.whatsapp_message import WhatsAppMessageRepository

logger = structlog.get_logger()

TREND_DAYS = 30


def today_str() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def current_month_str() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m")


def _day_bounds(day: str) -> tuple[datetime, datetime]:
    start = datetime.combine(date.fromisoformat(day), datetime.min.time(), tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def _month_bounds(month: str) -> tuple[date, date, int]:
    year, mon = (int(part) for part in month.split("-"))
    days = calendar.monthrange(year, mon)[1]
    return date(year, mon, 1), date(year, mon, days), days


def ai_cost_eur(input_tokens: int, output_tokens: int) -> float:
    """Cost of a model call under the configured per-1k-token prices."""
    costs = get_settings().costs
    return round(
        input_tokens / 1000 * costs.ai_per_1k_input + output_tokens / 1000 * costs.ai_per_1k_output,
        6,
    )


def record_ai_usage(tenant_id: str, input_tokens: int, output_tokens: int) -> None:
    """Add token usage and its cost to today's metrics."""
    DailyMetricsRepository().increment(
        tenant_id,
        today_str(),
        {
            "ai_tokens_in": input_tokens,
            "ai_tokens_out": output_tokens,
            "ai_cost_eur": ai_cost_eur(input_tokens, output_tokens),
        },
    )


def record_whatsapp_message(tenant_id: str, direction: str = "in", count: int = 1) -> None:
    """Add WhatsApp traffic and its cost to today's metrics.

    Args:
        tenant_id: The tenant ID.
        direction: "in" for received, "out" for sent messages.
        count: Number of messages.
    """
    if direction not in ("in", "out"):
        raise ValueError(f"Invalid direction: {direction}")

    counter = "whatsapp_messages_in" if direction == "in" else "whatsapp_messages_out"
    cost = round(count * get_settings().costs.whatsapp_per_message, 6)
    DailyMetricsRepository().increment(
        tenant_id,
        today_str(),
        {counter: count, "whatsapp_cost_eur": cost},
    )


def aggregate_daily_metrics(tenant_id: str, day: str) -> DailyMetrics:
    """Recompute the cleaning figures of one day.

    Usage counters already on the row are kept.

    Args:
        tenant_id: The tenant ID.
        day: Day to aggregate (YYYY-MM-DD).

    Returns:
        The updated DailyMetrics row.
    """
    start, end = _day_bounds(day)

    completed = CleaningRepository().list_completed_between(tenant_id, start, end)
    durations = [c.duration_minutes for c in completed if c.duration_minutes is not None]
    avg_minutes = round(sum(durations) / len(durations), 1) if durations else 0.0

    messages = WhatsAppMessageRepository().list_between(
        tenant_id, int(start.timestamp()), int(end.timestamp())
    )
    photos = sum(1 for m in messages if m.has_media and m.status != WhatsAppMessageStatus.FAILED)
    supplies_out = sum(1 for m in messages if m.parsed_type == "supply_out")

    metrics = DailyMetricsRepository().set_fields(
        tenant_id,
        day,
        {
            "cleanings_done": len(completed),
            "photos_uploaded": photos,
            "supplies_out": supplies_out,
            "avg_cleaning_time_min": avg_minutes,
        },
    )

    logger.info(
        "Daily metrics aggregated",
        tenant_id=tenant_id,
        date=day,
        cleanings_done=len(completed),
        photos_uploaded=photos,
        supplies_out=supplies_out,
    )
    return metrics


def aggregate_monthly_kpi(tenant_id: str, month: str) -> MonthlyKPI:
    """Recompute the KPIs of one month (YYYY-MM).

    Revenue is the sum of price_czk of completed cleanings. Costs are the
    month's EUR usage costs converted to CZK. Utilization is completed
    cleanings over daily capacity times days in the month, capped at 1.
    """
    settings = get_settings()
    first, last, days = _month_bounds(month)

    start = datetime.combine(first, datetime.min.time(), tzinfo=timezone.utc)
    end = datetime.combine(last, datetime.min.time(), tzinfo=timezone.utc) + timedelta(days=1)
    completed = CleaningRepository().list_completed_between(tenant_id, start, end)

    daily_rows = DailyMetricsRepository().list_range(tenant_id, first.isoformat(), last.isoformat())
    costs_eur = sum(row.total_cost_eur for row in daily_rows)
    costs_czk = round(costs_eur * settings.costs.eur_czk_rate, 2)

    revenue = float(sum(c.price_czk or 0 for c in completed))
    ratings = [c.rating for c in completed if c.rating is not None]
    avg_rating = round(sum(ratings) / len(ratings), 2) if ratings else 0.0

    capacity = settings.cleaning_capacity_per_day * days
    utilization = min(1.0, round(len(completed) / capacity, 4)) if capacity > 0 else 0.0

    kpi = MonthlyKPI(
        tenant_id=tenant_id,
        month=month,
        total_cleanings=len(completed),
        revenue_est=revenue,
        costs_est=costs_czk,
        profit_est=round(revenue - costs_czk, 2),
        avg_rating=avg_rating,
        utilization_rate=utilization,
    )
    kpi = MonthlyKPIRepository().save(kpi)

    logger.info(
        "Monthly KPI aggregated",
        tenant_id=tenant_id,
        month=month,
        total_cleanings=kpi.total_cleanings,
        utilization_rate=kpi.utilization_rate,
    )
    return kpi


def get_metrics_summary(tenant_id: str) -> dict[str, Any]:
    """Today's usage and this month's KPIs for the dashboard header."""
    today = DailyMetricsRepository().get_for_date(tenant_id, today_str())
    month = MonthlyKPIRepository().get_for_month(tenant_id, current_month_str())

    return {
        "today": {
            "cleanings_done": today.cleanings_done if today else 0,
            "photos_uploaded": today.photos_uploaded if today else 0,
            "ai_cost_eur": today.ai_cost_eur if today else 0,
            "whatsapp_cost_eur": today.whatsapp_cost_eur if today else 0,
            "total_cost_eur": today.total_cost_eur if today else 0,
        },
        "this_month": {
            "revenue_est": month.revenue_est if month else 0,
            "costs_est": month.costs_est if month else 0,
            "profit_est": month.profit_est if month else 0,
            "utilization_rate": month.utilization_rate if month else 0,
        },
    }


def _daily_row(metrics: DailyMetrics) -> dict[str, Any]:
    return metrics.model_dump(
        mode="json",
        include={
            "date",
            "ai_tokens_in",
            "ai_tokens_out",
            "ai_cost_eur",
            "whatsapp_messages_in",
            "whatsapp_messages_out",
            "whatsapp_cost_eur",
            "cleanings_done",
            "photos_uploaded",
            "supplies_out",
            "avg_cleaning_time_min",
        },
    )


def get_daily_metrics_summary(tenant_id: str, from_date: str, to_date: str) -> list[dict[str, Any]]:
    """Daily rows in an inclusive date range, oldest first."""
    return [_daily_row(m) for m in DailyMetricsRepository().list_range(tenant_id, from_date, to_date)]


def get_monthly_kpis(tenant_id: str, year: int) -> list[dict[str, Any]]:
    """Monthly KPI rows of a year, January first."""
    return [
        kpi.model_dump(
            mode="json",
            include={
                "month",
                "total_cleanings",
                "revenue_est",
                "costs_est",
                "profit_est",
                "avg_rating",
                "utilization_rate",
            },
        )
        for kpi in MonthlyKPIRepository().list_for_year(tenant_id, year)
    ]


def _trend_rows(tenant_id: str) -> list[DailyMetrics]:
    today = datetime.now(timezone.utc).date()
    from_date = (today - timedelta(days=TREND_DAYS)).isoformat()
    return DailyMetricsRepository().list_range(tenant_id, from_date, today.isoformat())


def get_cost_trends(tenant_id: str) -> dict[str, list]:
    """Per-day AI, WhatsApp and total costs over the last 30 days."""
    rows = _trend_rows(tenant_id)
    return {
        "dates": [r.date for r in rows],
        "ai_costs": [r.ai_cost_eur for r in rows],
        "whatsapp_costs": [r.whatsapp_cost_eur for r in rows],
        "total_costs": [r.total_cost_eur for r in rows],
    }


def get_cleaning_performance_trends(tenant_id: str) -> dict[str, list]:
    """Per-day cleanings, average cleaning time and photos over the last 30 days."""
    rows = _trend_rows(tenant_id)
    return {
        "dates": [r.date for r in rows],
        "cleanings_done": [r.cleanings_done for r in rows],
        "avg_cleaning_time": [r.avg_cleaning_time_min for r in rows],
        "photos_uploaded": [r.photos_uploaded for r in rows],
    }


def check_cost_limits(tenant_id: str, day: str) -> dict[str, bool]:
    """Compare a day's usage costs with the daily limits.

    Exceeded limits are logged as warnings. Lookup errors report no
    exceeded limit.
    """
    costs = get_settings().costs
    try:
        metrics = DailyMetricsRepository().get_for_date(tenant_id, day)
    except Exception as e:
        logger.error("Cost limit check failed", tenant_id=tenant_id, date=day, error=str(e))
        return {"ai_limit_exceeded": False, "whatsapp_limit_exceeded": False}

    ai_cost = metrics.ai_cost_eur if metrics else 0.0
    whatsapp_cost = metrics.whatsapp_cost_eur if metrics else 0.0

    ai_exceeded = ai_cost > costs.ai_daily_limit
    whatsapp_exceeded = whatsapp_cost > costs.whatsapp_daily_limit

    if ai_exceeded:
        logger.warning(
            "AI cost limit exceeded",
            tenant_id=tenant_id,
            date=day,
            cost=ai_cost,
            limit=costs.ai_daily_limit,
            exceeded_by=round(ai_cost - costs.ai_daily_limit, 4),
        )
    if whatsapp_exceeded:
        logger.warning(
            "WhatsApp cost limit exceeded",
            tenant_id=tenant_id,
            date=day,
            cost=whatsapp_cost,
            limit=costs.whatsapp_daily_limit,
            exceeded_by=round(whatsapp_cost - costs.whatsapp_daily_limit, 4),
        )

    return {"ai_limit_exceeded": ai_exceeded, "whatsapp_limit_exceeded": whatsapp_exceeded}
