"""Tests for usage metering and KPI aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from cleanstay.models.cleaning import Cleaning, CleaningStatus
from cleanstay.models.whatsapp_message import WhatsAppMessage, WhatsAppMessageStatus
from cleanstay.repositories.cleaning import CleaningRepository
from cleanstay.repositories.metrics import DailyMetricsRepository, MonthlyKPIRepository
from cleanstay.repositories.whatsapp_message import WhatsAppMessageRepository
from cleanstay.services import metrics_service

TENANT = "test-tenant-001"


def _completed(completed_at: datetime, minutes: int, price: int, rating: int | None = None) -> Cleaning:
    started = completed_at - timedelta(minutes=minutes)
    cleaning = Cleaning(
        tenant_id=TENANT,
        property_id="prop-1",
        status=CleaningStatus.COMPLETED,
        scheduled_date=started,
        started_at=started,
        completed_at=completed_at,
        price_czk=price,
        rating=rating,
    )
    return CleaningRepository().create(cleaning)


def _wa_message(wa_id: str, at: datetime, **fields) -> WhatsAppMessage:
    message = WhatsAppMessage(
        tenant_id=TENANT,
        wa_message_id=wa_id,
        from_number="420777111222",
        timestamp=str(int(at.timestamp())),
        **fields,
    )
    WhatsAppMessageRepository().create(message)
    return message


class TestUsageCounters:
    def test_ai_cost(self):
        assert metrics_service.ai_cost_eur(1000, 1000) == pytest.approx(0.0048)
        assert metrics_service.ai_cost_eur(0, 0) == 0

    def test_record_ai_usage_accumulates(self, dynamodb_table):
        metrics_service.record_ai_usage(TENANT, 1000, 1000)
        metrics_service.record_ai_usage(TENANT, 500, 0)

        row = DailyMetricsRepository().get_for_date(TENANT, metrics_service.today_str())

        assert row.ai_tokens_in == 1500
        assert row.ai_tokens_out == 1000
        assert row.ai_cost_eur == pytest.approx(0.0052)
        assert row.whatsapp_messages_in == 0

    def test_record_whatsapp_messages(self, dynamodb_table):
        metrics_service.record_whatsapp_message(TENANT, "in", count=3)
        metrics_service.record_whatsapp_message(TENANT, "out")

        row = DailyMetricsRepository().get_for_date(TENANT, metrics_service.today_str())

        assert row.whatsapp_messages_in == 3
        assert row.whatsapp_messages_out == 1
        assert row.whatsapp_cost_eur == pytest.approx(0.2)
        assert row.total_cost_eur == pytest.approx(0.2)

    def test_invalid_direction(self, dynamodb_table):
        with pytest.raises(ValueError):
            metrics_service.record_whatsapp_message(TENANT, "sideways")


class TestDailyAggregation:
    def test_counts_completed_cleanings_photos_and_supplies(self, dynamodb_table):
        day = datetime(2026, 3, 10, tzinfo=timezone.utc)
        _completed(day + timedelta(hours=10), minutes=90, price=1390)
        _completed(day + timedelta(hours=14), minutes=120, price=2000)
        _completed(day + timedelta(days=1, hours=9), minutes=60, price=890)

        _wa_message(
            "wamid.1", day + timedelta(hours=9), message_type="image",
            media_id="media-1", status=WhatsAppMessageStatus.MEDIA_PENDING,
        )
        _wa_message(
            "wamid.2", day + timedelta(hours=11), message_type="image",
            media_id="media-2", status=WhatsAppMessageStatus.FAILED,
        )
        _wa_message(
            "wamid.3", day + timedelta(hours=12), message_type="text",
            text="Došly pytle", parsed_type="supply_out",
        )
        _wa_message(
            "wamid.4", day + timedelta(days=1, hours=1), message_type="image",
            media_id="media-3",
        )

        metrics_service.record_ai_usage(TENANT, 100, 100)
        row = metrics_service.aggregate_daily_metrics(TENANT, "2026-03-10")

        assert row.date == "2026-03-10"
        assert row.cleanings_done == 2
        assert row.avg_cleaning_time_min == 105.0
        assert row.photos_uploaded == 1
        assert row.supplies_out == 1

    def test_keeps_usage_counters(self, dynamodb_table):
        today = metrics_service.today_str()
        metrics_service.record_whatsapp_message(TENANT, "in", count=2)

        row = metrics_service.aggregate_daily_metrics(TENANT, today)

        assert row.cleanings_done == 0
        assert row.avg_cleaning_time_min == 0.0
        assert row.whatsapp_messages_in == 2


class TestMonthlyKPI:
    def test_aggregates_month(self, dynamodb_table):
        _completed(datetime(2026, 3, 5, 12, tzinfo=timezone.utc), 90, 1390, rating=4)
        _completed(datetime(2026, 3, 20, 12, tzinfo=timezone.utc), 120, 2000, rating=5)
        _completed(datetime(2026, 4, 1, 12, tzinfo=timezone.utc), 60, 990, rating=1)

        repo = DailyMetricsRepository()
        repo.increment(TENANT, "2026-03-05", {"ai_cost_eur": 1.0})
        repo.increment(TENANT, "2026-03-20", {"whatsapp_cost_eur": 1.0})
        repo.increment(TENANT, "2026-04-01", {"ai_cost_eur": 9.0})

        kpi = metrics_service.aggregate_monthly_kpi(TENANT, "2026-03")

        assert kpi.total_cleanings == 2
        assert kpi.revenue_est == 3390
        assert kpi.costs_est == pytest.approx(50.0)
        assert kpi.profit_est == pytest.approx(3340.0)
        assert kpi.avg_rating == 4.5
        assert kpi.utilization_rate == 0.0081

    def test_reaggregation_replaces_row(self, dynamodb_table):
        metrics_service.aggregate_monthly_kpi(TENANT, "2026-02")
        _completed(datetime(2026, 2, 10, 12, tzinfo=timezone.utc), 60, 890)

        kpi = metrics_service.aggregate_monthly_kpi(TENANT, "2026-02")

        assert kpi.total_cleanings == 1
        rows = MonthlyKPIRepository().list_for_year(TENANT, 2026)
        assert [r.month for r in rows] == ["2026-02"]

    def test_zero_capacity(self, dynamodb_table, monkeypatch):
        monkeypatch.setenv("CLEANING_CAPACITY_PER_DAY", "0")

        kpi = metrics_service.aggregate_monthly_kpi(TENANT, "2026-02")

        assert kpi.utilization_rate == 0.0


class TestReports:
    def test_summary_without_data(self, dynamodb_table):
        summary = metrics_service.get_metrics_summary(TENANT)

        assert summary["today"]["cleanings_done"] == 0
        assert summary["this_month"]["revenue_est"] == 0

    def test_daily_summary_range(self, dynamodb_table):
        repo = DailyMetricsRepository()
        for day in ("2026-03-01", "2026-03-02", "2026-03-05"):
            repo.increment(TENANT, day, {"ai_tokens_in": 10})

        rows = metrics_service.get_daily_metrics_summary(TENANT, "2026-03-01", "2026-03-02")

        assert [r["date"] for r in rows] == ["2026-03-01", "2026-03-02"]
        assert rows[0]["ai_tokens_in"] == 10
        assert "tenant_id" not in rows[0]

    def test_cost_trends(self, dynamodb_table):
        metrics_service.record_ai_usage(TENANT, 1000, 0)
        metrics_service.record_whatsapp_message(TENANT, "out")

        trends = metrics_service.get_cost_trends(TENANT)

        assert trends["dates"] == [metrics_service.today_str()]
        assert trends["total_costs"][0] == pytest.approx(0.0508)


class TestCostLimits:
    def test_within_limits(self, dynamodb_table):
        result = metrics_service.check_cost_limits(TENANT, "2026-03-10")

        assert result == {"ai_limit_exceeded": False, "whatsapp_limit_exceeded": False}

    def test_ai_limit_exceeded(self, dynamodb_table):
        DailyMetricsRepository().increment(TENANT, "2026-03-10", {"ai_cost_eur": 2.5})

        result = metrics_service.check_cost_limits(TENANT, "2026-03-10")

        assert result["ai_limit_exceeded"] is True
        assert result["whatsapp_limit_exceeded"] is False

    def test_configured_limit(self, dynamodb_table, monkeypatch):
        monkeypatch.setenv("WHATSAPP_DAILY_COST_LIMIT_EUR", "0.1")
        metrics_service.record_whatsapp_message(TENANT, "in", count=3)

        result = metrics_service.check_cost_limits(TENANT, metrics_service.today_str())

        assert result["whatsapp_limit_exceeded"] is True
