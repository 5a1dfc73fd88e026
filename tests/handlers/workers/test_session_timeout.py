"""Tests for the cleaning session timeout worker."""

from datetime import timedelta

from cleanstay.models.base import utc_now
from cleanstay.models.session import CleaningSession
from cleanstay.repositories.session import CleaningSessionRepository

TENANT_ID = "test-tenant-001"


def _session(started_hours_ago: float) -> CleaningSession:
    started = utc_now() - timedelta(hours=started_hours_ago)
    return CleaningSession(
        tenant_id=TENANT_ID,
        property_id="p-1",
        cleaning_id="c-1",
        cleaner_phone="420777111222",
        started_at=started,
        expected_end_at=started + timedelta(hours=4),
    )


def test_closes_expired_sessions(dynamodb_table, lambda_context):
    from workers.session_timeout import handler

    repo = CleaningSessionRepository()
    expired = repo.create(_session(6))
    running = repo.create(_session(1))

    result = handler({}, lambda_context)

    assert result == {"status": "success", "closed": 1}
    assert repo.get_by_id(TENANT_ID, expired.id).status == "closed"
    assert repo.get_by_id(TENANT_ID, running.id).is_open


def test_skipped_when_disabled(lambda_context, monkeypatch):
    from workers.session_timeout import handler

    monkeypatch.setenv("CLEANSTAY_ENABLED", "false")

    assert handler({}, lambda_context) == {"status": "skipped", "reason": "disabled"}


def test_skipped_without_tenant(lambda_context, monkeypatch):
    from workers.session_timeout import handler

    monkeypatch.delenv("DEFAULT_TENANT_ID")

    assert handler({}, lambda_context) == {"status": "skipped", "reason": "no_tenant"}
