"""Admin cleanings and schedule API handler."""

from datetime import datetime, time, timedelta, timezone
from typing import Any

import pytz
import structlog

from cleanstay.models.base import utc_now
from cleanstay.models.cleaning import (
    Cleaning,
    CleaningEventType,
    CleaningStatus,
    CreateCleaningRequest,
    UpdateCleaningStatusRequest,
)
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.utils.auth import (
    STAFF_ROLES,
    AuthContext,
    get_auth_context,
    require_role,
    require_tenant,
)
from cleanstay.utils.exceptions import CleanStayError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import (
    conflict,
    created,
    error,
    from_exception,
    not_found,
    paginated,
    success,
)
from cleanstay.utils.validation import parse_body

logger = structlog.get_logger()

LOCAL_TZ = pytz.timezone("Europe/Prague")
QUIET_HOURS_START = 21
QUIET_HOURS_END = 8

STATUS_EVENTS = {
    CleaningStatus.IN_PROGRESS.value: CleaningEventType.STARTED,
    CleaningStatus.COMPLETED.value: CleaningEventType.COMPLETED,
    CleaningStatus.CANCELLED.value: CleaningEventType.CANCELLED,
}


@requires_cleanstay(Feature.ADMIN_API)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle cleaning requests.

    Routes:
        GET   /admin/cleanings
        POST  /admin/cleanings
        GET   /admin/cleanings/{cleaning_id}
        PATCH /admin/cleanings/{cleaning_id}/status
        GET   /admin/schedule/tomorrow
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}
        cleaning_id = path_params.get("cleaning_id")

        auth = get_auth_context(event)
        require_role(auth, *STAFF_ROLES)
        tenant_id = require_tenant(auth)

        repo = CleaningRepository()

        if path.endswith("/schedule/tomorrow"):
            if http_method == "GET":
                return get_tomorrow_schedule(repo, tenant_id)
            return error("Method not allowed", 405)

        if path.endswith("/status") and cleaning_id:
            if http_method in ("PATCH", "PUT", "POST"):
                return update_status(repo, tenant_id, cleaning_id, auth, event)
            return error("Method not allowed", 405)

        if http_method == "GET" and cleaning_id:
            return get_cleaning(repo, tenant_id, cleaning_id)
        elif http_method == "GET":
            return list_cleanings(repo, tenant_id, event)
        elif http_method == "POST" and not cleaning_id:
            return create_cleaning(repo, tenant_id, auth, event)
        else:
            return error("Method not allowed", 405)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Cleanings handler error", error=str(e))
        return error("Internal server error", 500)


def list_cleanings(repo: CleaningRepository, tenant_id: str, event: dict) -> dict:
    """List cleanings, latest scheduled first.

    Query params:
        status: Filter by status
        property_id: Filter by property
        page: Page number (default 1)
        page_size: Items per page (default 20, max 100)
    """
    query_params = event.get("queryStringParameters", {}) or {}

    status = query_params.get("status")
    if status and status not in {s.value for s in CleaningStatus}:
        return error(f"Invalid status: {status}", 400)

    page = max(int(query_params.get("page", 1)), 1)
    page_size = min(max(int(query_params.get("page_size", 20)), 1), 100)

    cleanings = repo.list_by_tenant(
        tenant_id,
        status=status,
        property_id=query_params.get("property_id"),
    )

    start = (page - 1) * page_size
    items = cleanings[start:start + page_size]

    return paginated(
        items=[c.model_dump(mode="json") for c in items],
        total=len(cleanings),
        page=page,
        page_size=page_size,
    )


def get_cleaning(repo: CleaningRepository, tenant_id: str, cleaning_id: str) -> dict:
    """Get a cleaning with its event timeline."""
    cleaning = repo.get_by_id(tenant_id, cleaning_id)
    if not cleaning:
        return not_found("Cleaning", cleaning_id)

    events = CleaningEventRepository().list_for_cleaning(cleaning_id)

    return success({
        **cleaning.model_dump(mode="json"),
        "events": [e.model_dump(mode="json") for e in events],
    })


def create_cleaning(
    repo: CleaningRepository,
    tenant_id: str,
    auth: AuthContext,
    event: dict,
) -> dict:
    """Schedule a cleaning for a property."""
    request = parse_body(event, CreateCleaningRequest)

    prop = PropertyRepository().get_by_id(tenant_id, request.property_id)
    if not prop:
        return not_found("Property", request.property_id)

    cleaning = Cleaning(
        tenant_id=tenant_id,
        property_id=prop.id,
        cleaner_id=request.cleaner_id,
        client_id=request.client_id or prop.client_id,
        status=CleaningStatus.SCHEDULED,
        priority=request.priority,
        scheduled_date=request.scheduled_date,
        scheduled_end=request.scheduled_end(),
        estimated_duration_hours=request.estimated_duration_hours,
        notes=request.notes,
        special_instructions=request.special_instructions,
        price_czk=request.price_czk,
    )
    cleaning = repo.create(cleaning)

    CleaningEventRepository().log(
        tenant_id,
        cleaning.id,
        CleaningEventType.SCHEDULED,
        actor_id=auth.user_id,
        data={"scheduled_date": cleaning.scheduled_date.isoformat()},
    )

    logger.info(
        "Cleaning scheduled",
        cleaning_id=cleaning.id,
        property_id=prop.id,
        scheduled_date=cleaning.scheduled_date.isoformat(),
    )

    return created(cleaning.model_dump(mode="json"))


def update_status(
    repo: CleaningRepository,
    tenant_id: str,
    cleaning_id: str,
    auth: AuthContext,
    event: dict,
) -> dict:
    """Move a cleaning through its lifecycle."""
    cleaning = repo.get_by_id(tenant_id, cleaning_id)
    if not cleaning:
        return not_found("Cleaning", cleaning_id)

    request = parse_body(event, UpdateCleaningStatusRequest)

    new_status = request.status.value
    if not cleaning.can_transition_to(new_status):
        return conflict(f"Cannot change status from {cleaning.status} to {new_status}")

    previous_status = cleaning.status
    now = utc_now()

    cleaning.status = new_status
    if new_status == CleaningStatus.IN_PROGRESS.value:
        cleaning.started_at = now
    elif new_status == CleaningStatus.COMPLETED.value:
        cleaning.completed_at = now
        if request.rating is not None:
            cleaning.rating = request.rating
        if request.client_feedback is not None:
            cleaning.client_feedback = request.client_feedback

    cleaning = repo.update(cleaning)

    data: dict[str, Any] = {"from": previous_status, "to": new_status}
    if cleaning.duration_minutes is not None and new_status == CleaningStatus.COMPLETED.value:
        data["duration_minutes"] = cleaning.duration_minutes

    CleaningEventRepository().log(
        tenant_id,
        cleaning_id,
        STATUS_EVENTS[new_status],
        actor_id=auth.user_id,
        data=data,
    )

    logger.info("Cleaning status changed", cleaning_id=cleaning_id, **data)

    return success(cleaning.model_dump(mode="json"))


def is_quiet_hours(moment: datetime) -> bool:
    """Whether a moment falls into local quiet hours (21:00 to 08:00)."""
    local_hour = moment.astimezone(LOCAL_TZ).hour
    return local_hour >= QUIET_HOURS_START or local_hour < QUIET_HOURS_END


def tomorrow_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """UTC bounds of tomorrow's local calendar day."""
    now = now or datetime.now(timezone.utc)
    tomorrow = now.astimezone(LOCAL_TZ).date() + timedelta(days=1)
    start = LOCAL_TZ.localize(datetime.combine(tomorrow, time.min))
    end = LOCAL_TZ.localize(datetime.combine(tomorrow + timedelta(days=1), time.min))
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def get_tomorrow_schedule(repo: CleaningRepository, tenant_id: str) -> dict:
    """Scheduled cleanings starting tomorrow (Prague time), earliest first."""
    start, end = tomorrow_bounds()
    cleanings = repo.list_scheduled_between(
        tenant_id, start, end, status=CleaningStatus.SCHEDULED.value
    )

    properties = PropertyRepository().get_many(tenant_id, {c.property_id for c in cleanings})

    items = []
    for cleaning in cleanings:
        prop = properties.get(cleaning.property_id)
        items.append({
            **cleaning.model_dump(mode="json"),
            "property_name": prop.name if prop else None,
            "property_address": prop.address if prop else None,
            "local_start": cleaning.scheduled_date.astimezone(LOCAL_TZ).isoformat(),
            "quiet_hours": is_quiet_hours(cleaning.scheduled_date),
        })

    return success({
        "date": start.astimezone(LOCAL_TZ).date().isoformat(),
        "items": items,
        "count": len(items),
    })
