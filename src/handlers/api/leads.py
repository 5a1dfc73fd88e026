"""Admin leads API handler."""

import base64
import csv
import io
import json
from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id
from cleanstay.repositories.lead import LeadRepository
from cleanstay.utils.auth import STAFF_ROLES, AuthContext, get_auth_context, require_role
from cleanstay.utils.exceptions import CleanStayError, ForbiddenError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import error, from_exception, not_found, success

logger = structlog.get_logger()

EXPORT_FIELDS = [
    "id",
    "created_at",
    "source",
    "name",
    "email",
    "phone",
    "service_type",
    "city",
    "size_m2",
    "cadence",
    "rush_flag",
    "conversation_id",
    "message",
]


@requires_cleanstay(Feature.ADMIN_API)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle admin lead requests.

    Routes:
        GET /admin/leads
        GET /admin/leads/export
        GET /admin/leads/{lead_id}
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}
        lead_id = path_params.get("lead_id")

        auth = get_auth_context(event)
        require_role(auth, *STAFF_ROLES)
        tenant_id = _resolve_tenant(auth)

        if http_method != "GET":
            return error("Method not allowed", 405)

        repo = LeadRepository()

        if path.endswith("/export"):
            return export_leads(repo, tenant_id)
        if lead_id:
            return get_lead(repo, tenant_id, lead_id)
        return list_leads(repo, tenant_id, event)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Leads handler error", error=str(e))
        return error("Internal server error", 500)


def _resolve_tenant(auth: AuthContext) -> str:
    """Staff see their own tenant; web leads land on the default tenant."""
    tenant_id = auth.tenant_id or get_default_tenant_id()
    if not tenant_id:
        raise ForbiddenError("No tenant assigned to this account")
    return tenant_id


def list_leads(repo: LeadRepository, tenant_id: str, event: dict) -> dict:
    """List leads, newest first.

    Query params:
        limit: Max results (default 50, max 100)
        cursor: Pagination cursor
    """
    query_params = event.get("queryStringParameters", {}) or {}

    limit = max(1, min(int(query_params.get("limit", 50)), 100))
    cursor = query_params.get("cursor")

    last_key = None
    if cursor:
        last_key = json.loads(base64.b64decode(cursor).decode())

    leads, next_key = repo.list_by_tenant(tenant_id, limit, last_key)
    next_cursor = None
    if next_key:
        next_cursor = base64.b64encode(json.dumps(next_key).encode()).decode()

    return success({
        "items": [lead.model_dump(mode="json") for lead in leads],
        "pagination": {
            "limit": limit,
            "next_cursor": next_cursor,
        },
    })


def get_lead(repo: LeadRepository, tenant_id: str, lead_id: str) -> dict:
    lead = repo.get_by_id(tenant_id, lead_id)
    if not lead:
        return not_found("Lead", lead_id)
    return success(lead.model_dump(mode="json"))


def export_leads(repo: LeadRepository, tenant_id: str) -> dict:
    """Export all leads as CSV text."""
    leads = repo.list_all(tenant_id)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS, extrasaction="ignore")
    writer.writeheader()

    for lead in leads:
        row = lead.model_dump(mode="json")
        writer.writerow({field: "" if row.get(field) is None else row.get(field) for field in EXPORT_FIELDS})

    logger.info("Leads exported", tenant_id=tenant_id, count=len(leads))

    return success({
        "csv_data": output.getvalue(),
        "count": len(leads),
    })
