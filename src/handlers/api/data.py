"""Admin GDPR data export and erasure API handler."""

from typing import Any

import structlog

from cleanstay.models.base import utc_now
from cleanstay.models.gdpr import ErasureRequest
from cleanstay.services.gdpr import EXPORT_SECTIONS, erase_subject, export_tenant_data, export_to_csv
from cleanstay.utils.auth import ROLE_ADMIN, get_auth_context, require_role, require_tenant
from cleanstay.utils.exceptions import CleanStayError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import error, from_exception, success
from cleanstay.utils.validation import parse_body

logger = structlog.get_logger()

EXPORT_FORMATS = ("json", "csv")


@requires_cleanstay(Feature.ADMIN_API)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle data export and erasure requests. Admins only.

    Routes:
        GET  /admin/data/export?format=json|csv&client_id=
        POST /admin/data/delete
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "").rstrip("/")

        auth = get_auth_context(event)
        require_role(auth, ROLE_ADMIN)
        tenant_id = require_tenant(auth)

        if path.endswith("/export"):
            if http_method == "GET":
                return export_data(tenant_id, event)
            return error("Method not allowed", 405)

        if path.endswith("/delete"):
            if http_method == "POST":
                return delete_data(tenant_id, auth.user_id, event)
            return error("Method not allowed", 405)

        return error("Not found", 404)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Data handler error", error=str(e))
        return error("Internal server error", 500)


def export_data(tenant_id: str, event: dict) -> dict:
    """Export tenant data as JSON, or as CSV text inside a JSON body."""
    query_params = event.get("queryStringParameters", {}) or {}
    export_format = (query_params.get("format") or "json").lower()
    client_id = query_params.get("client_id") or None

    if export_format not in EXPORT_FORMATS:
        return error("Invalid format. Use json or csv", 400)

    export = export_tenant_data(tenant_id, client_id=client_id)

    if export_format == "json":
        return success(export)

    count = sum(len(export[section]) for section in EXPORT_SECTIONS)
    filename = f"cleanstay-export-{tenant_id}-{utc_now().strftime('%Y%m%d')}.csv"
    return success({
        "csv_data": export_to_csv(export),
        "filename": filename,
        "count": count,
    })


def delete_data(tenant_id: str, user_id: str, event: dict) -> dict:
    """Anonymize (default) or delete one data subject's records."""
    request = parse_body(event, ErasureRequest)

    if not request.has_subject:
        return error("email, phone or client_id is required", 400)
    if not request.confirm:
        return error("Confirmation required. Set confirm=true to proceed with data deletion.", 400)

    result = erase_subject(tenant_id, request, erased_by=user_id)

    logger.info(
        "Data erasure completed",
        tenant_id=tenant_id,
        requested_by=user_id,
        records_affected=result["records_affected"],
    )
    return success({"success": True, "data": result})
