"""Client portal API handler."""

from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.utils.auth import (
    ROLE_ADMIN,
    ROLE_CLIENT,
    AuthContext,
    get_auth_context,
    require_role,
)
from cleanstay.utils.exceptions import CleanStayError, ForbiddenError
from cleanstay.utils.responses import error, forbidden, from_exception, not_found, success

logger = structlog.get_logger()

RECENT_CLEANINGS_LIMIT = 50


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle client portal requests.

    Routes:
        GET /portal/properties
        GET /portal/cleanings
        GET /portal/cleanings/{cleaning_id}
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")
        path_params = event.get("pathParameters", {}) or {}
        cleaning_id = path_params.get("cleaning_id")

        auth = get_auth_context(event)
        require_role(auth, ROLE_CLIENT, ROLE_ADMIN)

        if http_method != "GET":
            return error("Method not allowed", 405)

        if path.endswith("/properties"):
            return list_my_properties(auth)
        if cleaning_id:
            return get_my_cleaning(auth, cleaning_id)
        if path.endswith("/cleanings"):
            return list_my_cleanings(auth)

        return error("Not found", 404)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Portal handler error", error=str(e))
        return error("Internal server error", 500)


def _tenant_for(auth: AuthContext) -> str:
    tenant_id = auth.tenant_id or get_default_tenant_id()
    if not tenant_id:
        raise ForbiddenError("No tenant assigned to this account")
    return tenant_id


def list_my_properties(auth: AuthContext) -> dict:
    properties = PropertyRepository().list_by_client(auth.user_id)
    return success({"items": [p.model_dump(mode="json") for p in properties]})


def list_my_cleanings(auth: AuthContext) -> dict:
    """The client's cleanings, most recent first."""
    cleanings = CleaningRepository().list_by_client(auth.user_id, limit=RECENT_CLEANINGS_LIMIT)
    return success({"items": [c.model_dump(mode="json") for c in cleanings]})


def get_my_cleaning(auth: AuthContext, cleaning_id: str) -> dict:
    """One cleaning with its timeline; clients only see their own."""
    cleaning = CleaningRepository().get_by_id(_tenant_for(auth), cleaning_id)
    if not cleaning:
        return not_found("Cleaning", cleaning_id)

    if cleaning.client_id != auth.user_id and not auth.is_admin:
        logger.warning(
            "Portal access denied",
            user_id=auth.user_id,
            cleaning_id=cleaning_id,
        )
        return forbidden("You don't have access to this cleaning")

    events = CleaningEventRepository().list_for_cleaning(cleaning_id)

    return success({
        **cleaning.model_dump(mode="json"),
        "events": [e.model_dump(mode="json") for e in events],
    })
