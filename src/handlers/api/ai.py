"""AI message parsing API handler."""

import json
from typing import Any

import structlog

from cleanstay.services.message_parser import (
    extract_property_info,
    get_message_priority,
    is_actionable,
    parse_message,
)
from cleanstay.utils.auth import STAFF_ROLES, get_auth_context, require_role
from cleanstay.utils.exceptions import CleanStayError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import error, from_exception, success

logger = structlog.get_logger()


@requires_cleanstay(Feature.AI_PARSE)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle AI parsing requests.

    Routes:
        POST /ai/parse
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        if http_method != "POST":
            return error("Method not allowed", 405)

        auth = get_auth_context(event)
        require_role(auth, *STAFF_ROLES)

        return parse_text(auth.tenant_id, event)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("AI parse handler error", error=str(e))
        return error("Internal server error", 500)


def parse_text(tenant_id: str | None, event: dict) -> dict:
    """Parse free text the way inbound WhatsApp messages are parsed."""
    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError:
        return error("Invalid JSON body", 400)

    text = body.get("text") if isinstance(body, dict) else None
    if not text or not isinstance(text, str):
        return error("Text is required", 400)

    locale = body.get("locale")
    if not isinstance(locale, str) or not locale:
        locale = "en"

    parsed = parse_message(text, locale=locale, tenant_id=tenant_id)

    return success({
        **parsed.model_dump(mode="json"),
        "actionable": is_actionable(parsed),
        "priority": get_message_priority(parsed),
        "property": extract_property_info(parsed),
    })
