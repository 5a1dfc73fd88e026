"""Admin inbox for website chat messages."""

from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id
from cleanstay.models.conversation import MarkReadRequest, MessageSource
from cleanstay.repositories.conversation import MessageRepository
from cleanstay.repositories.lead import LeadRepository
from cleanstay.utils.auth import STAFF_ROLES, get_auth_context, require_role
from cleanstay.utils.exceptions import CleanStayError, ConfigurationError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import error, from_exception, not_found, success
from cleanstay.utils.validation import parse_body

logger = structlog.get_logger()

INBOX_LIMIT = 200


@requires_cleanstay(Feature.ADMIN_API)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle admin message requests.

    Routes:
        GET  /admin/messages
        GET  /admin/messages/thread?conversation_id=
        POST /admin/messages/mark-read
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")

        auth = get_auth_context(event)
        require_role(auth, *STAFF_ROLES)

        if path.endswith("/thread"):
            if http_method == "GET":
                return get_thread(event)
            return error("Method not allowed", 405)

        if path.endswith("/mark-read"):
            if http_method == "POST":
                return mark_read(event)
            return error("Method not allowed", 405)

        if http_method == "GET":
            return list_messages()

        return error("Method not allowed", 405)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Messages handler error", error=str(e))
        return error("Internal server error", 500)


def list_messages() -> dict:
    """Latest web messages of the site tenant plus the leads they produced."""
    tenant_id = get_default_tenant_id()
    if not tenant_id:
        raise ConfigurationError("DEFAULT_TENANT_ID")

    messages = MessageRepository().list_by_source(tenant_id, MessageSource.WEB.value, INBOX_LIMIT)
    leads = LeadRepository().list_all(tenant_id)

    return success({
        "rows": [m.to_summary() for m in messages],
        "leads": [
            {"id": lead.id, "conversation_id": lead.conversation_id}
            for lead in leads
        ],
    })


def get_thread(event: dict) -> dict:
    """All messages of one conversation, oldest first, with its lead."""
    query_params = event.get("queryStringParameters") or {}
    conversation_id = query_params.get("conversation_id") or query_params.get("conversationId")
    if not conversation_id:
        return error("conversation_id is required", 400)

    messages = MessageRepository().list_for_conversation(conversation_id)
    lead = LeadRepository().get_by_conversation(conversation_id)

    return success({
        "messages": [m.to_summary() for m in messages],
        "lead": lead.model_dump(mode="json") if lead else None,
    })


def mark_read(event: dict) -> dict:
    """Clear the unread flag of one message."""
    request = parse_body(event, MarkReadRequest)

    message = MessageRepository().mark_read(request.id)
    if not message:
        return not_found("Message", request.id)

    return success({"ok": True})
