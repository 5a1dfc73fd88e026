"""Public chat widget API handler.

These endpoints are unauthenticated and rate limited per client IP. All
web traffic belongs to the tenant configured in DEFAULT_TENANT_ID.
"""

from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id
from cleanstay.models.conversation import ChatMessage, ChatRequest, MessageRole, MessageSource
from cleanstay.models.lead import CreateLeadRequest, Lead, LeadSource
from cleanstay.repositories.conversation import ConversationRepository, MessageRepository
from cleanstay.repositories.lead import LeadRepository
from cleanstay.services.ai_service import AIUnavailableError, generate_chat_reply
from cleanstay.services.chatbot_content import fallback_reply, widget_config
from cleanstay.services.intent import classify
from cleanstay.services.notifications import send_admin_whatsapp_alert
from cleanstay.utils.exceptions import CleanStayError, ConfigurationError
from cleanstay.utils.rate_limiter import check_rate_limit, get_client_ip, rate_limit_response
from cleanstay.utils.responses import error, from_exception, success
from cleanstay.utils.validation import parse_body

logger = structlog.get_logger()

HISTORY_LIMIT = 20


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle public chat requests.

    Routes:
        GET  /public/chat/config
        POST /public/chat
        POST /public/lead
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")

        if path.endswith("/chat/config"):
            if http_method == "GET":
                return success(widget_config())
            return error("Method not allowed", 405)

        if path.endswith("/chat"):
            if http_method == "POST":
                return post_chat_message(event)
            return error("Method not allowed", 405)

        if path.endswith("/lead"):
            if http_method == "POST":
                return create_lead(event)
            return error("Method not allowed", 405)

        return error("Not found", 404)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Public chat handler error", error=str(e))
        return error("Internal server error", 500)


def _require_default_tenant() -> str:
    tenant_id = get_default_tenant_id()
    if not tenant_id:
        raise ConfigurationError("DEFAULT_TENANT_ID")
    return tenant_id


def post_chat_message(event: dict) -> dict:
    """Store a visitor message and answer it.

    The reply comes from the LLM when AI chat is enabled, otherwise (or when
    the LLM fails) from the canned reply for the detected intent.
    """
    client_ip = get_client_ip(event)
    rate_check = check_rate_limit(
        identifier=client_ip,
        action="chat",
        requests_per_minute=20,
        requests_per_hour=200,
    )
    if not rate_check.allowed:
        return rate_limit_response(rate_check.retry_after or 60)

    request = parse_body(event, ChatRequest)

    intent_result = classify(request.text)
    tenant_id = _require_default_tenant()

    metadata = request.metadata
    conv_repo = ConversationRepository()
    conversation, _ = conv_repo.get_or_create_for_session(
        tenant_id=tenant_id,
        session_id=request.session_id,
        origin_url=metadata.origin_url if metadata else None,
        locale=metadata.locale if metadata else None,
    )

    msg_repo = MessageRepository()
    user_message = msg_repo.add(ChatMessage(
        tenant_id=tenant_id,
        conversation_id=conversation.id,
        role=MessageRole.USER,
        text=request.text,
        source=MessageSource.WEB,
        unread=True,
        intent=intent_result.intent.value,
        confidence=intent_result.confidence,
    ))

    history = [
        (m.role, m.text)
        for m in msg_repo.recent_history(conversation.id, limit=HISTORY_LIMIT)
    ]

    fallback = False
    model_id = None
    input_tokens = output_tokens = 0
    try:
        response = generate_chat_reply(history, intent_result.intent.value, tenant_id=tenant_id)
        reply = response.text
        model_id = response.model
        input_tokens = response.input_tokens
        output_tokens = response.output_tokens
        if not reply:
            raise ValueError("Empty reply from model")
    except AIUnavailableError:
        fallback = True
        reply = fallback_reply(intent_result.intent.value)
    except Exception as e:
        logger.warning("Chat reply generation failed, using fallback", error=str(e))
        fallback = True
        reply = fallback_reply(intent_result.intent.value)

    assistant_message = msg_repo.add(ChatMessage(
        tenant_id=tenant_id,
        conversation_id=conversation.id,
        role=MessageRole.ASSISTANT,
        text=reply,
        source=MessageSource.WEB,
        unread=False,
        intent=intent_result.intent.value,
        model_id=model_id,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        fallback=fallback,
    ))

    conv_repo.record_message(conversation, reply)

    logger.info(
        "Chat message answered",
        conversation_id=conversation.id,
        intent=intent_result.intent.value,
        fallback=fallback,
    )

    return success({
        "conversation_id": conversation.id,
        "message_id": user_message.id,
        "reply_id": assistant_message.id,
        "intent": intent_result.intent.value,
        "confidence": intent_result.confidence,
        "reply": reply,
        "fallback": fallback,
    })


def create_lead(event: dict) -> dict:
    """Capture visitor contact details from the chat widget."""
    client_ip = get_client_ip(event)
    rate_check = check_rate_limit(
        identifier=client_ip,
        action="lead",
        requests_per_minute=5,
        requests_per_hour=30,
    )
    if not rate_check.allowed:
        return rate_limit_response(rate_check.retry_after or 60)

    request = parse_body(event, CreateLeadRequest)

    if not request.session_id:
        return error("session_id is required", 400)
    if request.consent is not True:
        return error("GDPR consent required", 400)
    if not request.email and not request.phone:
        return error("Email or phone is required", 400)

    tenant_id = _require_default_tenant()

    conversation_id = request.conversation_id
    if not conversation_id:
        conversation = ConversationRepository().get_by_session(request.session_id)
        conversation_id = conversation.id if conversation else None

    lead = Lead(
        tenant_id=tenant_id,
        source=LeadSource.CHAT,
        session_id=request.session_id,
        conversation_id=conversation_id,
        name=request.name,
        email=request.email,
        phone=request.phone,
        consent=True,
        service_type=request.service_type,
        city=request.city,
        size_m2=request.size_m2,
        cadence=request.cadence,
        rush_flag=request.rush_flag,
    )
    LeadRepository().create(lead)

    logger.info("Lead created", lead_id=lead.id, conversation_id=conversation_id)

    send_admin_whatsapp_alert(
        conversation_id=conversation_id or lead.id,
        preview=lead.contact_preview(),
        origin_url=(event.get("headers") or {}).get("Referer"),
    )

    return success({"ok": True, "lead_id": lead.id})
