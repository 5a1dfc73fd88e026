"""WhatsApp Business webhook.

Cleaners report progress over WhatsApp ("zacinam v Karlin 2+kk", "dosel
toaletni papir", photos). Each inbound message is stored once, keyed by its
WhatsApp message ID, so Meta's retries do not create duplicates. Text is run
through the message parser so the admin inbox can sort by priority, and then
applied to the sender's cleaning session.
"""

import base64
import hashlib
import hmac
from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id, get_webhook_secrets
from cleanstay.models.whatsapp_message import WhatsAppMessage, WhatsAppMessageStatus
from cleanstay.repositories.whatsapp_message import WhatsAppMessageRepository
from cleanstay.services.message_parser import ParsedMessage, get_message_priority, parse_message
from cleanstay.services.metrics_service import record_whatsapp_message
from cleanstay.services.notifications import send_cleaner_reply
from cleanstay.services.sessions import handle_report, record_photo
from cleanstay.services.whatsapp_service import mask_phone
from cleanstay.utils.exceptions import CleanStayError, ConfigurationError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import error, from_exception, no_content, text
from cleanstay.utils.validation import parse_json_object

logger = structlog.get_logger()

SIGNATURE_HEADER = "x-hub-signature-256"
MEDIA_TYPES = ("image", "document", "video", "audio")
PARSE_LOCALE = "cs"


@requires_cleanstay(Feature.WHATSAPP_WEBHOOK)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle WhatsApp webhook requests.

    Routes:
        GET  /webhooks/whatsapp  (subscription verification)
        POST /webhooks/whatsapp  (message notifications)
    """
    try:
        http_method = event.get("httpMethod", "").upper()

        if http_method == "GET":
            return verify_subscription(event)
        if http_method == "POST":
            return receive_notification(event)

        return error("Method not allowed", 405)

    except CleanStayError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("WhatsApp webhook error", error=str(e))
        return error("Internal server error", 500)


def verify_subscription(event: dict) -> dict:
    """Answer Meta's hub challenge when the verify token matches."""
    query_params = event.get("queryStringParameters", {}) or {}
    verify_token, _ = get_webhook_secrets()

    mode = query_params.get("hub.mode")
    token = query_params.get("hub.verify_token")
    challenge = query_params.get("hub.challenge") or ""

    if (
        mode == "subscribe"
        and verify_token
        and token
        and hmac.compare_digest(token, verify_token)
    ):
        logger.info("WhatsApp webhook verified")
        return text(challenge)

    logger.warning("WhatsApp webhook verification failed", mode=mode)
    return error("Verification failed", 403, error_code="FORBIDDEN")


def verify_signature(raw_body: bytes, signature: str | None, app_secret: str | None) -> bool:
    """Check X-Hub-Signature-256 against HMAC-SHA256 of the raw body.

    Args:
        raw_body: Request body exactly as received.
        signature: Header value, "sha256=<hex>".
        app_secret: WhatsApp app secret.

    Returns:
        True if the signature is valid.
    """
    if not signature or not app_secret or not signature.startswith("sha256="):
        return False

    expected = hmac.new(app_secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(signature[len("sha256="):], expected)


def _raw_body(event: dict) -> bytes:
    raw_body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        return base64.b64decode(raw_body)
    return raw_body.encode("utf-8")


def _header(event: dict, name: str) -> str | None:
    headers = event.get("headers", {}) or {}
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def receive_notification(event: dict) -> dict:
    """Verify and store the messages of a webhook notification."""
    raw_body = _raw_body(event)
    _, app_secret = get_webhook_secrets()

    if not verify_signature(raw_body, _header(event, SIGNATURE_HEADER), app_secret):
        logger.warning("WhatsApp webhook signature invalid")
        return error("Invalid signature", 403, error_code="FORBIDDEN")

    payload = parse_json_object(raw_body)

    if payload.get("object") != "whatsapp_business_account":
        logger.info("Ignoring non-WhatsApp notification", object=payload.get("object"))
        return no_content()

    tenant_id = get_default_tenant_id()
    if not tenant_id:
        raise ConfigurationError("DEFAULT_TENANT_ID")

    stored = 0
    for entry in payload.get("entry", []):
        for change in entry.get("changes", []):
            if change.get("field") != "messages":
                continue
            value = change.get("value", {}) or {}
            phone_number_id = (value.get("metadata") or {}).get("phone_number_id")
            for message in value.get("messages", []):
                if store_message(tenant_id, message, phone_number_id):
                    stored += 1

    if stored:
        record_whatsapp_message(tenant_id, direction="in", count=stored)

    logger.info("WhatsApp notification processed", stored=stored)
    return no_content()


def build_message(tenant_id: str, message: dict, phone_number_id: str | None) -> WhatsAppMessage:
    """Map a Cloud API message object onto a WhatsAppMessage."""
    message_type = message.get("type", "unknown")

    wa_message = WhatsAppMessage(
        tenant_id=tenant_id,
        wa_message_id=message["id"],
        from_number=message.get("from", ""),
        phone_number_id=phone_number_id,
        timestamp=str(message.get("timestamp") or "0"),
        message_type=message_type,
    )

    if message_type == "text":
        wa_message.text = (message.get("text") or {}).get("body")
        wa_message.status = WhatsAppMessageStatus.STORED
    elif message_type in MEDIA_TYPES:
        media = message.get(message_type) or {}
        wa_message.media_id = media.get("id")
        wa_message.media_mime_type = media.get("mime_type")
        wa_message.caption = media.get("caption")
        wa_message.status = WhatsAppMessageStatus.MEDIA_PENDING

    return wa_message


def store_message(tenant_id: str, message: dict, phone_number_id: str | None) -> bool:
    """Store one inbound message unless it was seen before.

    Returns:
        True if the message was new.
    """
    if not message.get("id"):
        logger.warning("WhatsApp message without id skipped")
        return False

    repo = WhatsAppMessageRepository()
    if repo.get_by_wa_id(message["id"]):
        logger.info("Duplicate WhatsApp message ignored", wa_message_id=message["id"])
        return False

    wa_message = build_message(tenant_id, message, phone_number_id)

    parsed = None
    if wa_message.text:
        parsed = parse_message(wa_message.text, locale=PARSE_LOCALE, tenant_id=tenant_id)
        wa_message.parsed_type = parsed.type.value
        wa_message.parsed_confidence = parsed.confidence
        wa_message.parsed_priority = get_message_priority(parsed)
        wa_message.parsed_payload = parsed.payload

    created = repo.create_if_new(wa_message)
    if created:
        logger.info(
            "WhatsApp message stored",
            wa_message_id=wa_message.wa_message_id,
            from_number=mask_phone(wa_message.from_number),
            message_type=wa_message.message_type,
            parsed_type=wa_message.parsed_type,
        )
        apply_to_session(tenant_id, wa_message, parsed)
    return created


def apply_to_session(tenant_id: str, wa_message: WhatsAppMessage, parsed: ParsedMessage | None) -> None:
    """Feed a stored report into the sender's cleaning session.

    Photos join an open session silently. Text goes through the session
    rules; when they need an answer the cleaner gets the question back.
    """
    if parsed is None:
        if wa_message.message_type == "image":
            record_photo(tenant_id, wa_message.from_number, wa_message.media_id, wa_message.caption)
        return

    outcome = handle_report(tenant_id, wa_message.from_number, parsed)
    if outcome.ask:
        send_cleaner_reply(tenant_id, wa_message.from_number, outcome.ask)
