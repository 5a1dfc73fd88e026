"""Fail-safe admin notifications for new web leads and contact messages.

Nothing in this module raises: a failed notification is logged and the
request that triggered it still succeeds.
"""

import structlog

from cleanstay.config import get_default_tenant_id, get_email_config, get_settings
from cleanstay.services.chatbot_content import ADMIN_ALERT_TEMPLATE, ADMIN_DEEPLINK_PATTERN
from cleanstay.services.email_service import EmailService
from cleanstay.services.whatsapp_service import WhatsAppService, mask_phone

logger = structlog.get_logger()

PREVIEW_LENGTH = 100
CONTACT_EMAIL_SUBJECT = "Nová zpráva z kontaktního formuláře"


def build_admin_alert(conversation_id: str | None, preview: str, base_url: str) -> str:
    """Alert text with a deep link into the admin inbox."""
    path = ADMIN_DEEPLINK_PATTERN.format(conversation_id=conversation_id or "")
    return ADMIN_ALERT_TEMPLATE.format(preview=preview[:PREVIEW_LENGTH], link=f"{base_url}{path}")


def send_admin_whatsapp_alert(
    conversation_id: str | None,
    preview: str,
    origin_url: str | None = None,
    service: WhatsAppService | None = None,
) -> int:
    """Alert every admin number about new web activity.

    Args:
        conversation_id: Conversation to link to.
        preview: Short description, truncated to 100 characters.
        origin_url: Page the visitor wrote from (logged only).
        service: WhatsApp client. Defaults to one built from the environment.

    Returns:
        Number of messages sent.
    """
    try:
        tenant_id = get_default_tenant_id()
        if not tenant_id:
            logger.warning("DEFAULT_TENANT_ID not set, skipping WhatsApp alert")
            return 0

        service = service or WhatsAppService()
        if not service.is_configured:
            logger.warning("WhatsApp not configured, skipping alert", conversation_id=conversation_id)
            return 0

        settings = get_settings()
        body = build_admin_alert(conversation_id, preview, settings.admin_dashboard_base_url)

        sent = 0
        for number in settings.admin_whatsapp_numbers:
            try:
                service.send_text(number, body)
                sent += 1
            except Exception as e:
                logger.error("WhatsApp alert failed", to=mask_phone(number), error=str(e))

        if sent:
            from cleanstay.services.metrics_service import record_whatsapp_message

            record_whatsapp_message(tenant_id, direction="out", count=sent)

        logger.info(
            "Admin WhatsApp alert sent",
            conversation_id=conversation_id,
            origin_url=origin_url,
            sent=sent,
        )
        return sent

    except Exception as e:
        logger.error("Failed to send WhatsApp alert", error=str(e), conversation_id=conversation_id)
        return 0


def send_contact_email(
    name: str,
    email: str,
    message: str,
    service: EmailService | None = None,
) -> bool:
    """Forward a contact-form message to the business inbox.

    Returns:
        True if SES accepted the message.
    """
    config = get_email_config()
    if not config:
        return False

    body = f"Jméno: {name}\nE-mail: {email}\nZpráva:\n{message}"

    try:
        service = service or EmailService(from_email=config.from_email)
        service.send_email(
            to=config.contact_email,
            subject=CONTACT_EMAIL_SUBJECT,
            body_text=body,
            reply_to=[email],
        )
        return True
    except Exception as e:
        logger.error("Contact email failed", error=str(e))
        return False


def send_cleaner_reply(
    tenant_id: str,
    to: str,
    body: str,
    service: WhatsAppService | None = None,
) -> bool:
    """Answer a cleaner's WhatsApp report, e.g. with a follow-up question.

    Returns:
        True if the message was sent.
    """
    try:
        service = service or WhatsAppService()
        if not service.is_configured:
            logger.warning("WhatsApp not configured, skipping cleaner reply", to=mask_phone(to))
            return False

        service.send_text(to, body)

        from cleanstay.services.metrics_service import record_whatsapp_message

        record_whatsapp_message(tenant_id, direction="out")
        return True

    except Exception as e:
        logger.error("Cleaner reply failed", to=mask_phone(to), error=str(e))
        return False
