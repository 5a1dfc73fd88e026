"""WhatsApp Cloud API client for outbound messages."""

import json
import urllib.error
import urllib.request
from typing import Any

import structlog

from cleanstay.config import WhatsAppConfig, get_whatsapp_config

logger = structlog.get_logger()

WHATSAPP_TIMEOUT = 10


class WhatsAppError(Exception):
    """Raised when the WhatsApp API rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def mask_phone(number: str) -> str:
    """Keep only the last three digits of a phone number for logs."""
    if len(number) <= 3:
        return "***"
    return "*" * (len(number) - 3) + number[-3:]


class WhatsAppService:
    """Sends text and template messages through the WhatsApp Cloud API."""

    def __init__(self, config: WhatsAppConfig | None = None):
        """Initialize WhatsApp service.

        Args:
            config: API configuration. Defaults to the environment.
        """
        self.config = config if config is not None else get_whatsapp_config()

    @property
    def is_configured(self) -> bool:
        return self.config is not None

    @property
    def messages_url(self) -> str:
        if not self.config:
            raise WhatsAppError("WhatsApp is not configured")
        return f"{self.config.api_base_url}/{self.config.phone_number_id}/messages"

    def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.config:
            raise WhatsAppError("WhatsApp is not configured")

        req = urllib.request.Request(
            self.messages_url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.config.api_token}",
                "Content-Type": "application/json",
            },
        )

        try:
            with urllib.request.urlopen(req, timeout=WHATSAPP_TIMEOUT) as response:
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace")
            logger.error("WhatsApp API error", status_code=e.code, response=detail[:500])
            raise WhatsAppError(
                f"WhatsApp API returned {e.code}",
                status_code=e.code,
                details={"response": detail[:500]},
            ) from e
        except (urllib.error.URLError, TimeoutError) as e:
            logger.error("WhatsApp API unreachable", error=str(e))
            raise WhatsAppError(f"WhatsApp API unreachable: {e}") from e

        return json.loads(body) if body else {}

    def send_text(self, to: str, body: str) -> str | None:
        """Send a plain text message.

        Args:
            to: Recipient phone number in international format.
            body: Message text.

        Returns:
            WhatsApp message ID of the sent message, if returned.

        Raises:
            WhatsAppError: If the API call fails.
        """
        result = self._post({
            "messaging_product": "whatsapp",
            "to": to.lstrip("+"),
            "type": "text",
            "text": {"body": body, "preview_url": False},
        })

        message_id = (result.get("messages") or [{}])[0].get("id")
        logger.info("WhatsApp text sent", to=mask_phone(to), message_id=message_id)
        return message_id

    def send_template(
        self,
        to: str,
        name: str,
        params: list[str] | None = None,
        language: str = "cs",
    ) -> str | None:
        """Send a pre-approved template message.

        Args:
            to: Recipient phone number in international format.
            name: Template name.
            params: Body parameters in order.
            language: Template language code.

        Returns:
            WhatsApp message ID of the sent message, if returned.

        Raises:
            WhatsAppError: If the API call fails.
        """
        template: dict[str, Any] = {"name": name, "language": {"code": language}}
        if params:
            template["components"] = [{
                "type": "body",
                "parameters": [{"type": "text", "text": p} for p in params],
            }]

        result = self._post({
            "messaging_product": "whatsapp",
            "to": to.lstrip("+"),
            "type": "template",
            "template": template,
        })

        message_id = (result.get("messages") or [{}])[0].get("id")
        logger.info("WhatsApp template sent", to=mask_phone(to), template=name, message_id=message_id)
        return message_id
