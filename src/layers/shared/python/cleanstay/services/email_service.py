"""Amazon SES client for outgoing CleanStay e-mail.

The only sender today is the public contact form, which forwards visitor
messages to the business inbox with the visitor as reply-to.
"""

import os
from typing import Any

import boto3
import structlog
from botocore.exceptions import ClientError

logger = structlog.get_logger()

DEFAULT_SES_REGION = "eu-central-1"
CHARSET = "UTF-8"


class EmailError(Exception):
    """Raised when a message cannot be handed over to SES."""

    def __init__(self, message: str, code: str | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


def _content(data: str) -> dict[str, str]:
    return {"Data": data, "Charset": CHARSET}


class EmailService:
    """Thin wrapper around the SES ``SendEmail`` API."""

    def __init__(self, from_email: str | None = None, region_name: str | None = None):
        self.from_email = from_email or os.environ.get("SES_FROM_EMAIL")
        self.region_name = region_name or os.environ.get("AWS_REGION") or DEFAULT_SES_REGION
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client("ses", region_name=self.region_name)
        return self._client

    def send_email(
        self,
        to: str | list[str],
        subject: str,
        body_text: str | None = None,
        body_html: str | None = None,
        reply_to: list[str] | None = None,
    ) -> dict[str, Any]:
        """Send one message.

        Args:
            to: Recipient address or addresses.
            subject: Subject line.
            body_text: Plain text part.
            body_html: HTML part.
            reply_to: Reply-To addresses.

        Returns:
            ``{"message_id", "to"}`` as accepted by SES.

        Raises:
            EmailError: Missing sender, recipient or body, or SES rejection.
        """
        recipients = [to] if isinstance(to, str) else list(to or [])

        if not self.from_email:
            raise EmailError("Sender email address is required", code="SENDER_MISSING")
        if not recipients:
            raise EmailError("Recipient email address is required", code="RECIPIENT_MISSING")
        if not body_text and not body_html:
            raise EmailError("Email body is required", code="BODY_MISSING")

        body = {}
        if body_text:
            body["Text"] = _content(body_text)
        if body_html:
            body["Html"] = _content(body_html)

        request: dict[str, Any] = {
            "Source": self.from_email,
            "Destination": {"ToAddresses": recipients},
            "Message": {"Subject": _content(subject), "Body": body},
        }
        if reply_to:
            request["ReplyToAddresses"] = reply_to

        try:
            response = self.client.send_email(**request)
        except ClientError as e:
            error = e.response.get("Error", {})
            logger.error(
                "SES send failed",
                error_code=error.get("Code"),
                error_message=error.get("Message"),
                recipients=len(recipients),
            )
            raise EmailError(
                f"Failed to send email: {error.get('Message')}",
                code=error.get("Code"),
                details={"aws_error": error.get("Message")},
            ) from e

        logger.info("Email sent", message_id=response["MessageId"], recipients=len(recipients))
        return {"message_id": response["MessageId"], "to": recipients}
