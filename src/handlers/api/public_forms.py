"""Public website forms: contact form and price calculator."""

import base64
import json
import re
from typing import Any
from urllib.parse import parse_qs

import structlog

from cleanstay.config import get_default_tenant_id, get_settings
from cleanstay.models.lead import ContactFormRequest, Lead, LeadSource
from cleanstay.repositories.lead import LeadRepository
from cleanstay.services.estimator import EstimateInput, estimate_price
from cleanstay.services.notifications import send_contact_email
from cleanstay.utils.exceptions import CleanStayError
from cleanstay.utils.rate_limiter import check_rate_limit, get_client_ip, rate_limit_response
from cleanstay.utils.responses import error, from_exception, redirect, success
from cleanstay.utils.validation import parse_body, validate

logger = structlog.get_logger()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MSG_REQUIRED = "Všechna pole jsou povinná"
MSG_INVALID_EMAIL = "Neplatný email"
MSG_SEND_FAILED = "Nepodařilo se odeslat zprávu. Zkuste to prosím znovu."
MSG_SENT = "Děkujeme, zpráva byla odeslána. Ozveme se vám co nejdříve."


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle public form submissions.

    Routes:
        POST /public/contact
        POST /public/estimate
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        path = event.get("path", "")

        if http_method != "POST":
            return error("Method not allowed", 405)

        if path.endswith("/contact"):
            return submit_contact(event)
        if path.endswith("/estimate"):
            return calculate_estimate(event)

        return error("Not found", 404)

    except CleanStayError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Public forms handler error", error=str(e))
        return error("Internal server error", 500)


def _raw_body(event: dict) -> str:
    body = event.get("body") or ""
    if event.get("isBase64Encoded") and body:
        body = base64.b64decode(body).decode("utf-8", errors="replace")
    return body


def _is_form_encoded(event: dict) -> bool:
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    return "application/x-www-form-urlencoded" in (headers.get("content-type") or "")


def _parse_form_body(event: dict) -> dict:
    """Parse a JSON or form-encoded body into a flat dict."""
    raw = _raw_body(event)
    if _is_form_encoded(event):
        return {k: v[0] for k, v in parse_qs(raw, keep_blank_values=True).items()}
    data = json.loads(raw or "{}")
    if not isinstance(data, dict):
        raise ValueError("Request body must be an object")
    return data


def _mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}" if domain else "***"


def submit_contact(event: dict) -> dict:
    """Store a contact-form message as a lead and e-mail the business inbox."""
    client_ip = get_client_ip(event)
    rate_check = check_rate_limit(
        identifier=client_ip,
        action="contact_form",
        requests_per_minute=5,
        requests_per_hour=30,
    )
    if not rate_check.allowed:
        return rate_limit_response(rate_check.retry_after or 60)

    form_encoded = _is_form_encoded(event)

    try:
        body = _parse_form_body(event)
    except (json.JSONDecodeError, ValueError):
        return error("Invalid request body", 400)

    if body.get("_honeypot"):
        logger.debug("Honeypot triggered on contact form")
        if form_encoded:
            return redirect(f"{get_settings().site_url}/?message=success", 303)
        return success({"success": True, "message": MSG_SENT})

    request = validate(ContactFormRequest, body)

    if not request.name or not request.email or not request.message:
        return error(MSG_REQUIRED, 400)
    if not EMAIL_PATTERN.match(request.email):
        return error(MSG_INVALID_EMAIL, 400)

    tenant_id = get_default_tenant_id()
    if not tenant_id:
        logger.error("DEFAULT_TENANT_ID not set, cannot store contact form")
        return error(MSG_SEND_FAILED, 500)

    lead = Lead(
        tenant_id=tenant_id,
        source=LeadSource.CONTACT_FORM,
        name=request.name,
        email=request.email,
        consent=True,
        service_type="kontakt",
        message=request.message,
    )
    try:
        LeadRepository().create(lead)
    except Exception as e:
        logger.error("Failed to store contact form", error=str(e))
        return error(MSG_SEND_FAILED, 500)

    logger.info("Contact form stored", lead_id=lead.id, email=_mask_email(request.email))

    send_contact_email(request.name, request.email, request.message)

    if form_encoded:
        return redirect(f"{get_settings().site_url}/?message=success", 303)

    return success({"success": True, "message": MSG_SENT})


def calculate_estimate(event: dict) -> dict:
    """Return an indicative price range for a cleaning request."""
    client_ip = get_client_ip(event)
    rate_check = check_rate_limit(
        identifier=client_ip,
        action="estimate",
        requests_per_minute=30,
        requests_per_hour=300,
    )
    if not rate_check.allowed:
        return rate_limit_response(rate_check.retry_after or 60)

    request = parse_body(event, EstimateInput, raw=_raw_body(event))

    return success(estimate_price(request).model_dump(mode="json"))
