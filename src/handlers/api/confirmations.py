"""Public confirmation links for scheduled cleanings."""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
import structlog

from cleanstay.config import get_default_tenant_id, get_settings
from cleanstay.models.base import utc_now
from cleanstay.models.cleaning import CleaningEventType
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.utils.exceptions import CleanStayError, ConfigurationError
from cleanstay.utils.responses import error, from_exception, not_found, success

logger = structlog.get_logger()

CONFIRM_TYPES = ("client", "cleaner")
TOKEN_ALGORITHM = "HS256"
TOKEN_TTL_DAYS = 14


def _secret() -> str:
    secret = get_settings().confirm_token_secret
    if not secret:
        raise ConfigurationError("CONFIRM_TOKEN_SECRET")
    return secret


def create_confirm_token(
    cleaning_id: str,
    confirm_type: str,
    expires_in: timedelta = timedelta(days=TOKEN_TTL_DAYS),
) -> str:
    """Issue a signed token for a confirmation link.

    Args:
        cleaning_id: Cleaning to confirm.
        confirm_type: "client" or "cleaner".
        expires_in: Token lifetime.

    Returns:
        Encoded JWT.
    """
    if confirm_type not in CONFIRM_TYPES:
        raise ValueError(f"Invalid confirmation type: {confirm_type}")

    now = datetime.now(timezone.utc)
    payload = {
        "cleaning_id": cleaning_id,
        "type": confirm_type,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, _secret(), algorithm=TOKEN_ALGORITHM)


def verify_confirm_token(token: str, cleaning_id: str, confirm_type: str) -> bool:
    """Check signature, expiry and that the claims match the link."""
    try:
        claims = jwt.decode(token, _secret(), algorithms=[TOKEN_ALGORITHM])
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid confirmation token", error=str(e))
        return False

    return claims.get("cleaning_id") == cleaning_id and claims.get("type") == confirm_type


def handler(event: dict[str, Any], context: Any) -> dict:
    """Handle confirmation links.

    Routes:
        GET /public/confirm/cleaning/{cleaning_id}?type=client|cleaner&token=
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        if http_method != "GET":
            return error("Method not allowed", 405)

        path_params = event.get("pathParameters", {}) or {}
        query_params = event.get("queryStringParameters", {}) or {}

        cleaning_id = path_params.get("cleaning_id")
        if not cleaning_id:
            return error("cleaning_id is required", 400)

        return confirm_cleaning(
            cleaning_id,
            query_params.get("type"),
            query_params.get("token"),
        )

    except CleanStayError as e:
        return from_exception(e)
    except Exception as e:
        logger.exception("Confirmation handler error", error=str(e))
        return error("Internal server error", 500)


def confirm_cleaning(cleaning_id: str, confirm_type: str | None, token: str | None) -> dict:
    """Record a client or cleaner confirmation."""
    if confirm_type not in CONFIRM_TYPES:
        return error("type must be 'client' or 'cleaner'", 400)

    if not token or not verify_confirm_token(token, cleaning_id, confirm_type):
        return error("Invalid or expired confirmation link", 401, error_code="INVALID_TOKEN")

    tenant_id = get_default_tenant_id()
    if not tenant_id:
        raise ConfigurationError("DEFAULT_TENANT_ID")

    repo = CleaningRepository()
    cleaning = repo.get_by_id(tenant_id, cleaning_id)
    if not cleaning:
        return not_found("Cleaning", cleaning_id)

    field = f"{confirm_type}_confirmed_at"
    confirmed_at = getattr(cleaning, field)
    if confirmed_at:
        return success({
            "cleaning_id": cleaning_id,
            "type": confirm_type,
            "already_confirmed": True,
            "confirmed_at": confirmed_at.isoformat(),
        })

    now = utc_now()
    setattr(cleaning, field, now)
    repo.update(cleaning)

    CleaningEventRepository().log(
        tenant_id,
        cleaning_id,
        CleaningEventType.CONFIRMATION,
        data={"type": confirm_type},
    )

    logger.info("Cleaning confirmed", cleaning_id=cleaning_id, type=confirm_type)

    return success({
        "cleaning_id": cleaning_id,
        "type": confirm_type,
        "already_confirmed": False,
        "confirmed_at": now.isoformat(),
    })
