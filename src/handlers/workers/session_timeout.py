"""Cleaning session timeout Lambda.

Scheduled every 30 minutes. Closes WhatsApp cleaning sessions of the site
tenant that ran past their expected end without a "hotovo".
"""

from typing import Any

import structlog

from cleanstay.config import get_default_tenant_id, is_cleanstay_enabled
from cleanstay.services.sessions import auto_close_expired_sessions

logger = structlog.get_logger()


def handler(event: dict[str, Any], context: Any) -> dict:
    """Close expired sessions. Triggered by an EventBridge schedule."""
    if not is_cleanstay_enabled():
        logger.info("CleanStay disabled, skipping session timeout")
        return {"status": "skipped", "reason": "disabled"}

    tenant_id = get_default_tenant_id()
    if not tenant_id:
        logger.error("DEFAULT_TENANT_ID not configured")
        return {"status": "skipped", "reason": "no_tenant"}

    closed = auto_close_expired_sessions(tenant_id)

    logger.info("Session timeout completed", tenant_id=tenant_id, closed=closed)
    return {"status": "success", "closed": closed}
