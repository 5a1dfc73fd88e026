"""Service health check."""

import time
from datetime import datetime, timezone
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from cleanstay.config import (
    get_ai_config,
    get_email_config,
    get_settings,
    get_whatsapp_config,
    is_cleanstay_enabled,
)
from cleanstay.utils.responses import error, success

logger = structlog.get_logger()


def _check(ok: bool, ok_message: str, fail_message: str) -> dict[str, str]:
    return {"status": "ok" if ok else "fail", "message": ok_message if ok else fail_message}


def check_database(table_name: str) -> dict[str, str]:
    """Describe the table to confirm DynamoDB is reachable."""
    try:
        client = boto3.client("dynamodb")
        response = client.describe_table(TableName=table_name)
        table_status = response["Table"]["TableStatus"]
        return _check(
            table_status == "ACTIVE",
            "Database connection successful",
            f"Table status is {table_status}",
        )
    except (ClientError, BotoCoreError) as e:
        logger.error("Health database check failed", table_name=table_name, error=str(e))
        return {"status": "fail", "message": str(e)}


def get_version() -> str:
    sha = get_settings().git_sha
    return sha[:7] if sha else "unknown"


def handler(event: dict[str, Any], context: Any) -> dict:
    """Report database reachability and integration configuration.

    Routes:
        GET  /health
        HEAD /health
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        if http_method not in ("GET", "HEAD"):
            return error("Method not allowed", 405)

        started = time.monotonic()
        settings = get_settings()

        checks = {
            "database": check_database(settings.table_name),
            "feature_flags": _check(
                is_cleanstay_enabled(),
                "Feature flags OK",
                "CleanStay features disabled",
            ),
            "ai": _check(get_ai_config() is not None, "AI configured", "AI not configured"),
            "whatsapp": _check(
                get_whatsapp_config() is not None,
                "WhatsApp configured",
                "WhatsApp not configured",
            ),
            "email": _check(
                get_email_config() is not None,
                "Email configured",
                "Email not configured",
            ),
        }

        all_ok = all(check["status"] == "ok" for check in checks.values())
        database_ok = checks["database"]["status"] == "ok"

        body = {
            "status": "ok" if all_ok else "degraded",
            "version": get_version(),
            "environment": settings.stage,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "latency_ms": int((time.monotonic() - started) * 1000),
            "checks": checks,
        }

        if not all_ok:
            logger.warning(
                "Health check degraded",
                failed=[name for name, check in checks.items() if check["status"] != "ok"],
            )

        return success(body, status_code=200 if database_ok else 503)

    except Exception as e:
        logger.exception("Health handler error", error=str(e))
        return error("Internal server error", 500)
