"""Fixed-window request limits for the public endpoints.

Counters live in the main table under ``RATELIMIT#<action>#<window>#<n>``
with the caller's identifier as sort key, and expire through the table TTL
one window after they stop counting.
"""

import os
import time
from typing import NamedTuple

import boto3
import structlog
from botocore.exceptions import ClientError

from cleanstay.utils.responses import error

logger = structlog.get_logger()

DEFAULT_REQUESTS_PER_MINUTE = 10
DEFAULT_REQUESTS_PER_HOUR = 100


class RateLimitResult(NamedTuple):
    allowed: bool
    requests_remaining: int
    retry_after: int | None


class _Window(NamedTuple):
    label: str
    seconds: int
    limit: int


def _get_table():
    return boto3.resource("dynamodb").Table(os.environ.get("TABLE_NAME", "cleanstay-dev"))


def _hit(table, action: str, identifier: str, window: _Window, now: int) -> int:
    """Count one request in the current window and return the new total."""
    bucket = now // window.seconds
    response = table.update_item(
        Key={"PK": f"RATELIMIT#{action}#{window.label}#{bucket}", "SK": identifier},
        UpdateExpression="SET #count = if_not_exists(#count, :zero) + :one, #ttl = :ttl",
        ExpressionAttributeNames={"#count": "count", "#ttl": "ttl"},
        ExpressionAttributeValues={":zero": 0, ":one": 1, ":ttl": now + 2 * window.seconds},
        ReturnValues="UPDATED_NEW",
    )
    return int(response["Attributes"]["count"])


def check_rate_limit(
    identifier: str,
    action: str,
    requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
    requests_per_hour: int = DEFAULT_REQUESTS_PER_HOUR,
) -> RateLimitResult:
    """Count a request against the minute and hour windows of ``action``.

    The hour window is only counted once the minute window admits the
    request. DynamoDB errors let the request through.

    Args:
        identifier: Caller key, usually the client IP.
        action: Endpoint bucket such as ``"chat"`` or ``"contact_form"``.
        requests_per_minute: Minute window limit.
        requests_per_hour: Hour window limit.

    Returns:
        RateLimitResult; ``retry_after`` is set when the request is refused.
    """
    table = _get_table()
    now = int(time.time())
    windows = (
        _Window("MIN", 60, requests_per_minute),
        _Window("HOUR", 3600, requests_per_hour),
    )

    remaining = []
    try:
        for window in windows:
            count = _hit(table, action, identifier, window, now)
            if count > window.limit:
                logger.warning(
                    "Rate limit exceeded",
                    window=window.label,
                    action=action,
                    identifier=identifier[:20],
                    count=count,
                    limit=window.limit,
                )
                return RateLimitResult(False, 0, window.seconds - now % window.seconds)
            remaining.append(window.limit - count)
    except ClientError as e:
        logger.error("Rate limiter unavailable", action=action, error=str(e))
        return RateLimitResult(True, -1, None)

    return RateLimitResult(True, min(remaining), None)


def get_client_ip(event: dict) -> str:
    """Originating client address, preferring CloudFront's X-Forwarded-For."""
    headers = event.get("headers") or {}
    forwarded = headers.get("X-Forwarded-For") or headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()

    identity = (event.get("requestContext") or {}).get("identity") or {}
    return identity.get("sourceIp", "unknown")


def rate_limit_response(retry_after: int) -> dict:
    """429 with a Retry-After header."""
    return error(
        "Too many requests. Please try again later.",
        429,
        "RATE_LIMITED",
        headers={"Retry-After": str(retry_after)},
    )
