"""API Gateway Lambda authorizer for staff and client tokens.

Tokens are HS256 JWTs with audience ``authenticated``. The user's role and
tenant are read from the ``app_metadata`` claim and handed to the API
functions through the authorizer context.
"""

import os
from typing import Any

import jwt
import structlog

from cleanstay.utils.auth import ROLE_CLIENT, VALID_ROLES

logger = structlog.get_logger()

TOKEN_AUDIENCE = "authenticated"
BEARER_PREFIX = "Bearer "


class _Denied(Exception):
    pass


def handler(event: dict[str, Any], context: Any) -> dict:
    """Return an IAM policy for the request's bearer token."""
    try:
        context_values = _authorize(event)
    except _Denied as reason:
        logger.warning("Authorization denied", reason=str(reason))
        return _policy("Deny", _method_arn(event))
    except Exception:
        logger.exception("Authorizer error")
        return _policy("Deny", _method_arn(event))

    logger.info(
        "Authorization granted",
        user_id=context_values["userId"],
        role=context_values["role"],
    )
    return _policy("Allow", _stage_wildcard(_method_arn(event)), context_values)


def _authorize(event: dict) -> dict[str, str]:
    token = _bearer_token(event)
    if not token:
        raise _Denied("no token")

    secret = os.environ.get("AUTH_JWT_SECRET")
    if not secret:
        logger.error("AUTH_JWT_SECRET not configured")
        raise _Denied("no signing secret")

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=TOKEN_AUDIENCE,
            options={"require": ["exp", "sub"]},
        )
    except jwt.InvalidTokenError as e:
        raise _Denied(f"invalid token: {e}") from e

    context_values = build_auth_context(claims)
    if not context_values["userId"]:
        raise _Denied("empty subject")
    return context_values


def build_auth_context(claims: dict) -> dict[str, str]:
    """Authorizer context for verified claims.

    API Gateway forwards strings only, so absent values become ``""``.
    Unknown roles are treated as ``client``.
    """
    metadata = claims.get("app_metadata") or {}

    role = str(metadata.get("role") or ROLE_CLIENT).lower()
    if role not in VALID_ROLES:
        logger.warning("Unknown role in token", role=role)
        role = ROLE_CLIENT

    return {
        "userId": claims.get("sub") or "",
        "email": claims.get("email") or "",
        "role": role,
        "tenantId": metadata.get("tenant_id") or "",
    }


def _bearer_token(event: dict) -> str | None:
    # REQUEST authorizers pass headers, TOKEN authorizers pass authorizationToken
    headers = event.get("headers") or {}
    raw = headers.get("Authorization") or headers.get("authorization") or event.get("authorizationToken")
    if not raw:
        return None
    return raw[len(BEARER_PREFIX):] if raw.startswith(BEARER_PREFIX) else raw


def _method_arn(event: dict) -> str:
    return event.get("methodArn") or event.get("routeArn") or "*"


def _stage_wildcard(method_arn: str) -> str:
    """``arn:...:api-id/stage/*`` so the cached policy covers every route."""
    api_id, _, rest = method_arn.partition("/")
    stage = rest.split("/", 1)[0]
    return f"{api_id}/{stage}/*" if stage else "*"


def _policy(effect: str, resource: str, context_values: dict[str, str] | None = None) -> dict:
    policy: dict[str, Any] = {
        "principalId": (context_values or {}).get("userId") or "unauthorized",
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {"Action": "execute-api:Invoke", "Effect": effect, "Resource": resource},
            ],
        },
    }
    if context_values is not None:
        policy["context"] = context_values
    return policy
