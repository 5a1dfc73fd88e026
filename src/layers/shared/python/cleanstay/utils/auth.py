"""Caller identity and role checks for authenticated API routes."""

from dataclasses import dataclass
from typing import Any

import structlog

from cleanstay.utils.exceptions import ForbiddenError

logger = structlog.get_logger()

ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_CLEANER = "cleaner"
ROLE_CLIENT = "client"

VALID_ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_CLEANER, ROLE_CLIENT}
STAFF_ROLES = (ROLE_ADMIN, ROLE_MANAGER)


@dataclass
class AuthContext:
    """Caller identity as resolved by the JWT authorizer."""

    user_id: str
    email: str | None = None
    tenant_id: str | None = None
    role: str = ROLE_CLIENT

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def get_auth_context(event: dict[str, Any]) -> AuthContext:
    """Read the caller from the JWT authorizer context of a proxy event.

    HTTP API events nest the values under ``lambda``. Unknown roles are
    downgraded to ``client``.

    Raises:
        ValueError: The authorizer context carries no user ID.
    """
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    claims = authorizer.get("lambda", authorizer)

    user_id = claims.get("userId") or claims.get("sub")
    if not user_id:
        logger.warning("No user ID in auth context", authorizer_keys=sorted(authorizer))
        raise ValueError("No user ID in authentication context")

    role = (claims.get("role") or ROLE_CLIENT).lower()
    if role not in VALID_ROLES:
        logger.warning("Unknown role in auth context", user_id=user_id, role=role)
        role = ROLE_CLIENT

    return AuthContext(
        user_id=user_id,
        email=claims.get("email") or None,
        tenant_id=claims.get("tenantId") or None,
        role=role,
    )


def require_role(auth: AuthContext, *roles: str) -> None:
    """Raise ForbiddenError unless the caller has one of ``roles``."""
    if auth.role in roles:
        return
    logger.warning("Role check failed", user_id=auth.user_id, role=auth.role, required=list(roles))
    raise ForbiddenError(
        message="You don't have permission to perform this action",
        action="access",
    )


def require_tenant(auth: AuthContext) -> str:
    """The caller's tenant ID; ForbiddenError when the token has none."""
    if not auth.tenant_id:
        logger.warning("No tenant in auth context", user_id=auth.user_id)
        raise ForbiddenError(message="No tenant assigned to this account")
    return auth.tenant_id
