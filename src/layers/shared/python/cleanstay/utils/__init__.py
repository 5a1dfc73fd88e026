"""Request plumbing shared by the Lambda handlers."""

from cleanstay.utils.auth import AuthContext, get_auth_context, require_role, require_tenant
from cleanstay.utils.exceptions import (
    CleanStayError,
    ConfigurationError,
    ConflictError,
    FeatureDisabledError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "AuthContext",
    "get_auth_context",
    "require_role",
    "require_tenant",
    "CleanStayError",
    "ConfigurationError",
    "ConflictError",
    "FeatureDisabledError",
    "ForbiddenError",
    "NotFoundError",
    "ValidationError",
]
