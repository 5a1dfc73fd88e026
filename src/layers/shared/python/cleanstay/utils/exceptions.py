"""Errors that map onto API error responses.

Each class fixes the HTTP status and machine-readable code; handlers turn
any ``CleanStayError`` into a response with ``responses.from_exception``.
"""


class CleanStayError(Exception):
    """Base class. ``details`` ends up in the response body when non-empty."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": True, "error_code": self.error_code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(CleanStayError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource_type: str, resource_id: str, message: str | None = None):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            message or f"{resource_type} with ID '{resource_id}' not found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ValidationError(CleanStayError):
    """Bad input; ``errors`` holds ``{"field", "message"}`` entries."""

    status_code = 400
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message, details={"errors": self.errors})


class ForbiddenError(CleanStayError):
    status_code = 403
    error_code = "FORBIDDEN"

    def __init__(
        self,
        message: str = "You don't have permission to perform this action",
        resource_type: str | None = None,
        action: str | None = None,
    ):
        details = {"resource_type": resource_type, "action": action}
        super().__init__(message, details={k: v for k, v in details.items() if v})


class ConflictError(CleanStayError):
    """Duplicate key or a stale version on update."""

    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, message: str = "Resource conflict", conflict_type: str | None = None):
        super().__init__(message, details={"conflict_type": conflict_type} if conflict_type else None)


class FeatureDisabledError(CleanStayError):
    status_code = 503
    error_code = "FEATURE_DISABLED"

    def __init__(self, feature: str = "CleanStay"):
        super().__init__(f"{feature} feature is disabled")


class ConfigurationError(CleanStayError):
    """A required environment setting is missing."""

    error_code = "CONFIG_ERROR"

    def __init__(self, setting: str):
        super().__init__(f"{setting} is not configured", details={"setting": setting})
