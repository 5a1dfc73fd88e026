"""API Gateway proxy responses.

JSON bodies carry the CORS headers of the public site. Error bodies share
one shape: ``{"error": true, "message", "error_code"?, "details"?}``.
"""

import json
import os
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel as PydanticBaseModel

ALLOWED_ORIGIN = os.environ.get("CORS_ALLOWED_ORIGIN", "https://cleanstay.cz")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": ALLOWED_ORIGIN,
    "Access-Control-Allow-Headers": "Content-Type,Authorization,X-Amz-Date,X-Api-Key,X-Amz-Security-Token",
    "Access-Control-Allow-Methods": "GET,POST,PUT,PATCH,DELETE,OPTIONS",
    "Access-Control-Allow-Credentials": "true",
    "Content-Type": "application/json",
}


def _default(value: Any) -> Any:
    """JSON encoder fallback for dates, Decimals and pydantic models."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, PydanticBaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def _respond(status_code: int, body: str, headers: dict[str, str]) -> dict:
    """Assemble a proxy integration response."""
    return {"statusCode": status_code, "headers": headers, "body": body}


def json_response(payload: Any, status_code: int = 200, headers: dict[str, str] | None = None) -> dict:
    """Serialize ``payload`` as UTF-8 JSON with CORS headers."""
    return _respond(
        status_code,
        json.dumps(payload, default=_default, ensure_ascii=False),
        {**CORS_HEADERS, **(headers or {})},
    )


def success(data: Any, status_code: int = 200) -> dict:
    """Create a success response.

    Args:
        data: Response payload
        status_code: HTTP status, 200 unless given

    Returns:
        API Gateway response dict
    """
    return json_response(data, status_code)


def created(data: Any) -> dict:
    """201 response carrying the new resource."""
    return json_response(data, 201)


def no_content() -> dict:
    """Empty 204 response."""
    return _respond(204, "", dict(CORS_HEADERS))


def paginated(items: list[Any], total: int, page: int = 1, page_size: int = 20) -> dict:
    """One page of a list with its position in the whole result."""
    total_pages = -(-total // page_size) if page_size > 0 else 0
    return json_response({
        "items": items,
        "pagination": {
            "total": total,
            "page": page,
            "page_size": page_size,
            "total_pages": total_pages,
        },
    })


def error(
    message: str,
    status_code: int = 500,
    error_code: str | None = None,
    details: dict | None = None,
    headers: dict[str, str] | None = None,
) -> dict:
    """Create an error response.

    Args:
        message: Human-readable message
        status_code: HTTP status
        error_code: Machine-readable code, omitted when empty
        details: Extra context, omitted when empty
        headers: Headers added to the CORS set

    Returns:
        API Gateway response dict
    """
    body: dict[str, Any] = {"error": True, "message": message}
    if error_code:
        body["error_code"] = error_code
    if details:
        body["details"] = details
    return json_response(body, status_code, headers)


def from_exception(exc: Any) -> dict:
    """Error response for a ``CleanStayError``."""
    return error(exc.message, exc.status_code, exc.error_code, exc.details or None)


def not_found(resource_type: str, resource_id: str) -> dict:
    """404 response naming the missing resource."""
    return error(
        f"{resource_type} with ID '{resource_id}' not found",
        404,
        "NOT_FOUND",
        {"resource_type": resource_type, "resource_id": resource_id},
    )


def forbidden(message: str = "You don't have permission to perform this action") -> dict:
    """403 response."""
    return error(message, 403, "FORBIDDEN")


def conflict(message: str = "Resource conflict") -> dict:
    """409 response."""
    return error(message, 409, "CONFLICT")


def html(body: str, status_code: int = 200, cache_seconds: int = 300) -> dict:
    """Rendered page, cacheable by CloudFront for ``cache_seconds``."""
    return _respond(status_code, body, {
        "Content-Type": "text/html; charset=utf-8",
        "Cache-Control": f"public, max-age={cache_seconds}",
    })


def text(body: str, status_code: int = 200) -> dict:
    """Plain-text response, used for webhook challenges."""
    return _respond(status_code, body, {"Content-Type": "text/plain; charset=utf-8"})


def redirect(location: str, status_code: int = 302) -> dict:
    """Redirect to ``location``."""
    return _respond(status_code, "", {"Location": location})
