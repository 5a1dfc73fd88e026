"""Admin properties API handler."""

import base64
import json
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from cleanstay.models.property import CreatePropertyRequest, Property, UpdatePropertyRequest
from cleanstay.repositories.cleaning import CleaningRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.utils.auth import STAFF_ROLES, get_auth_context, require_role, require_tenant
from cleanstay.utils.exceptions import CleanStayError, NotFoundError, ValidationError
from cleanstay.utils.feature_flags import Feature, requires_cleanstay
from cleanstay.utils.responses import created, error, from_exception, no_content, success
from cleanstay.utils.validation import field_errors, parse_body

logger = structlog.get_logger()

RECENT_CLEANINGS_LIMIT = 10
MAX_PAGE_SIZE = 100


@requires_cleanstay(Feature.ADMIN_API)
def handler(event: dict[str, Any], context: Any) -> dict:
    """Property CRUD for staff.

    Routes:
        GET    /admin/properties
        POST   /admin/properties
        GET    /admin/properties/{property_id}
        PUT    /admin/properties/{property_id}
        DELETE /admin/properties/{property_id}
    """
    try:
        http_method = event.get("httpMethod", "").upper()
        property_id = (event.get("pathParameters") or {}).get("property_id")

        auth = get_auth_context(event)
        require_role(auth, *STAFF_ROLES)
        tenant_id = require_tenant(auth)

        repo = PropertyRepository()

        if http_method == "GET" and property_id:
            return get_property(repo, tenant_id, property_id)
        if http_method == "GET":
            return list_properties(repo, tenant_id, event)
        if http_method == "POST" and not property_id:
            return create_property(repo, tenant_id, event)
        if http_method in ("PUT", "PATCH") and property_id:
            return update_property(repo, tenant_id, property_id, event)
        if http_method == "DELETE" and property_id:
            return delete_property(repo, tenant_id, property_id)
        return error("Method not allowed", 405)

    except CleanStayError as e:
        return from_exception(e)
    except ValueError as e:
        return error(str(e), 400)
    except Exception as e:
        logger.exception("Properties handler error", error=str(e))
        return error("Internal server error", 500)


def _encode_cursor(key: dict | None) -> str | None:
    return base64.b64encode(json.dumps(key).encode()).decode() if key else None


def _decode_cursor(cursor: str | None) -> dict | None:
    return json.loads(base64.b64decode(cursor).decode()) if cursor else None


def _load(repo: PropertyRepository, tenant_id: str, property_id: str) -> Property:
    prop = repo.get_by_id(tenant_id, property_id)
    if not prop:
        raise NotFoundError("Property", property_id)
    return prop


def list_properties(repo: PropertyRepository, tenant_id: str, event: dict) -> dict:
    """One page of the tenant's properties.

    Query params:
        limit: Page size (default 50, max 100)
        cursor: ``next_cursor`` of the previous page
    """
    query_params = event.get("queryStringParameters") or {}
    limit = max(1, min(int(query_params.get("limit", 50)), MAX_PAGE_SIZE))

    properties, next_key = repo.list_by_tenant(
        tenant_id, limit, _decode_cursor(query_params.get("cursor"))
    )

    return success({
        "success": True,
        "data": [p.model_dump(mode="json") for p in properties],
        "pagination": {"limit": limit, "next_cursor": _encode_cursor(next_key)},
    })


def get_property(repo: PropertyRepository, tenant_id: str, property_id: str) -> dict:
    """Property detail with its latest cleanings."""
    prop = _load(repo, tenant_id, property_id)
    cleanings = CleaningRepository().list_by_property(property_id, limit=RECENT_CLEANINGS_LIMIT)

    return success({
        "success": True,
        "data": {
            **prop.model_dump(mode="json"),
            "recent_cleanings": [c.model_dump(mode="json") for c in cleanings],
        },
    })


def create_property(repo: PropertyRepository, tenant_id: str, event: dict) -> dict:
    request = parse_body(event, CreatePropertyRequest)

    prop = repo.create(Property(tenant_id=tenant_id, **request.model_dump(exclude_none=True)))
    logger.info("Property created", property_id=prop.id, tenant_id=tenant_id)

    return created({"success": True, "data": prop.model_dump(mode="json")})


def update_property(
    repo: PropertyRepository,
    tenant_id: str,
    property_id: str,
    event: dict,
) -> dict:
    """Apply the fields present in the body; ``settings: null`` clears settings."""
    prop = _load(repo, tenant_id, property_id)
    changes = parse_body(event, UpdatePropertyRequest).model_dump(exclude_unset=True)

    try:
        for field, value in changes.items():
            setattr(prop, field, {} if field == "settings" and value is None else value)
    except PydanticValidationError as e:
        raise ValidationError(errors=field_errors(e)) from e

    prop = repo.update(prop)
    logger.info("Property updated", property_id=property_id, fields=sorted(changes))

    return success({"success": True, "data": prop.model_dump(mode="json")})


def delete_property(repo: PropertyRepository, tenant_id: str, property_id: str) -> dict:
    if not repo.delete(f"TENANT#{tenant_id}", f"PROPERTY#{property_id}"):
        raise NotFoundError("Property", property_id)

    logger.info("Property deleted", property_id=property_id, tenant_id=tenant_id)
    return no_content()
