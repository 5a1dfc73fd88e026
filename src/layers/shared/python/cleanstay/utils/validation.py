"""Request body parsing into pydantic request models."""

import json
from typing import Any, TypeVar

from pydantic import BaseModel as PydanticBaseModel, ValidationError as PydanticValidationError

from cleanstay.utils.exceptions import ValidationError

M = TypeVar("M", bound=PydanticBaseModel)


def field_errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    """``{"field", "message"}`` per pydantic error, nested locations dotted."""
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


def validate(model_class: type[M], data: Any) -> M:
    """Validate ``data`` or raise ``ValidationError`` with the field errors."""
    try:
        return model_class.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(errors=field_errors(e)) from e


def parse_json_object(text: str | bytes | None) -> dict[str, Any]:
    """Decode a JSON request body that must be an object.

    An empty body decodes as ``{}``. Malformed JSON and any top-level value
    other than an object raise ``ValidationError``.
    """
    try:
        data = json.loads(text or "{}")
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON body") from e
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_body(event: dict, model_class: type[M], raw: str | None = None) -> M:
    """Decode the JSON body of a proxy event into ``model_class``.

    ``raw`` overrides ``event["body"]`` for callers that decoded it already.
    An empty body validates as ``{}``.
    """
    text = raw if raw is not None else event.get("body")
    return validate(model_class, parse_json_object(text))
