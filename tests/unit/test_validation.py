"""Tests for request body parsing."""

import pytest

from cleanstay.models.property import CreatePropertyRequest
from cleanstay.utils.exceptions import ValidationError
from cleanstay.utils.responses import from_exception
from cleanstay.utils.validation import parse_body, parse_json_object, validate


def test_parse_body_returns_model():
    event = {"body": '{"name": "Byt", "address": "Praha", "type": "apartment", "client_id": "c-1"}'}

    request = parse_body(event, CreatePropertyRequest)

    assert request.name == "Byt"


def test_field_errors_are_collected():
    with pytest.raises(ValidationError) as exc_info:
        validate(CreatePropertyRequest, {"name": "Byt", "address": "Praha", "type": "castle", "client_id": "c"})

    assert [e["field"] for e in exc_info.value.errors] == ["type"]
    assert exc_info.value.status_code == 400


def test_invalid_json_is_a_validation_error():
    with pytest.raises(ValidationError) as exc_info:
        parse_body({"body": "{not json"}, CreatePropertyRequest)

    response = from_exception(exc_info.value)
    assert response["statusCode"] == 400
    assert "Invalid JSON body" in response["body"]


def test_raw_overrides_event_body():
    with pytest.raises(ValidationError):
        parse_body({"body": "{}"}, CreatePropertyRequest, raw="[]")


def test_array_body_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        parse_body({"body": "[]"}, CreatePropertyRequest)

    assert exc_info.value.message == "Request body must be a JSON object"


def test_parse_json_object():
    assert parse_json_object(None) == {}
    assert parse_json_object(b'{"a": 1}') == {"a": 1}
    with pytest.raises(ValidationError):
        parse_json_object("42")
