"""Tests for the admin properties endpoints."""

import json
from datetime import datetime, timezone

import pytest

from cleanstay.models.cleaning import Cleaning
from cleanstay.repositories.cleaning import CleaningRepository
from cleanstay.repositories.property import PropertyRepository

TENANT_ID = "test-tenant-001"


@pytest.fixture
def stored_property(dynamodb_table, sample_property):
    return PropertyRepository().create(sample_property)


def _call(api_gateway_event, **kwargs):
    from api.properties import handler

    response = handler(api_gateway_event(**kwargs), None)
    body = json.loads(response["body"]) if response["body"] else None
    return response, body


def _item(api_gateway_event, method, property_id="test-property-001", body=None):
    return _call(
        api_gateway_event,
        method=method,
        path=f"/admin/properties/{property_id}",
        path_params={"property_id": property_id},
        body=body,
    )


class TestCreateProperty:
    def test_create(self, dynamodb_table, api_gateway_event):
        response, body = _call(
            api_gateway_event,
            method="POST",
            path="/admin/properties",
            body={
                "name": "Vinohrady 3+1",
                "address": "Mánesova 5, Praha 2",
                "type": "apartment",
                "client_id": "test-client-456",
                "size_sqm": 78,
                "cleaning_supplies": "ours",
            },
        )

        assert response["statusCode"] == 201
        data = body["data"]
        assert data["tenant_id"] == TENANT_ID
        assert data["cleaning_supplies"] == "ours"
        assert data["settings"] == {}

        stored = PropertyRepository().get_by_id(TENANT_ID, data["id"])
        assert stored.name == "Vinohrady 3+1"
        assert [p.id for p in PropertyRepository().list_by_client("test-client-456")] == [data["id"]]

    def test_validation(self, dynamodb_table, api_gateway_event):
        response, body = _call(
            api_gateway_event,
            method="POST",
            path="/admin/properties",
            body={"name": "Byt", "address": "Praha", "type": "castle", "client_id": "c"},
        )

        assert response["statusCode"] == 400
        assert body["details"]["errors"][0]["field"] == "type"

    def test_requires_tenant(self, dynamodb_table, api_gateway_event):
        response, _ = _call(
            api_gateway_event, method="POST", path="/admin/properties", body={}, tenant_id=""
        )

        assert response["statusCode"] == 403


class TestReadProperty:
    def test_list(self, stored_property, api_gateway_event):
        response, body = _call(api_gateway_event, path="/admin/properties")

        assert response["statusCode"] == 200
        assert [p["id"] for p in body["data"]] == [stored_property.id]
        assert body["pagination"]["next_cursor"] is None

    @pytest.mark.parametrize("limit", ["0", "-1"])
    def test_list_non_positive_limit(self, stored_property, api_gateway_event, limit):
        response, body = _call(api_gateway_event, path="/admin/properties", query_params={"limit": limit})

        assert response["statusCode"] == 200
        assert body["pagination"]["limit"] == 1
        assert [p["id"] for p in body["data"]] == [stored_property.id]

    def test_get_with_recent_cleanings(self, stored_property, api_gateway_event):
        CleaningRepository().create(Cleaning(
            tenant_id=TENANT_ID,
            property_id=stored_property.id,
            scheduled_date=datetime(2026, 3, 10, 9, tzinfo=timezone.utc),
        ))

        response, body = _item(api_gateway_event, "GET")

        assert response["statusCode"] == 200
        assert body["data"]["name"] == "Karlín 2+kk"
        assert len(body["data"]["recent_cleanings"]) == 1

    def test_get_missing(self, dynamodb_table, api_gateway_event):
        response, body = _item(api_gateway_event, "GET", property_id="nope")

        assert response["statusCode"] == 404
        assert body["details"]["resource_id"] == "nope"


class TestUpdateProperty:
    def test_partial_update(self, stored_property, api_gateway_event):
        response, body = _item(
            api_gateway_event, "PUT", body={"pets": "kočka", "size_sqm": 55}
        )

        assert response["statusCode"] == 200
        assert body["data"]["pets"] == "kočka"
        assert body["data"]["size_sqm"] == 55
        assert body["data"]["name"] == "Karlín 2+kk"
        assert body["data"]["version"] == 2

    def test_null_required_field_rejected(self, stored_property, api_gateway_event):
        response, body = _item(api_gateway_event, "PATCH", body={"name": None})

        assert response["statusCode"] == 400
        assert body["error_code"] == "VALIDATION_ERROR"

    def test_update_missing(self, dynamodb_table, api_gateway_event):
        response, _ = _item(api_gateway_event, "PUT", property_id="nope", body={"pets": "pes"})

        assert response["statusCode"] == 404


class TestDeleteProperty:
    def test_delete(self, stored_property, api_gateway_event):
        response, _ = _item(api_gateway_event, "DELETE")

        assert response["statusCode"] == 204
        assert PropertyRepository().get_by_id(TENANT_ID, stored_property.id) is None

    def test_delete_missing(self, dynamodb_table, api_gateway_event):
        response, _ = _item(api_gateway_event, "DELETE", property_id="nope")

        assert response["statusCode"] == 404


def test_managers_allowed_clients_forbidden(stored_property, api_gateway_event):
    assert _call(api_gateway_event, path="/admin/properties", role="manager")[0]["statusCode"] == 200
    assert _call(api_gateway_event, path="/admin/properties", role="client")[0]["statusCode"] == 403
