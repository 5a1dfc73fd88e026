"""Tests for the client portal endpoints."""

import json

import pytest

from cleanstay.models.cleaning import Cleaning
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.property import PropertyRepository

CLIENT_ID = "test-client-456"


@pytest.fixture
def client_data(dynamodb_table, sample_property, sample_cleaning):
    PropertyRepository().create(sample_property)
    cleaning = CleaningRepository().create(sample_cleaning)
    CleaningEventRepository().log(
        cleaning.tenant_id, cleaning.id, "cleaning_scheduled", actor_id="test-admin-123"
    )
    return cleaning


def _call(api_gateway_event, path, path_params=None, user_id=CLIENT_ID, role="client", **kwargs):
    from api.portal import handler

    response = handler(
        api_gateway_event(path=path, path_params=path_params, user_id=user_id, role=role, **kwargs),
        None,
    )
    return response, json.loads(response["body"])


def test_lists_own_properties(client_data, api_gateway_event):
    response, body = _call(api_gateway_event, "/portal/properties")

    assert response["statusCode"] == 200
    assert [p["name"] for p in body["items"]] == ["Karlín 2+kk"]


def test_other_client_sees_nothing(client_data, api_gateway_event):
    _, body = _call(api_gateway_event, "/portal/properties", user_id="someone-else")

    assert body["items"] == []


def test_lists_own_cleanings(client_data, api_gateway_event):
    response, body = _call(api_gateway_event, "/portal/cleanings")

    assert response["statusCode"] == 200
    assert [c["id"] for c in body["items"]] == [client_data.id]


def test_cleaning_detail_with_timeline(client_data, api_gateway_event):
    response, body = _call(
        api_gateway_event,
        f"/portal/cleanings/{client_data.id}",
        path_params={"cleaning_id": client_data.id},
    )

    assert response["statusCode"] == 200
    assert body["price_czk"] == 1390
    assert [e["type"] for e in body["events"]] == ["cleaning_scheduled"]


def test_cleaning_of_another_client_forbidden(client_data, api_gateway_event):
    CleaningRepository().create(Cleaning(
        id="foreign-cleaning",
        tenant_id=client_data.tenant_id,
        property_id="other-property",
        client_id="someone-else",
        scheduled_date=client_data.scheduled_date,
    ))

    response, _ = _call(
        api_gateway_event,
        "/portal/cleanings/foreign-cleaning",
        path_params={"cleaning_id": "foreign-cleaning"},
    )

    assert response["statusCode"] == 403


def test_admin_may_view_any_cleaning(client_data, api_gateway_event):
    response, _ = _call(
        api_gateway_event,
        f"/portal/cleanings/{client_data.id}",
        path_params={"cleaning_id": client_data.id},
        user_id="test-admin-123",
        role="admin",
    )

    assert response["statusCode"] == 200


def test_tenantless_client_uses_default_tenant(client_data, api_gateway_event):
    response, _ = _call(
        api_gateway_event,
        f"/portal/cleanings/{client_data.id}",
        path_params={"cleaning_id": client_data.id},
        tenant_id="",
    )

    assert response["statusCode"] == 200


def test_unknown_cleaning(dynamodb_table, api_gateway_event):
    response, _ = _call(api_gateway_event, "/portal/cleanings/nope", path_params={"cleaning_id": "nope"})

    assert response["statusCode"] == 404


def test_cleaner_forbidden(dynamodb_table, api_gateway_event):
    response, _ = _call(api_gateway_event, "/portal/cleanings", role="cleaner")

    assert response["statusCode"] == 403


def test_write_not_allowed(dynamodb_table, api_gateway_event):
    response, _ = _call(api_gateway_event, "/portal/cleanings", method="POST", body={})

    assert response["statusCode"] == 405
