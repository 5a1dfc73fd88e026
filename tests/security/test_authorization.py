"""Security tests for authorization and access control.

These tests verify that:
- Staff cannot reach data of another tenant
- Tenant ID cannot be forged via request body
- Clients only see their own cleanings in the portal
- Admin endpoints reject non-staff roles
"""

import json

import pytest

from cleanstay.models.cleaning import Cleaning
from cleanstay.models.property import Property, PropertyType
from cleanstay.repositories.cleaning import CleaningRepository
from cleanstay.repositories.property import PropertyRepository

OTHER_TENANT = "tenant-B"


@pytest.fixture
def foreign_data(dynamodb_table, sample_cleaning):
    PropertyRepository().create(Property(
        id="foreign-property",
        tenant_id=OTHER_TENANT,
        client_id="foreign-client",
        name="Cizí byt",
        address="Brno",
        type=PropertyType.APARTMENT,
    ))
    CleaningRepository().create(Cleaning(
        id="foreign-cleaning",
        tenant_id=OTHER_TENANT,
        property_id="foreign-property",
        client_id="foreign-client",
        scheduled_date=sample_cleaning.scheduled_date,
    ))


class TestTenantIsolation:
    def test_property_of_other_tenant_not_found(self, foreign_data, api_gateway_event):
        from api.properties import handler

        response = handler(api_gateway_event(
            path="/admin/properties/foreign-property",
            path_params={"property_id": "foreign-property"},
        ), None)

        assert response["statusCode"] == 404

    def test_cannot_delete_other_tenant_property(self, foreign_data, api_gateway_event):
        from api.properties import handler

        response = handler(api_gateway_event(
            method="DELETE",
            path="/admin/properties/foreign-property",
            path_params={"property_id": "foreign-property"},
        ), None)

        assert response["statusCode"] == 404
        assert PropertyRepository().get_by_id(OTHER_TENANT, "foreign-property") is not None

    def test_cleaning_of_other_tenant_not_found(self, foreign_data, api_gateway_event):
        from api.cleanings import handler

        response = handler(api_gateway_event(
            method="PATCH",
            path="/admin/cleanings/foreign-cleaning/status",
            path_params={"cleaning_id": "foreign-cleaning"},
            body={"status": "cancelled"},
        ), None)

        assert response["statusCode"] == 404
        assert CleaningRepository().get_by_id(OTHER_TENANT, "foreign-cleaning").status == "scheduled"

    def test_list_only_shows_own_tenant(self, foreign_data, api_gateway_event):
        from api.properties import handler

        response = handler(api_gateway_event(path="/admin/properties"), None)

        assert json.loads(response["body"])["data"] == []

    def test_body_tenant_id_is_ignored(self, dynamodb_table, api_gateway_event):
        from api.properties import handler

        response = handler(api_gateway_event(
            method="POST",
            path="/admin/properties",
            body={
                "name": "Byt",
                "address": "Praha",
                "type": "apartment",
                "client_id": "c-1",
                "tenant_id": OTHER_TENANT,
            },
        ), None)

        assert response["statusCode"] == 201
        assert json.loads(response["body"])["data"]["tenant_id"] == "test-tenant-001"


class TestPortalAccess:
    def test_client_cannot_read_foreign_cleaning(self, dynamodb_table, api_gateway_event, sample_cleaning):
        from api.portal import handler

        CleaningRepository().create(sample_cleaning)

        response = handler(api_gateway_event(
            path=f"/portal/cleanings/{sample_cleaning.id}",
            path_params={"cleaning_id": sample_cleaning.id},
            user_id="intruder",
            role="client",
        ), None)

        assert response["statusCode"] == 403
        body = json.loads(response["body"])
        assert body["error"] is True
        assert "access" in body["message"].lower()


@pytest.mark.parametrize(
    "module,path",
    [
        ("api.properties", "/admin/properties"),
        ("api.cleanings", "/admin/cleanings"),
        ("api.leads", "/admin/leads"),
        ("api.messages", "/admin/messages"),
        ("api.metrics", "/admin/metrics/summary"),
        ("api.data", "/admin/data/export"),
    ],
)
@pytest.mark.parametrize("role", ["client", "cleaner"])
def test_admin_endpoints_require_staff(dynamodb_table, api_gateway_event, module, path, role):
    import importlib

    handler = importlib.import_module(module).handler

    response = handler(api_gateway_event(path=path, role=role), None)

    assert response["statusCode"] == 403
    assert json.loads(response["body"])["error_code"] == "FORBIDDEN"


def test_missing_user_rejected(dynamodb_table, api_gateway_event):
    from api.properties import handler

    response = handler(api_gateway_event(path="/admin/properties", user_id=""), None)

    assert response["statusCode"] == 400
