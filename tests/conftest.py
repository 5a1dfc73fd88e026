"""Shared fixtures: moto table, mocked Bedrock and API Gateway events."""

import json
import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

TABLE_NAME = "cleanstay-test"
TENANT_ID = "test-tenant-001"
ADMIN_USER_ID = "test-admin-123"
CLIENT_USER_ID = "test-client-456"

# Handlers read these at import time
os.environ.update({
    "TABLE_NAME": TABLE_NAME,
    "STAGE": "test",
    "CLEANSTAY_ENABLED": "true",
    "DEFAULT_TENANT_ID": TENANT_ID,
    "AUTH_JWT_SECRET": "test-auth-secret",
    "CONFIRM_TOKEN_SECRET": "test-confirm-secret",
    "WHATSAPP_VERIFY_TOKEN": "test-verify-token",
    "WHATSAPP_APP_SECRET": "test-app-secret",
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SECURITY_TOKEN": "testing",
    "AWS_SESSION_TOKEN": "testing",
})
for _unset in ("WHATSAPP_API_TOKEN", "WHATSAPP_PHONE_NUMBER_ID", "SES_FROM_EMAIL", "GIT_SHA"):
    os.environ.pop(_unset, None)


def _index(name: str) -> dict:
    return {
        "IndexName": name,
        "KeySchema": [
            {"AttributeName": f"{name}PK", "KeyType": "HASH"},
            {"AttributeName": f"{name}SK", "KeyType": "RANGE"},
        ],
        "Projection": {"ProjectionType": "ALL"},
    }


@pytest.fixture
def dynamodb_table():
    """The single CleanStay table with GSI1 and GSI2, inside moto."""
    import boto3
    from moto import mock_aws

    key_attributes = ["PK", "SK", "GSI1PK", "GSI1SK", "GSI2PK", "GSI2SK"]

    with mock_aws():
        table = boto3.resource("dynamodb", region_name="us-east-1").create_table(
            TableName=TABLE_NAME,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": name, "AttributeType": "S"} for name in key_attributes
            ],
            GlobalSecondaryIndexes=[_index("GSI1"), _index("GSI2")],
            BillingMode="PAY_PER_REQUEST",
        )
        table.wait_until_exists()
        yield table


@pytest.fixture(autouse=True)
def mock_bedrock():
    """Bedrock runtime client that fails every call.

    Chat and parsing therefore take their fallback paths unless a test asks
    for a reply through ``model_reply``.
    """
    with patch("cleanstay.services.ai_service.bedrock") as client:
        client.invoke_model.side_effect = RuntimeError("Bedrock unavailable in tests")
        yield client


def bedrock_response(text: str, input_tokens: int = 100, output_tokens: int = 50) -> dict:
    payload = {
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
    }
    stream = MagicMock()
    stream.read.return_value = json.dumps(payload).encode()
    return {"body": stream}


@pytest.fixture
def model_reply(mock_bedrock):
    """``model_reply(text, input_tokens, output_tokens)`` makes Bedrock answer ``text``."""
    def _reply(text: str, input_tokens: int = 100, output_tokens: int = 50):
        mock_bedrock.invoke_model.side_effect = None
        mock_bedrock.invoke_model.return_value = bedrock_response(text, input_tokens, output_tokens)
        return mock_bedrock

    return _reply


def _encode_body(body):
    if body is None or isinstance(body, str):
        return body
    return json.dumps(body)


def _proxy_event(method, path, path_params, query_params, body, headers, request_context):
    return {
        "httpMethod": method,
        "path": path,
        "pathParameters": path_params or {},
        "queryStringParameters": query_params or {},
        "body": _encode_body(body),
        "headers": headers,
        "requestContext": request_context,
        "isBase64Encoded": False,
    }


@pytest.fixture
def api_gateway_event():
    """Factory for events that passed the JWT authorizer (admin by default)."""
    def _make(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body=None,
        user_id: str = ADMIN_USER_ID,
        role: str = "admin",
        tenant_id: str = TENANT_ID,
    ):
        return _proxy_event(
            method, path, path_params, query_params, body,
            {"Authorization": "Bearer test-token", "Content-Type": "application/json"},
            {
                "authorizer": {
                    "userId": user_id,
                    "email": "test@example.com",
                    "role": role,
                    "tenantId": tenant_id or "",
                },
                "identity": {"sourceIp": "203.0.113.10"},
            },
        )

    return _make


@pytest.fixture
def public_event():
    """Factory for anonymous website and webhook events."""
    def _make(
        method: str = "GET",
        path: str = "/",
        path_params: dict = None,
        query_params: dict = None,
        body=None,
        headers: dict = None,
        source_ip: str = "198.51.100.7",
    ):
        return _proxy_event(
            method, path, path_params, query_params, body,
            headers or {"Content-Type": "application/json"},
            {"identity": {"sourceIp": source_ip}},
        )

    return _make


@pytest.fixture
def sample_property():
    from cleanstay.models.property import Property, PropertyType

    return Property(
        id="test-property-001",
        tenant_id=TENANT_ID,
        client_id=CLIENT_USER_ID,
        name="Karlín 2+kk",
        address="Sokolovská 12, Praha 8",
        type=PropertyType.APARTMENT,
        size_sqm=52,
        layout="2+kk",
    )


@pytest.fixture
def sample_cleaning():
    """Scheduled two-hour cleaning of ``sample_property`` three days from now."""
    from cleanstay.models.cleaning import Cleaning, CleaningStatus

    start = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=3)
    return Cleaning(
        id="test-cleaning-001",
        tenant_id=TENANT_ID,
        property_id="test-property-001",
        client_id=CLIENT_USER_ID,
        status=CleaningStatus.SCHEDULED,
        scheduled_date=start,
        scheduled_end=start + timedelta(hours=2),
        price_czk=1390,
    )


@pytest.fixture
def lambda_context():
    return SimpleNamespace(
        function_name="cleanstay-test",
        memory_limit_in_mb=256,
        invoked_function_arn="arn:aws:lambda:us-east-1:123456789012:function:cleanstay-test",
        aws_request_id="test-request-id",
        get_remaining_time_in_millis=lambda: 30000,
    )
