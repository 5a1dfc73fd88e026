"""Tests for the API Gateway JWT authorizer."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

SECRET = "test-auth-secret"
METHOD_ARN = "arn:aws:execute-api:eu-central-1:123456789012:abc123/prod/GET/admin/leads"


def _token(secret=SECRET, expires_in=timedelta(hours=1), **claims):
    payload = {
        "sub": "user-1",
        "aud": "authenticated",
        "email": "jana@example.com",
        "exp": datetime.now(timezone.utc) + expires_in,
        **claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def _authorize(token, header="Authorization"):
    from authorizer.jwt_authorizer import handler

    event = {"methodArn": METHOD_ARN, "headers": {header: f"Bearer {token}"} if token else {}}
    return handler(event, None)


def _effect(policy):
    return policy["policyDocument"]["Statement"][0]["Effect"]


def test_allows_valid_token():
    policy = _authorize(_token(app_metadata={"role": "Manager", "tenant_id": "tenant-9"}))

    assert _effect(policy) == "Allow"
    assert policy["principalId"] == "user-1"
    assert policy["policyDocument"]["Statement"][0]["Resource"] == (
        "arn:aws:execute-api:eu-central-1:123456789012:abc123/prod/*"
    )
    assert policy["context"] == {
        "userId": "user-1",
        "email": "jana@example.com",
        "role": "manager",
        "tenantId": "tenant-9",
    }


def test_lowercase_header():
    assert _effect(_authorize(_token(), header="authorization")) == "Allow"


def test_token_authorizer_event():
    from authorizer.jwt_authorizer import handler

    policy = handler({"methodArn": METHOD_ARN, "authorizationToken": f"Bearer {_token()}"}, None)

    assert _effect(policy) == "Allow"


@pytest.mark.parametrize(
    "token",
    [
        None,
        "not-a-jwt",
        _token(secret="other-secret"),
        _token(expires_in=timedelta(seconds=-10)),
        _token(aud="anon"),
    ],
    ids=["missing", "garbage", "wrong-secret", "expired", "wrong-audience"],
)
def test_denies_bad_tokens(token):
    policy = _authorize(token)

    assert _effect(policy) == "Deny"
    assert policy["principalId"] == "unauthorized"
    assert policy["policyDocument"]["Statement"][0]["Resource"] == METHOD_ARN


def test_denies_without_secret(monkeypatch):
    monkeypatch.delenv("AUTH_JWT_SECRET")

    assert _effect(_authorize(_token())) == "Deny"


class TestBuildAuthContext:
    def test_defaults(self):
        from authorizer.jwt_authorizer import build_auth_context

        assert build_auth_context({"sub": "u-1"}) == {
            "userId": "u-1",
            "email": "",
            "role": "client",
            "tenantId": "",
        }

    def test_unknown_role_falls_back_to_client(self):
        from authorizer.jwt_authorizer import build_auth_context

        context = build_auth_context({"sub": "u-1", "app_metadata": {"role": "superuser"}})

        assert context["role"] == "client"
