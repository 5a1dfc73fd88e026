"""Tests for the AI message parsing endpoint."""

import json

from cleanstay.repositories.metrics import DailyMetricsRepository
from cleanstay.services.metrics_service import today_str


def _parse(api_gateway_event, body, **kwargs):
    from api.ai import handler

    response = handler(api_gateway_event(method="POST", path="/ai/parse", body=body, **kwargs), None)
    return response, json.loads(response["body"])


class TestParseEndpoint:
    def test_parses_with_model(self, dynamodb_table, api_gateway_event, model_reply):
        model_reply(json.dumps({
            "type": "done",
            "property_hint": "Karlín 2+kk",
            "payload": {"rooms_done": 2},
            "language": "cs",
            "confidence": 0.95,
        }), 300, 60)

        response, body = _parse(api_gateway_event, {"text": "Hotovo v Karlíně", "locale": "cs"})

        assert response["statusCode"] == 200
        assert body["type"] == "done"
        assert body["actionable"] is True
        assert body["priority"] == "medium"
        assert body["property"] == "Karlín 2+kk"

        usage = DailyMetricsRepository().get_for_date("test-tenant-001", today_str())
        assert usage.ai_tokens_in == 300

    def test_fallback_when_model_fails(self, dynamodb_table, api_gateway_event):
        response, body = _parse(api_gateway_event, {"text": "Došel prostředek"})

        assert response["statusCode"] == 200
        assert body["type"] == "note"
        assert body["confidence"] == 0.3
        assert body["language"] == "en"
        assert body["actionable"] is False
        assert body["priority"] == "low"
        assert body["property"] is None

    def test_text_required(self, dynamodb_table, api_gateway_event):
        response, body = _parse(api_gateway_event, {"locale": "cs"})

        assert response["statusCode"] == 400
        assert body["message"] == "Text is required"

    def test_non_string_text(self, dynamodb_table, api_gateway_event):
        response, _ = _parse(api_gateway_event, {"text": 42})

        assert response["statusCode"] == 400

    def test_invalid_json(self, dynamodb_table, api_gateway_event):
        response, _ = _parse(api_gateway_event, "{broken")

        assert response["statusCode"] == 400

    def test_staff_only(self, dynamodb_table, api_gateway_event):
        response, body = _parse(api_gateway_event, {"text": "Hotovo"}, role="client")

        assert response["statusCode"] == 403
        assert body["error_code"] == "FORBIDDEN"

    def test_unauthenticated(self, dynamodb_table, api_gateway_event):
        response, _ = _parse(api_gateway_event, {"text": "Hotovo"}, user_id="")

        assert response["statusCode"] == 400

    def test_disabled_feature(self, api_gateway_event, monkeypatch, mock_bedrock):
        monkeypatch.setenv("CLEANSTAY_ENABLED", "false")

        response, body = _parse(api_gateway_event, {"text": "Hotovo"})

        assert response["statusCode"] == 503
        assert body["error_code"] == "FEATURE_DISABLED"
        mock_bedrock.invoke_model.assert_not_called()

    def test_get_not_allowed(self, api_gateway_event):
        from api.ai import handler

        assert handler(api_gateway_event(method="GET", path="/ai/parse"), None)["statusCode"] == 405
