"""Tests for the public chat widget endpoints."""

import json
from unittest.mock import patch

from cleanstay.repositories.conversation import ConversationRepository, MessageRepository
from cleanstay.repositories.lead import LeadRepository
from cleanstay.repositories.metrics import DailyMetricsRepository
from cleanstay.services.chatbot_content import fallback_reply
from cleanstay.services.metrics_service import today_str
from cleanstay.utils.rate_limiter import RateLimitResult

TENANT_ID = "test-tenant-001"


def _chat(public_event, text, session_id="session-abc", **extra):
    from api.public_chat import handler

    body = {"sessionId": session_id, "text": text, **extra}
    response = handler(public_event(method="POST", path="/public/chat", body=body), None)
    return response, json.loads(response["body"])


class TestWidgetConfig:
    def test_returns_config(self, public_event):
        from api.public_chat import handler

        response = handler(public_event(path="/public/chat/config"), None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["company"]["name"]
        assert "Ceník" in body["chips"]
        assert body["gdpr_sentence"]

    def test_wrong_method(self, public_event):
        from api.public_chat import handler

        response = handler(public_event(method="DELETE", path="/public/chat/config"), None)

        assert response["statusCode"] == 405


class TestChatMessage:
    def test_fallback_reply_when_model_unavailable(self, dynamodb_table, public_event):
        response, body = _chat(public_event, "Kolik stojí úklid 2+kk?")

        assert response["statusCode"] == 200
        assert body["intent"] == "price"
        assert body["confidence"] == 0.8
        assert body["fallback"] is True
        assert body["reply"] == fallback_reply("price")

        messages = MessageRepository().list_for_conversation(body["conversation_id"])
        assert [m.role for m in messages] == ["user", "assistant"]
        assert messages[0].unread is True
        assert messages[1].fallback is True

    def test_model_reply_records_usage(self, dynamodb_table, public_event, model_reply):
        mock_bedrock = model_reply("Dobrý den, úklid 2+kk vychází od 1 390 Kč.", 200, 40)

        response, body = _chat(
            public_event,
            "Kolik stojí úklid 2+kk?",
            metadata={"originUrl": "https://cleanstay.cz/cenik", "locale": "cs"},
        )

        assert response["statusCode"] == 200
        assert body["fallback"] is False
        assert body["reply"] == "Dobrý den, úklid 2+kk vychází od 1 390 Kč."

        request = json.loads(mock_bedrock.invoke_model.call_args.kwargs["body"])
        assert request["messages"] == [{"role": "user", "content": "Kolik stojí úklid 2+kk?"}]
        assert "CleanStay" in request["system"]

        conversation = ConversationRepository().get_by_id(TENANT_ID, body["conversation_id"])
        assert conversation.origin_url == "https://cleanstay.cz/cenik"
        assert conversation.message_count == 1

        usage = DailyMetricsRepository().get_for_date(TENANT_ID, today_str())
        assert usage.ai_tokens_in == 200
        assert usage.ai_tokens_out == 40

        assistant = MessageRepository().get_by_id(body["reply_id"])
        assert assistant.input_tokens == 200

    def test_session_continues_conversation(self, dynamodb_table, public_event, model_reply):
        mock_bedrock = model_reply("Rádi pomůžeme.")

        _, first = _chat(public_event, "Dobrý den")
        _, second = _chat(public_event, "Chci objednat úklid")

        assert first["conversation_id"] == second["conversation_id"]
        request = json.loads(mock_bedrock.invoke_model.call_args.kwargs["body"])
        assert [m["role"] for m in request["messages"]] == ["user", "assistant", "user"]
        assert request["messages"][-1]["content"] == "Chci objednat úklid"

    def test_ai_chat_disabled(self, dynamodb_table, public_event, mock_bedrock, monkeypatch):
        monkeypatch.setenv("AI_CHAT_ENABLED", "false")

        _, body = _chat(public_event, "Reklamace úklidu")

        assert body["fallback"] is True
        assert body["intent"] == "complaint"
        mock_bedrock.invoke_model.assert_not_called()

    def test_blank_text_rejected(self, dynamodb_table, public_event):
        response, body = _chat(public_event, "   ")

        assert response["statusCode"] == 400
        assert body["error_code"] == "VALIDATION_ERROR"

    def test_invalid_json(self, dynamodb_table, public_event):
        from api.public_chat import handler

        response = handler(public_event(method="POST", path="/public/chat", body="{nope"), None)

        assert response["statusCode"] == 400

    def test_rate_limited(self, dynamodb_table, public_event):
        with patch(
            "api.public_chat.check_rate_limit",
            return_value=RateLimitResult(allowed=False, requests_remaining=0, retry_after=42),
        ):
            response, _ = _chat(public_event, "Dobrý den")

        assert response["statusCode"] == 429
        assert response["headers"]["Retry-After"] == "42"

    def test_missing_default_tenant(self, dynamodb_table, public_event, monkeypatch):
        monkeypatch.delenv("DEFAULT_TENANT_ID")

        response, body = _chat(public_event, "Dobrý den")

        assert response["statusCode"] == 500
        assert body["error_code"] == "CONFIG_ERROR"


class TestCreateLead:
    def _post(self, public_event, body):
        from api.public_chat import handler

        response = handler(public_event(method="POST", path="/public/lead", body=body), None)
        return response, json.loads(response["body"])

    def test_requires_consent(self, dynamodb_table, public_event):
        response, body = self._post(
            public_event, {"sessionId": "s-1", "email": "jana@example.com", "consent": False}
        )

        assert response["statusCode"] == 400
        assert body["message"] == "GDPR consent required"

    def test_requires_contact(self, dynamodb_table, public_event):
        response, body = self._post(public_event, {"sessionId": "s-1", "consent": True, "name": "Jana"})

        assert response["statusCode"] == 400
        assert body["message"] == "Email or phone is required"

    def test_requires_session(self, dynamodb_table, public_event):
        response, _ = self._post(public_event, {"email": "jana@example.com", "consent": True})

        assert response["statusCode"] == 400

    def test_creates_lead_linked_to_session(self, dynamodb_table, public_event):
        _, chat = _chat(public_event, "Chci objednat úklid", session_id="s-42")

        with patch("api.public_chat.send_admin_whatsapp_alert") as alert:
            response, body = self._post(public_event, {
                "sessionId": "s-42",
                "name": "Jana",
                "email": "Jana@Example.com",
                "consent": True,
                "serviceType": "airbnb",
                "sizeM2": 48,
            })

        assert response["statusCode"] == 200
        assert body["ok"] is True

        lead = LeadRepository().get_by_id(TENANT_ID, body["lead_id"])
        assert lead.conversation_id == chat["conversation_id"]
        assert lead.email == "jana@example.com"
        assert lead.source == "chat"
        assert lead.size_m2 == 48

        assert LeadRepository().get_by_conversation(chat["conversation_id"]).id == lead.id
        alert.assert_called_once()
        assert alert.call_args.kwargs["conversation_id"] == chat["conversation_id"]
        assert alert.call_args.kwargs["preview"] == "Jana jana@example.com"

    def test_alert_links_lead_without_conversation(self, dynamodb_table, public_event):
        with patch("api.public_chat.send_admin_whatsapp_alert") as alert:
            response, body = self._post(
                public_event, {"sessionId": "s-no-chat", "phone": "+420777111222", "consent": True}
            )

        assert response["statusCode"] == 200
        lead = LeadRepository().get_by_id(TENANT_ID, body["lead_id"])
        assert lead.conversation_id is None
        assert alert.call_args.kwargs["conversation_id"] == body["lead_id"]

    def test_alert_failure_does_not_fail_request(self, dynamodb_table, public_event):
        response, _ = self._post(
            public_event, {"sessionId": "s-7", "phone": "+420777111222", "consent": True}
        )

        assert response["statusCode"] == 200


def test_unknown_path(public_event):
    from api.public_chat import handler

    assert handler(public_event(path="/public/nothing"), None)["statusCode"] == 404
