"""Tests for the admin GDPR data endpoints."""

import csv
import io
import json

import pytest

from cleanstay.models.base import utc_now
from cleanstay.models.conversation import ChatMessage, Conversation
from cleanstay.models.lead import Lead
from cleanstay.models.session import CleaningSession
from cleanstay.models.whatsapp_message import WhatsAppMessage
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.conversation import ConversationRepository, MessageRepository
from cleanstay.repositories.lead import LeadRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.repositories.session import CleaningSessionRepository
from cleanstay.repositories.whatsapp_message import WhatsAppMessageRepository

TENANT_ID = "test-tenant-001"
CLEANER = "420777111222"


@pytest.fixture
def chat_lead(dynamodb_table):
    conversation = ConversationRepository().create(Conversation(
        id="conv-1",
        tenant_id=TENANT_ID,
        session_id="sess-1",
        origin_url="https://cleanstay.cz/cenik",
        last_message_preview="Dobrý den, chci úklid",
    ))
    messages = MessageRepository()
    for i, text in enumerate(("Dobrý den, chci úklid", "Jsem Jana, jana@example.com")):
        messages.add(ChatMessage(
            id=f"msg-{i}",
            tenant_id=TENANT_ID,
            conversation_id=conversation.id,
            role="user",
            text=text,
        ))
    return LeadRepository().create(Lead(
        id="lead-1",
        tenant_id=TENANT_ID,
        conversation_id=conversation.id,
        name="Jana Nováková",
        email="jana@example.com",
        phone="+420 777 333 444",
        message="Úklid po nájemnících",
    ))


@pytest.fixture
def cleaner_reports(dynamodb_table):
    WhatsAppMessageRepository().create(WhatsAppMessage(
        tenant_id=TENANT_ID,
        wa_message_id="wamid.1",
        from_number=CLEANER,
        timestamp="1767261600",
        message_type="text",
        text="začínám Karlín",
    ))
    now = utc_now()
    session = CleaningSessionRepository().create(CleaningSession(
        tenant_id=TENANT_ID,
        property_id="test-property-001",
        cleaning_id="test-cleaning-001",
        cleaner_phone=CLEANER,
        started_at=now,
        expected_end_at=now,
    ))
    CleaningEventRepository().log(
        TENANT_ID, "test-cleaning-001", "note", data={"note": "Došlo mýdlo", "reported_by": CLEANER}
    )
    return session


@pytest.fixture
def client_data(dynamodb_table, sample_property, sample_cleaning):
    PropertyRepository().create(sample_property)
    sample_cleaning.client_feedback = "Paní Jana byla spokojená"
    CleaningRepository().create(sample_cleaning)
    CleaningEventRepository().log(TENANT_ID, sample_cleaning.id, "cleaning_scheduled")
    return sample_cleaning


def _call(api_gateway_event, **kwargs):
    from api.data import handler

    response = handler(api_gateway_event(**kwargs), None)
    return response, json.loads(response["body"])


def _delete(api_gateway_event, **body):
    return _call(api_gateway_event, method="POST", path="/admin/data/delete", body=body)


class TestExport:
    def test_complete_json_export(self, chat_lead, client_data, api_gateway_event):
        response, body = _call(api_gateway_event, path="/admin/data/export")

        assert response["statusCode"] == 200
        assert body["export_info"]["format"] == "complete_export"
        assert body["export_info"]["tenant_id"] == TENANT_ID
        assert [p["id"] for p in body["properties"]] == ["test-property-001"]
        assert [c["id"] for c in body["cleanings"]] == ["test-cleaning-001"]
        assert len(body["events"]) == 1
        assert [lead["email"] for lead in body["leads"]] == ["jana@example.com"]
        assert len(body["chat_messages"]) == 2

    def test_client_export_leaves_out_web_data(self, chat_lead, client_data, api_gateway_event):
        response, body = _call(
            api_gateway_event,
            path="/admin/data/export",
            query_params={"client_id": "test-client-456"},
        )

        assert body["export_info"]["format"] == "client_export"
        assert [c["id"] for c in body["cleanings"]] == ["test-cleaning-001"]
        assert body["leads"] == []
        assert body["chat_messages"] == []

    def test_csv_export(self, chat_lead, api_gateway_event):
        response, body = _call(
            api_gateway_event, path="/admin/data/export", query_params={"format": "csv"}
        )

        assert response["statusCode"] == 200
        assert body["count"] == 4
        assert body["filename"].startswith(f"cleanstay-export-{TENANT_ID}-")
        rows = list(csv.reader(io.StringIO(body["csv_data"])))
        assert rows[0] == ["Table", "Record_ID", "Data"]
        assert [row[0] for row in rows[1:]] == ["leads", "conversations", "chat_messages", "chat_messages"]
        assert json.loads(rows[1][2])["name"] == "Jana Nováková"

    def test_invalid_format(self, dynamodb_table, api_gateway_event):
        response, body = _call(
            api_gateway_event, path="/admin/data/export", query_params={"format": "xml"}
        )

        assert response["statusCode"] == 400
        assert body["message"] == "Invalid format. Use json or csv"

    @pytest.mark.parametrize("role", ["manager", "cleaner", "client"])
    def test_admin_only(self, dynamodb_table, api_gateway_event, role):
        response, _ = _call(api_gateway_event, path="/admin/data/export", role=role)

        assert response["statusCode"] == 403


class TestDelete:
    def test_confirmation_required(self, chat_lead, api_gateway_event):
        response, body = _delete(api_gateway_event, email="jana@example.com")

        assert response["statusCode"] == 400
        assert body["message"].startswith("Confirmation required")
        assert LeadRepository().get_by_id(TENANT_ID, "lead-1").name == "Jana Nováková"

    def test_subject_required(self, dynamodb_table, api_gateway_event):
        response, body = _delete(api_gateway_event, email="  ", confirm=True)

        assert response["statusCode"] == 400
        assert body["message"] == "email, phone or client_id is required"

    def test_unknown_subject(self, dynamodb_table, api_gateway_event):
        response, _ = _delete(api_gateway_event, email="nikdo@example.com", confirm=True)

        assert response["statusCode"] == 404

    def test_anonymizes_lead_and_transcript(self, chat_lead, api_gateway_event):
        response, body = _delete(api_gateway_event, email="Jana@Example.com", confirm=True)

        assert response["statusCode"] == 200
        assert body["success"] is True
        assert body["data"]["tables_affected"] == ["chat_messages", "conversations", "leads"]
        assert body["data"]["records_affected"] == 4

        lead = LeadRepository().get_by_id(TENANT_ID, "lead-1")
        assert lead.name == "Anonymized User"
        assert lead.email is None
        assert lead.phone is None
        assert lead.gdpr_erased is True
        texts = {m.text for m in MessageRepository().list_for_conversation("conv-1")}
        assert texts == {"[Anonymized]"}
        assert ConversationRepository().get_by_id(TENANT_ID, "conv-1").origin_url is None

    def test_repeat_request_conflicts(self, chat_lead, api_gateway_event):
        _delete(api_gateway_event, email="jana@example.com", confirm=True)

        response, body = _delete(api_gateway_event, email="jana@example.com", confirm=True)

        assert response["statusCode"] == 409
        assert body["error_code"] == "CONFLICT"

    def test_anonymizes_cleaner_phone(self, cleaner_reports, api_gateway_event):
        response, body = _delete(api_gateway_event, phone="+420 777 111 222", confirm=True)

        assert response["statusCode"] == 200
        assert body["data"]["tables_affected"] == ["events", "sessions", "whatsapp_messages"]

        message = WhatsAppMessageRepository().get_by_wa_id("wamid.1")
        assert message.from_number == "anonymized"
        assert message.text == "[Anonymized]"
        assert CleaningSessionRepository().get_by_id(TENANT_ID, cleaner_reports.id).cleaner_phone == "anonymized"
        event = CleaningEventRepository().list_for_cleaning("test-cleaning-001")[0]
        assert "reported_by" not in event.data
        assert event.data["note"] == "Došlo mýdlo"

    def test_anonymizes_client_feedback(self, client_data, api_gateway_event):
        response, body = _delete(api_gateway_event, client_id="test-client-456", confirm=True)

        assert response["statusCode"] == 200
        cleaning = CleaningRepository().get_by_id(TENANT_ID, "test-cleaning-001")
        assert cleaning.client_feedback == "[Anonymized]"

    def test_delete_mode_removes_records(self, chat_lead, client_data, api_gateway_event):
        response, body = _delete(
            api_gateway_event,
            email="jana@example.com",
            client_id="test-client-456",
            confirm=True,
            anonymize_only=False,
        )

        assert response["statusCode"] == 200
        assert body["data"]["anonymize_only"] is False
        assert LeadRepository().get_by_id(TENANT_ID, "lead-1") is None
        assert ConversationRepository().get_by_id(TENANT_ID, "conv-1") is None
        assert MessageRepository().list_for_conversation("conv-1") == []
        assert CleaningRepository().get_by_id(TENANT_ID, "test-cleaning-001") is None
        assert CleaningEventRepository().list_for_cleaning("test-cleaning-001") == []

        again, _ = _delete(api_gateway_event, email="jana@example.com", confirm=True, anonymize_only=False)
        assert again["statusCode"] == 409

    def test_invalid_json(self, dynamodb_table, api_gateway_event):
        response, _ = _call(api_gateway_event, method="POST", path="/admin/data/delete", body="[1]")

        assert response["statusCode"] == 400

    def test_get_not_allowed(self, dynamodb_table, api_gateway_event):
        response, _ = _call(api_gateway_event, path="/admin/data/delete")

        assert response["statusCode"] == 405
