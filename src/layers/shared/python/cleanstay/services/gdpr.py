"""GDPR data export and erasure for one tenant.

Erasure covers the personal data CleanStay holds: web leads with their chat
transcripts, cleaners' WhatsApp messages and sessions, and a client's
cleanings. Anonymizing keeps the records for the business history with the
personal fields overwritten; deleting removes them.
"""

import csv
import io
import json
import re
from typing import Any

import structlog

from cleanstay.models.base import BaseModel, utc_now
from cleanstay.models.gdpr import ErasureRecord, ErasureRequest
from cleanstay.repositories.base import BaseRepository
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.conversation import ConversationRepository, MessageRepository
from cleanstay.repositories.erasure import ErasureRecordRepository
from cleanstay.repositories.lead import LeadRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.repositories.session import CleaningSessionRepository
from cleanstay.repositories.whatsapp_message import WhatsAppMessageRepository
from cleanstay.utils.exceptions import ConflictError, NotFoundError

logger = structlog.get_logger()

EXPORT_VERSION = "1.0"
EXPORT_SECTIONS = (
    "properties",
    "cleanings",
    "events",
    "sessions",
    "leads",
    "conversations",
    "chat_messages",
    "whatsapp_messages",
)

ANONYMIZED_NAME = "Anonymized User"
ANONYMIZED_TEXT = "[Anonymized]"
ANONYMIZED_PHONE = "anonymized"


def _dump(entities: list[BaseModel]) -> list[dict[str, Any]]:
    return [entity.model_dump(mode="json") for entity in entities]


def digits(phone: str | None) -> str:
    """Phone number reduced to its digits, for comparing "+420 777..." with "420777..."."""
    return re.sub(r"\D", "", phone or "")


def export_tenant_data(tenant_id: str, client_id: str | None = None) -> dict[str, Any]:
    """Everything stored for a tenant, or only what concerns one client.

    Args:
        tenant_id: The tenant ID.
        client_id: Restrict the export to this client's properties,
            cleanings, their timelines and sessions.

    Returns:
        ``export_info`` plus one list per section in ``EXPORT_SECTIONS``.
    """
    cleaning_repo = CleaningRepository()
    event_repo = CleaningEventRepository()

    if client_id:
        properties = [p for p in PropertyRepository().list_by_client(client_id) if p.tenant_id == tenant_id]
        cleanings = [c for c in cleaning_repo.list_by_client(client_id) if c.tenant_id == tenant_id]
        property_ids = {p.id for p in properties}
        sessions = [
            s for s in CleaningSessionRepository().list_all(tenant_id) if s.property_id in property_ids
        ]
        leads, conversations, chat_messages, whatsapp_messages = [], [], [], []
    else:
        properties = PropertyRepository().list_all(tenant_id)
        cleanings = cleaning_repo.list_by_tenant(tenant_id)
        sessions = CleaningSessionRepository().list_all(tenant_id)
        leads = LeadRepository().list_all(tenant_id)
        conversations = ConversationRepository().list_all(tenant_id)
        message_repo = MessageRepository()
        chat_messages = [
            message
            for conversation in conversations
            for message in message_repo.list_for_conversation(conversation.id)
        ]
        whatsapp_messages = WhatsAppMessageRepository().list_all(tenant_id)

    events = [event for cleaning in cleanings for event in event_repo.list_for_cleaning(cleaning.id)]

    export = {
        "export_info": {
            "exported_at": utc_now().isoformat(),
            "tenant_id": tenant_id,
            "client_id": client_id,
            "format": "client_export" if client_id else "complete_export",
            "version": EXPORT_VERSION,
        },
        "properties": _dump(properties),
        "cleanings": _dump(cleanings),
        "events": _dump(events),
        "sessions": _dump(sessions),
        "leads": _dump(leads),
        "conversations": _dump(conversations),
        "chat_messages": _dump(chat_messages),
        "whatsapp_messages": _dump(whatsapp_messages),
    }

    logger.info(
        "Tenant data exported",
        tenant_id=tenant_id,
        client_id=client_id,
        counts={section: len(export[section]) for section in EXPORT_SECTIONS},
    )
    return export


def export_to_csv(export: dict[str, Any]) -> str:
    """Flatten an export into ``Table,Record_ID,Data`` rows, Data as JSON."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Table", "Record_ID", "Data"])
    for section in EXPORT_SECTIONS:
        for record in export.get(section, []):
            writer.writerow([section, record.get("id", ""), json.dumps(record, ensure_ascii=False)])
    return output.getvalue()


class _Erasure:
    """Collects what an erasure touched, per table."""

    def __init__(self, anonymize_only: bool):
        self.anonymize_only = anonymize_only
        self.affected: dict[str, int] = {}

    def count(self, table: str, n: int = 1) -> None:
        if n:
            self.affected[table] = self.affected.get(table, 0) + n

    def remove(self, repo: BaseRepository, entity: BaseModel, table: str) -> None:
        if repo.delete(entity.get_pk(), entity.get_sk()):
            self.count(table)

    def save(self, repo: BaseRepository, entity: BaseModel, table: str) -> None:
        repo.update(entity, check_version=False)
        self.count(table)


def _find_subject(tenant_id: str, request: ErasureRequest) -> dict[str, list]:
    phone = digits(request.phone)

    leads = [
        lead for lead in LeadRepository().list_all(tenant_id)
        if (request.email and lead.email == request.email)
        or (phone and lead.phone and digits(lead.phone) == phone)
    ]
    whatsapp_messages = [
        m for m in WhatsAppMessageRepository().list_all(tenant_id)
        if phone and digits(m.from_number) == phone
    ]
    sessions = [
        s for s in CleaningSessionRepository().list_all(tenant_id)
        if phone and digits(s.cleaner_phone) == phone
    ]
    cleanings = []
    if request.client_id:
        cleanings = [
            c for c in CleaningRepository().list_by_client(request.client_id) if c.tenant_id == tenant_id
        ]
    return {
        "leads": leads,
        "whatsapp_messages": whatsapp_messages,
        "sessions": sessions,
        "cleanings": cleanings,
    }


def _erase_leads(erasure: _Erasure, tenant_id: str, leads: list) -> None:
    lead_repo = LeadRepository()
    conversation_repo = ConversationRepository()
    message_repo = MessageRepository()

    for lead in leads:
        conversation = None
        if lead.conversation_id:
            conversation = conversation_repo.get_by_id(tenant_id, lead.conversation_id)

        messages = message_repo.list_for_conversation(lead.conversation_id) if conversation else []
        for message in messages:
            if erasure.anonymize_only:
                message.text = ANONYMIZED_TEXT
                erasure.save(message_repo, message, "chat_messages")
            else:
                erasure.remove(message_repo, message, "chat_messages")

        if conversation:
            if erasure.anonymize_only:
                conversation.last_message_preview = None
                conversation.origin_url = None
                erasure.save(conversation_repo, conversation, "conversations")
            else:
                erasure.remove(conversation_repo, conversation, "conversations")

        if not erasure.anonymize_only:
            erasure.remove(lead_repo, lead, "leads")
        elif not lead.gdpr_erased:
            lead.name = ANONYMIZED_NAME
            lead.email = None
            lead.phone = None
            lead.message = None
            lead.gdpr_erased = True
            erasure.save(lead_repo, lead, "leads")


def _erase_reports(erasure: _Erasure, phone: str, sessions: list) -> None:
    """Strip the cleaner's number from the timelines their sessions reported on."""
    event_repo = CleaningEventRepository()
    for cleaning_id in {s.cleaning_id for s in sessions}:
        for event in event_repo.list_for_cleaning(cleaning_id):
            if digits(event.data.get("reported_by")) == phone:
                event.data = {k: v for k, v in event.data.items() if k != "reported_by"}
                erasure.save(event_repo, event, "events")


def _erase_cleanings(erasure: _Erasure, client_id: str, cleanings: list) -> None:
    cleaning_repo = CleaningRepository()
    event_repo = CleaningEventRepository()

    for cleaning in cleanings:
        events = event_repo.list_for_cleaning(cleaning.id)
        if not erasure.anonymize_only:
            for event in events:
                erasure.remove(event_repo, event, "events")
            erasure.remove(cleaning_repo, cleaning, "cleanings")
            continue

        for event in events:
            if event.actor_id == client_id:
                event.actor_id = None
                if "note" in event.data:
                    event.data = {**event.data, "note": ANONYMIZED_TEXT}
                erasure.save(event_repo, event, "events")
        if cleaning.client_feedback:
            cleaning.client_feedback = ANONYMIZED_TEXT
            erasure.save(cleaning_repo, cleaning, "cleanings")


def erase_subject(
    tenant_id: str,
    request: ErasureRequest,
    erased_by: str | None = None,
) -> dict[str, Any]:
    """Anonymize or delete a data subject's records.

    Each identifier is remembered as a hash in an ``ErasureRecord``, so asking
    again for a subject whose data is gone is a conflict, not a miss.

    Args:
        tenant_id: The tenant ID.
        request: Subject identifiers and mode; ``confirm`` is checked by the caller.
        erased_by: Admin user ID, kept on the erasure record.

    Returns:
        ``records_affected`` and ``tables_affected`` with the request echo.

    Raises:
        NotFoundError: Nothing is stored for the subject.
        ConflictError: Anonymization requested for a subject already anonymized.
    """
    found = _find_subject(tenant_id, request)
    subject_id = request.client_id or request.email or request.phone or ""

    personal = found["leads"] + found["whatsapp_messages"] + found["sessions"]
    subject_hashes = request.subject_hashes()
    records = ErasureRecordRepository()

    if request.anonymize_only:
        nothing_left = not found["cleanings"] and all(record.gdpr_erased for record in personal)
    else:
        nothing_left = not any(found.values())

    if nothing_left:
        if personal or records.any_erased(tenant_id, subject_hashes):
            raise ConflictError(
                "Subject data has already been anonymized", conflict_type="already_anonymized"
            )
        raise NotFoundError("Data subject", subject_id, message="No data found for this subject")

    erasure = _Erasure(request.anonymize_only)
    phone = digits(request.phone)

    _erase_leads(erasure, tenant_id, found["leads"])

    wa_repo = WhatsAppMessageRepository()
    for message in found["whatsapp_messages"]:
        if not request.anonymize_only:
            erasure.remove(wa_repo, message, "whatsapp_messages")
        elif not message.gdpr_erased:
            message.text = ANONYMIZED_TEXT if message.text else None
            message.caption = None
            message.parsed_payload = None
            message.from_number = ANONYMIZED_PHONE
            message.gdpr_erased = True
            erasure.save(wa_repo, message, "whatsapp_messages")

    if phone:
        _erase_reports(erasure, phone, found["sessions"])

    session_repo = CleaningSessionRepository()
    for session in found["sessions"]:
        if not request.anonymize_only:
            erasure.remove(session_repo, session, "sessions")
        elif not session.gdpr_erased:
            session.cleaner_phone = ANONYMIZED_PHONE
            session.gdpr_erased = True
            erasure.save(session_repo, session, "sessions")

    if request.client_id:
        _erase_cleanings(erasure, request.client_id, found["cleanings"])

    result = {
        "anonymize_only": request.anonymize_only,
        "reason": request.reason,
        "records_affected": sum(erasure.affected.values()),
        "tables_affected": sorted(erasure.affected),
        "anonymized_at": utc_now().isoformat(),
    }

    for subject_hash in subject_hashes:
        records.put(ErasureRecord(
            tenant_id=tenant_id,
            subject_hash=subject_hash,
            anonymize_only=request.anonymize_only,
            reason=request.reason,
            erased_by=erased_by,
            records_affected=result["records_affected"],
            tables_affected=result["tables_affected"],
        ))

    logger.info(
        "Data subject erased",
        tenant_id=tenant_id,
        client_id=request.client_id,
        anonymize_only=request.anonymize_only,
        reason=request.reason,
        affected=erasure.affected,
    )
    return result
