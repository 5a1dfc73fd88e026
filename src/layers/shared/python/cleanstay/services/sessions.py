"""Cleaning sessions driven by cleaners' WhatsApp reports.

A cleaner opens a session with "začínám <byt>", reports supplies, linen,
photos and notes while on site, and closes it with "hotovo". Every session
runs one Cleaning: opening starts it, finishing completes it, and each report
lands on its timeline. When a report is ambiguous the cleaner gets a question
back instead of a guess.
"""

from datetime import datetime, timedelta
from typing import Any

import pytz
import structlog
from pydantic import BaseModel, Field

from cleanstay.models.base import utc_now
from cleanstay.models.cleaning import Cleaning, CleaningEvent, CleaningEventType, CleaningStatus
from cleanstay.models.property import Property
from cleanstay.models.session import SESSION_LENGTH, CleaningSession, CloseReason, SessionStatus
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.repositories.session import CleaningSessionRepository
from cleanstay.services.message_parser import ParsedMessage, ParsedMessageType
from cleanstay.services.whatsapp_service import mask_phone

logger = structlog.get_logger()

LOCAL_TZ = pytz.timezone("Europe/Prague")

ASK_WHICH_PROPERTY = 'U kterého bytu jsi? Napiš "Začínám úklid ..."'
ASK_WHICH_TO_CLOSE = "U kterého bytu ukončuješ?"
ASK_CLOSE_PREVIOUS = "Mám ukončit předchozí ({name}) a pokračovat tady?"
ASK_PROPERTY_NOT_FOUND = "Byt '{hint}' nenalezen"
ASK_WHICH_OF = "Myslíš {names}?"
ASK_RETRY = "Něco se pokazilo. Můžete to zopakovat?"

UNKNOWN_PROPERTY_NAME = "neznámý byt"
UNSCHEDULED_NOTE = "Nenaplánovaný úklid nahlášený přes WhatsApp"
TIMEOUT_NOTE = "Úklid nebyl ukončen, relace vypršela"

REPORT_EVENT_TYPES = {
    ParsedMessageType.SUPPLY_OUT: CleaningEventType.SUPPLY_OUT,
    ParsedMessageType.LINEN_USED: CleaningEventType.LINEN_USED,
    ParsedMessageType.PHOTO_META: CleaningEventType.PHOTO,
    ParsedMessageType.NOTE: CleaningEventType.NOTE,
}


class SessionPrompt(Exception):
    """The cleaner has to answer ``ask`` before the report can be recorded."""

    def __init__(self, ask: str):
        super().__init__(ask)
        self.ask = ask


class SessionOutcome(BaseModel):
    """What a report did: the session it touched, or the question to send back."""

    session_id: str | None = None
    cleaning_id: str | None = None
    event_id: str | None = None
    closed: bool = False
    ask: str | None = Field(None, description="Reply the cleaner should answer")


def event_note(parsed: ParsedMessage) -> str:
    """Czech timeline note for a parsed report."""
    payload = parsed.payload or {}
    if parsed.type == ParsedMessageType.START_CLEANING:
        return "Začátek úklidu" + (f" - {parsed.property_hint}" if parsed.property_hint else "")
    if parsed.type == ParsedMessageType.SUPPLY_OUT:
        items = payload.get("items")
        if isinstance(items, list) and items:
            return "Došly zásoby: " + ", ".join(str(item) for item in items)
        return "Došly zásoby: neznámé"
    if parsed.type == ParsedMessageType.LINEN_USED:
        return f"Ložní prádlo: {payload.get('changed') or 0} vyměněno, {payload.get('dirty') or 0} špinavých"
    if parsed.type == ParsedMessageType.DONE:
        return "Úklid dokončen"
    if parsed.type == ParsedMessageType.PHOTO_META:
        return f"Foto: {payload.get('description') or 'bez popisu'}"
    return str(payload.get("text") or payload.get("raw_text") or "Poznámka")


def event_payload(parsed: ParsedMessage) -> dict[str, Any]:
    """Structured part of a report kept next to the note."""
    payload = parsed.payload or {}
    if parsed.type == ParsedMessageType.SUPPLY_OUT and payload.get("items"):
        return {"supply_out": payload}
    if parsed.type == ParsedMessageType.LINEN_USED and payload.get("changed"):
        return {"linen_used": payload.get("changed")}
    if parsed.type == ParsedMessageType.PHOTO_META:
        return {k: payload[k] for k in ("url", "media_id") if payload.get(k)}
    return {}


def find_property(tenant_id: str, hint: str) -> Property:
    """Resolve a cleaner's property hint by case-insensitive name match.

    An exact name wins over substring matches.

    Raises:
        SessionPrompt: No property or more than one property matches.
    """
    needle = hint.strip().casefold()
    candidates = [
        p for p in PropertyRepository().list_all(tenant_id) if needle in p.name.casefold()
    ]
    exact = [p for p in candidates if p.name.casefold() == needle]
    if len(exact) == 1:
        return exact[0]
    if not candidates:
        raise SessionPrompt(ASK_PROPERTY_NOT_FOUND.format(hint=hint))
    if len(candidates) > 1:
        raise SessionPrompt(ASK_WHICH_OF.format(names=", ".join(sorted(p.name for p in candidates))))
    return candidates[0]


def _local_day_bounds(moment: datetime) -> tuple[datetime, datetime]:
    day = moment.astimezone(LOCAL_TZ).date()
    start = LOCAL_TZ.localize(datetime.combine(day, datetime.min.time()))
    end = LOCAL_TZ.localize(datetime.combine(day + timedelta(days=1), datetime.min.time()))
    return start, end


def _cleaning_to_start(tenant_id: str, prop: Property, now: datetime) -> Cleaning:
    """Today's earliest scheduled cleaning of the property, or a new unscheduled one."""
    repo = CleaningRepository()
    start, end = _local_day_bounds(now)
    todays = sorted(
        (
            c for c in repo.list_by_property(prop.id)
            if c.status == CleaningStatus.SCHEDULED.value and start <= c.scheduled_date < end
        ),
        key=lambda c: c.scheduled_date,
    )
    if todays:
        return todays[0]

    cleaning = Cleaning(
        tenant_id=tenant_id,
        property_id=prop.id,
        client_id=prop.client_id,
        scheduled_date=now,
        notes=UNSCHEDULED_NOTE,
    )
    repo.create(cleaning)
    logger.info("Unscheduled cleaning created", cleaning_id=cleaning.id, property_id=prop.id)
    return cleaning


def get_active_session(tenant_id: str, cleaner_phone: str) -> CleaningSession | None:
    return CleaningSessionRepository().get_active(tenant_id, cleaner_phone)


def open_session(
    tenant_id: str,
    cleaner_phone: str,
    property_hint: str | None,
    now: datetime | None = None,
) -> CleaningSession:
    """Start a session at the property the cleaner named.

    Args:
        tenant_id: The tenant ID.
        cleaner_phone: Cleaner's WhatsApp number.
        property_hint: Property name or part of it, as written by the cleaner.
        now: Start time, defaults to the current time.

    Returns:
        The open session.

    Raises:
        SessionPrompt: Another session is open, no hint was given or the
            hint does not identify exactly one property.
    """
    now = now or utc_now()
    sessions = CleaningSessionRepository()

    active = sessions.get_active(tenant_id, cleaner_phone)
    if active:
        current = PropertyRepository().get_by_id(tenant_id, active.property_id)
        name = current.name if current else UNKNOWN_PROPERTY_NAME
        raise SessionPrompt(ASK_CLOSE_PREVIOUS.format(name=name))

    if not property_hint or not property_hint.strip():
        raise SessionPrompt(ASK_WHICH_PROPERTY)

    prop = find_property(tenant_id, property_hint)
    cleaning = _cleaning_to_start(tenant_id, prop, now)

    session = CleaningSession(
        tenant_id=tenant_id,
        property_id=prop.id,
        cleaning_id=cleaning.id,
        cleaner_phone=cleaner_phone,
        started_at=now,
        expected_end_at=now + SESSION_LENGTH,
    )
    sessions.create(session)

    previous_status = CleaningStatus(cleaning.status).value
    cleaning.status = CleaningStatus.IN_PROGRESS
    cleaning.started_at = now
    CleaningRepository().update(cleaning)

    CleaningEventRepository().log(
        tenant_id,
        cleaning.id,
        CleaningEventType.STARTED,
        data={
            "from": previous_status,
            "to": CleaningStatus.IN_PROGRESS.value,
            "note": f"Začátek úklidu - {property_hint.strip()}",
            "session_id": session.id,
            "reported_by": cleaner_phone,
        },
    )

    logger.info(
        "Cleaning session opened",
        session_id=session.id,
        property_id=prop.id,
        cleaning_id=cleaning.id,
        cleaner=mask_phone(cleaner_phone),
    )
    return session


def append_event(
    tenant_id: str,
    cleaner_phone: str,
    parsed: ParsedMessage,
) -> tuple[CleaningSession, CleaningEvent]:
    """Add a supply, linen, photo or note report to the open session's cleaning.

    Raises:
        SessionPrompt: The cleaner has no open session.
    """
    session = get_active_session(tenant_id, cleaner_phone)
    if not session:
        raise SessionPrompt(ASK_WHICH_PROPERTY)

    event = CleaningEventRepository().log(
        tenant_id,
        session.cleaning_id,
        REPORT_EVENT_TYPES.get(parsed.type, CleaningEventType.NOTE),
        data={
            "note": event_note(parsed),
            "session_id": session.id,
            "reported_by": cleaner_phone,
            **event_payload(parsed),
        },
    )
    return session, event


def _finish(session: CleaningSession, reason: CloseReason, now: datetime) -> CleaningSession:
    session.status = SessionStatus.CLOSED
    session.ended_at = now
    session.close_reason = reason
    CleaningSessionRepository().update(session, check_version=False)

    events = CleaningEventRepository()
    if reason == CloseReason.DONE:
        repo = CleaningRepository()
        cleaning = repo.get_by_id(session.tenant_id, session.cleaning_id)
        if cleaning and cleaning.can_transition_to(CleaningStatus.COMPLETED.value):
            previous_status = CleaningStatus(cleaning.status).value
            cleaning.status = CleaningStatus.COMPLETED
            cleaning.completed_at = now
            repo.update(cleaning)

            data: dict[str, Any] = {
                "from": previous_status,
                "to": CleaningStatus.COMPLETED.value,
                "note": "Úklid dokončen",
                "session_id": session.id,
                "reported_by": session.cleaner_phone,
            }
            if cleaning.duration_minutes is not None:
                data["duration_minutes"] = cleaning.duration_minutes
            events.log(session.tenant_id, cleaning.id, CleaningEventType.COMPLETED, data=data)
    elif reason == CloseReason.TIMEOUT:
        events.log(
            session.tenant_id,
            session.cleaning_id,
            CleaningEventType.NOTE,
            data={"note": TIMEOUT_NOTE, "session_id": session.id},
        )

    logger.info("Cleaning session closed", session_id=session.id, reason=reason.value)
    return session


def close_session(
    tenant_id: str,
    cleaner_phone: str,
    reason: CloseReason = CloseReason.DONE,
    now: datetime | None = None,
) -> CleaningSession:
    """Close the cleaner's open session; ``done`` also completes the cleaning.

    Raises:
        SessionPrompt: The cleaner has no open session.
    """
    session = get_active_session(tenant_id, cleaner_phone)
    if not session:
        raise SessionPrompt(ASK_WHICH_TO_CLOSE)
    return _finish(session, reason, now or utc_now())


def auto_close_expired_sessions(tenant_id: str, now: datetime | None = None) -> int:
    """Time out open sessions past their expected end.

    Returns:
        Number of sessions closed.
    """
    now = now or utc_now()
    expired = CleaningSessionRepository().list_expired(tenant_id, now)
    for session in expired:
        _finish(session, CloseReason.TIMEOUT, now)

    if expired:
        logger.info("Expired sessions closed", tenant_id=tenant_id, count=len(expired))
    return len(expired)


def record_photo(
    tenant_id: str,
    cleaner_phone: str,
    media_id: str | None,
    caption: str | None,
) -> CleaningEvent | None:
    """Attach a photo to the open session; photos outside a session are only stored."""
    if not get_active_session(tenant_id, cleaner_phone):
        return None

    parsed = ParsedMessage(
        type=ParsedMessageType.PHOTO_META,
        payload={"description": caption, "media_id": media_id},
        confidence=1.0,
    )
    _, event = append_event(tenant_id, cleaner_phone, parsed)
    return event


def handle_report(tenant_id: str, cleaner_phone: str, parsed: ParsedMessage) -> SessionOutcome:
    """Apply a parsed cleaner message to their session.

    Never raises: questions for the cleaner and unexpected failures both come
    back as ``ask``.
    """
    try:
        if parsed.type == ParsedMessageType.START_CLEANING:
            session = open_session(tenant_id, cleaner_phone, parsed.property_hint)
            return SessionOutcome(session_id=session.id, cleaning_id=session.cleaning_id)

        if parsed.type == ParsedMessageType.DONE:
            session = close_session(tenant_id, cleaner_phone, CloseReason.DONE)
            return SessionOutcome(session_id=session.id, cleaning_id=session.cleaning_id, closed=True)

        session, event = append_event(tenant_id, cleaner_phone, parsed)
        return SessionOutcome(session_id=session.id, cleaning_id=session.cleaning_id, event_id=event.id)

    except SessionPrompt as e:
        logger.info("Asking cleaner to clarify", cleaner=mask_phone(cleaner_phone), ask=e.ask)
        return SessionOutcome(ask=e.ask)
    except Exception as e:
        logger.exception("Session processing failed", error=str(e), parsed_type=parsed.type)
        return SessionOutcome(ask=ASK_RETRY)
