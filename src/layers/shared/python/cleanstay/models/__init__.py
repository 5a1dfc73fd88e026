"""Pydantic models for CleanStay entities."""

from cleanstay.models.base import BaseModel, TimestampMixin
from cleanstay.models.cleaning import (
    Cleaning,
    CleaningEvent,
    CleaningEventType,
    CleaningPriority,
    CleaningStatus,
    CreateCleaningRequest,
    UpdateCleaningStatusRequest,
)
from cleanstay.models.conversation import (
    ChatMessage,
    ChatRequest,
    Conversation,
    MarkReadRequest,
    MessageRole,
    MessageSource,
)
from cleanstay.models.gdpr import ErasureRecord, ErasureRequest
from cleanstay.models.lead import ContactFormRequest, CreateLeadRequest, Lead, LeadSource
from cleanstay.models.metrics import DailyMetrics, MonthlyKPI
from cleanstay.models.property import (
    CreatePropertyRequest,
    Property,
    PropertyType,
    UpdatePropertyRequest,
)
from cleanstay.models.session import CleaningSession, CloseReason, SessionStatus
from cleanstay.models.whatsapp_message import WhatsAppMessage, WhatsAppMessageStatus

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "Cleaning",
    "CleaningEvent",
    "CleaningEventType",
    "CleaningPriority",
    "CleaningStatus",
    "CreateCleaningRequest",
    "UpdateCleaningStatusRequest",
    "ChatMessage",
    "ChatRequest",
    "Conversation",
    "MarkReadRequest",
    "MessageRole",
    "MessageSource",
    "ErasureRecord",
    "ErasureRequest",
    "ContactFormRequest",
    "CreateLeadRequest",
    "Lead",
    "LeadSource",
    "DailyMetrics",
    "MonthlyKPI",
    "CreatePropertyRequest",
    "Property",
    "PropertyType",
    "UpdatePropertyRequest",
    "CleaningSession",
    "CloseReason",
    "SessionStatus",
    "WhatsAppMessage",
    "WhatsAppMessageStatus",
]
