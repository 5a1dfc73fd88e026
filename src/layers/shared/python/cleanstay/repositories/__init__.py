"""Repository classes for DynamoDB data access."""

from cleanstay.repositories.base import BaseRepository
from cleanstay.repositories.cleaning import CleaningEventRepository, CleaningRepository
from cleanstay.repositories.conversation import ConversationRepository, MessageRepository
from cleanstay.repositories.erasure import ErasureRecordRepository
from cleanstay.repositories.lead import LeadRepository
from cleanstay.repositories.metrics import DailyMetricsRepository, MonthlyKPIRepository
from cleanstay.repositories.property import PropertyRepository
from cleanstay.repositories.session import CleaningSessionRepository
from cleanstay.repositories.whatsapp_message import WhatsAppMessageRepository

__all__ = [
    "BaseRepository",
    "CleaningEventRepository",
    "CleaningRepository",
    "ConversationRepository",
    "MessageRepository",
    "ErasureRecordRepository",
    "LeadRepository",
    "DailyMetricsRepository",
    "MonthlyKPIRepository",
    "PropertyRepository",
    "CleaningSessionRepository",
    "WhatsAppMessageRepository",
]
