"""Service modules for business logic."""

from cleanstay.services.email_service import EmailError, EmailService
from cleanstay.services.estimator import EstimateInput, EstimateResult, estimate_price
from cleanstay.services.intent import Intent, IntentResult, classify, detect_intent, normalize_text
from cleanstay.services.whatsapp_service import WhatsAppError, WhatsAppService

__all__ = [
    "EmailError",
    "EmailService",
    "EstimateInput",
    "EstimateResult",
    "Intent",
    "IntentResult",
    "WhatsAppError",
    "WhatsAppService",
    "classify",
    "detect_intent",
    "estimate_price",
    "normalize_text",
]
