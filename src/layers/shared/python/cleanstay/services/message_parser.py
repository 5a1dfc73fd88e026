"""Free-text parsing of cleaner messages (WhatsApp) into structured events."""

from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from cleanstay.config import get_ai_config
from cleanstay.services.ai_service import invoke_claude_json

logger = structlog.get_logger()

PARSE_MAX_TOKENS = 500
NO_AI_CONFIDENCE = 0.5
FALLBACK_CONFIDENCE = 0.3
ACTIONABLE_CONFIDENCE = 0.7

PARSER_SYSTEM_PROMPT = "You are a cleaning service message parser. Always return valid JSON."


class ParsedMessageType(str, Enum):
    """What a cleaner's message reports."""

    START_CLEANING = "start_cleaning"
    SUPPLY_OUT = "supply_out"
    LINEN_USED = "linen_used"
    NOTE = "note"
    PHOTO_META = "photo_meta"
    DONE = "done"


ACTIONABLE_TYPES = {
    ParsedMessageType.START_CLEANING,
    ParsedMessageType.SUPPLY_OUT,
    ParsedMessageType.DONE,
}


class ParsedMessage(BaseModel):
    """Structured reading of a free-text message."""

    type: ParsedMessageType
    property_hint: str | None = None
    payload: dict[str, Any] | None = None
    language: str | None = None
    confidence: float = Field(..., ge=0, le=1)


class ParseRequest(BaseModel):
    """Body of POST /ai/parse."""

    text: str = Field(..., min_length=1, max_length=4000)
    locale: str = Field(default="en", max_length=10)


def build_prompt(text: str, locale: str = "en") -> str:
    """Build the extraction prompt for one message."""
    return f"""You are an AI assistant that parses cleaning service messages from WhatsApp.
Analyze the following message and extract structured information.

Message: "{text}"
Locale: {locale}

Return a JSON object with the following structure:
{{
  "type": "start_cleaning" | "supply_out" | "linen_used" | "note" | "photo_meta" | "done",
  "property_hint": "optional property identifier",
  "payload": {{ "key": "value" }},
  "language": "detected language code",
  "confidence": 0.0-1.0
}}

Message types:
- start_cleaning: Beginning of cleaning process
- supply_out: Running out of supplies
- linen_used: Linen/cleaning materials used
- note: General note or update
- photo_meta: Photo with metadata
- done: Cleaning completed

Be precise and only return valid JSON."""


def parse_message(text: str, locale: str = "en", tenant_id: str | None = None) -> ParsedMessage:
    """Parse a message with the LLM, degrading to a plain note.

    Args:
        text: Message text.
        locale: Locale hint passed to the model.
        tenant_id: Tenant to bill token usage to.

    Returns:
        ParsedMessage. Never raises for AI problems: without AI the message
        is a note with confidence 0.5, on AI failure a note with confidence
        0.3 and a fallback marker in the payload.
    """
    if get_ai_config() is None:
        return ParsedMessage(
            type=ParsedMessageType.NOTE,
            language=locale,
            confidence=NO_AI_CONFIDENCE,
            payload={"raw_text": text},
        )

    try:
        data = invoke_claude_json(
            prompt=build_prompt(text, locale),
            system=PARSER_SYSTEM_PROMPT,
            max_tokens=PARSE_MAX_TOKENS,
            tenant_id=tenant_id,
        )
        if not isinstance(data, dict):
            raise ValueError("AI response is not a JSON object")
        return ParsedMessage.model_validate(data)

    except (ValueError, PydanticValidationError) as e:
        logger.warning("AI parsing returned invalid data", error=str(e))
    except Exception as e:
        logger.error("AI parsing failed", error=str(e))

    return ParsedMessage(
        type=ParsedMessageType.NOTE,
        language=locale,
        confidence=FALLBACK_CONFIDENCE,
        payload={
            "raw_text": text,
            "error": "AI parsing failed",
            "fallback": True,
        },
    )


def is_actionable(parsed: ParsedMessage) -> bool:
    """Confident start/supply/done reports need follow-up."""
    return parsed.confidence > ACTIONABLE_CONFIDENCE and parsed.type in ACTIONABLE_TYPES


def extract_property_info(parsed: ParsedMessage) -> str | None:
    return parsed.property_hint or None


def get_message_priority(parsed: ParsedMessage) -> str:
    """Priority for the admin inbox: low, medium or high."""
    if parsed.type == ParsedMessageType.SUPPLY_OUT:
        return "high"
    if parsed.type in (ParsedMessageType.DONE, ParsedMessageType.START_CLEANING):
        return "medium"
    return "low"
