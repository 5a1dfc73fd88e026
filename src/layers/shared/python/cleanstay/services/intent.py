"""Keyword intent classifier for the chat widget."""

import unicodedata
from dataclasses import dataclass, field
from enum import Enum

MATCH_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.4


class Intent(str, Enum):
    """Chat intents, in tie-break priority order."""

    PRICE = "price"
    SERVICE = "service"
    CONTACT = "contact"
    BOOKING = "booking"
    COMPLAINT = "complaint"
    OTHER = "other"


# Keywords are matched as substrings of diacritics-free lowercase text,
# so "cenik" also hits "ceniku" and "domacnost" hits "domacnosti".
INTENT_KEYWORDS: list[tuple[Intent, tuple[str, ...]]] = [
    (Intent.PRICE, ("cena", "cenik", "kolik", "naceni")),
    (
        Intent.SERVICE,
        (
            "domacnost",
            "airbnb",
            "firma",
            "svj",
            "rekonstrukce",
            "generalni",
            "pradelna",
            "prani",
            "expres",
        ),
    ),
    (Intent.CONTACT, ("kontakt",)),
    (Intent.BOOKING, ("rezervace", "poptavka", "objednat", "zavolejte")),
    (Intent.COMPLAINT, ("stiznost", "reklamace")),
]


@dataclass(frozen=True)
class IntentResult:
    """Detected intent with its confidence and per-intent keyword hits."""

    intent: Intent
    confidence: float
    scores: dict[str, int] = field(default_factory=dict)


def normalize_text(text: str) -> str:
    """Lowercase, strip accents (NFD, drop combining marks) and trim."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not "\u0300" <= ch <= "\u036f")
    return stripped.lower().strip()


def detect_intent(normalized: str) -> IntentResult:
    """Classify normalized text by counting keyword hits per intent.

    The intent with most hits wins. Ties go to the intent listed first in
    INTENT_KEYWORDS. Text without any hit is OTHER.

    Args:
        normalized: Output of normalize_text().

    Returns:
        IntentResult.
    """
    scores = {
        intent.value: sum(1 for keyword in keywords if keyword in normalized)
        for intent, keywords in INTENT_KEYWORDS
    }

    best_intent = Intent.OTHER
    best_score = 0
    for intent, _ in INTENT_KEYWORDS:
        if scores[intent.value] > best_score:
            best_intent = intent
            best_score = scores[intent.value]

    if best_score == 0:
        return IntentResult(Intent.OTHER, FALLBACK_CONFIDENCE, scores)

    return IntentResult(best_intent, MATCH_CONFIDENCE, scores)


def classify(text: str) -> IntentResult:
    """Normalize raw visitor text and detect its intent."""
    return detect_intent(normalize_text(text))
