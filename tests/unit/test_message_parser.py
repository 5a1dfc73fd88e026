"""Tests for the free-text message parser."""

import json

from cleanstay.services.message_parser import (
    ParsedMessage,
    ParsedMessageType,
    build_prompt,
    extract_property_info,
    get_message_priority,
    is_actionable,
    parse_message,
)


class TestParseMessage:
    """Tests for parse_message."""

    def test_note_when_cleanstay_disabled(self, monkeypatch, mock_bedrock):
        monkeypatch.setenv("CLEANSTAY_ENABLED", "false")

        parsed = parse_message("Hotovo v Karlíně", locale="cs")

        assert parsed.type == ParsedMessageType.NOTE
        assert parsed.confidence == 0.5
        assert parsed.language == "cs"
        assert parsed.payload == {"raw_text": "Hotovo v Karlíně"}
        mock_bedrock.invoke_model.assert_not_called()

    def test_fallback_when_model_fails(self):
        parsed = parse_message("Došel prostředek na okna")

        assert parsed.type == ParsedMessageType.NOTE
        assert parsed.confidence == 0.3
        assert parsed.payload["fallback"] is True
        assert parsed.payload["raw_text"] == "Došel prostředek na okna"

    def test_parses_model_json(self, model_reply):
        mock_bedrock = model_reply(
            "```json\n"
            + json.dumps({
                "type": "supply_out",
                "property_hint": "Karlín",
                "payload": {"item": "window cleaner"},
                "language": "cs",
                "confidence": 0.92,
            })
            + "\n```"
        )

        parsed = parse_message("Došel prostředek na okna v Karlíně", locale="cs")

        assert parsed.type == ParsedMessageType.SUPPLY_OUT
        assert parsed.property_hint == "Karlín"
        assert parsed.confidence == 0.92
        assert is_actionable(parsed)
        assert get_message_priority(parsed) == "high"

        request = json.loads(mock_bedrock.invoke_model.call_args.kwargs["body"])
        assert request["temperature"] == 0.2
        assert "Locale: cs" in request["messages"][0]["content"]

    def test_out_of_range_confidence_falls_back(self, model_reply):
        model_reply(
            json.dumps({"type": "done", "confidence": 1.7})
        )

        parsed = parse_message("Hotovo")

        assert parsed.confidence == 0.3
        assert parsed.payload["fallback"] is True

    def test_non_object_response_falls_back(self, model_reply):
        model_reply("[1, 2, 3]")

        assert parse_message("Hotovo").type == ParsedMessageType.NOTE


class TestHelpers:
    def test_prompt_embeds_message(self):
        prompt = build_prompt("Začínám úklid", "cs")

        assert 'Message: "Začínám úklid"' in prompt
        assert "start_cleaning" in prompt

    def test_actionable_needs_confidence(self):
        parsed = ParsedMessage(type=ParsedMessageType.DONE, confidence=0.7)

        assert not is_actionable(parsed)
        assert get_message_priority(parsed) == "medium"

    def test_notes_are_never_actionable(self):
        parsed = ParsedMessage(type=ParsedMessageType.NOTE, confidence=0.99)

        assert not is_actionable(parsed)
        assert get_message_priority(parsed) == "low"

    def test_property_hint(self):
        assert extract_property_info(
            ParsedMessage(type=ParsedMessageType.NOTE, property_hint="", confidence=0.5)
        ) is None
        assert extract_property_info(
            ParsedMessage(type=ParsedMessageType.NOTE, property_hint="Vinohrady", confidence=0.5)
        ) == "Vinohrady"
