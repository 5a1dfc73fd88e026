"""LLM access through Amazon Bedrock (Anthropic Claude models).

Used by the website chat assistant and by the free-text message parser.
Token usage is recorded in the tenant's daily metrics when a tenant is given.
"""

import json
from dataclasses import dataclass
from typing import Any

import boto3
import structlog
from botocore.config import Config

from cleanstay.config import DEFAULT_BEDROCK_MODEL, get_ai_config
from cleanstay.services.chatbot_content import SYSTEM_PROMPT_CZ, intent_hint

logger = structlog.get_logger()

DEFAULT_MODEL = DEFAULT_BEDROCK_MODEL

# Bedrock timeout configuration
BEDROCK_CONFIG = Config(
    read_timeout=30,
    connect_timeout=5,
    retries={
        "max_attempts": 2,
        "mode": "adaptive",
    },
)

bedrock = boto3.client("bedrock-runtime", config=BEDROCK_CONFIG)

CHAT_MAX_TOKENS = 600
CHAT_TEMPERATURE = 0.4


class AIUnavailableError(Exception):
    """Raised when AI is disabled by configuration."""


@dataclass
class ClaudeResponse:
    """Generated text with token accounting."""

    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: str | None = None


def _record_usage(tenant_id: str | None, response: ClaudeResponse) -> None:
    if not tenant_id:
        return

    from cleanstay.services.metrics_service import record_ai_usage

    record_ai_usage(tenant_id, response.input_tokens, response.output_tokens)


def invoke_claude_messages(
    messages: list[dict[str, str]],
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 1024,
    temperature: float = 0.7,
    tenant_id: str | None = None,
) -> ClaudeResponse:
    """Invoke Claude with a full message list.

    Args:
        messages: Alternating user/assistant messages, starting with user.
        system: Optional system prompt.
        model: Bedrock model ID. Defaults to the configured model.
        max_tokens: Maximum tokens to generate.
        temperature: Sampling temperature.
        tenant_id: When given, token usage is added to the tenant's metrics.

    Returns:
        ClaudeResponse.
    """
    if model is None:
        config = get_ai_config()
        model = config.model_id if config else DEFAULT_MODEL

    request_body: dict[str, Any] = {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": messages,
    }
    if system:
        request_body["system"] = system

    try:
        response = bedrock.invoke_model(
            modelId=model,
            body=json.dumps(request_body),
            contentType="application/json",
            accept="application/json",
        )
        response_body = json.loads(response["body"].read())

    except Exception as e:
        logger.error("Claude invocation failed", error=str(e), model=model)
        raise

    text = "".join(
        block.get("text", "")
        for block in response_body.get("content", [])
        if block.get("type") == "text"
    )
    usage = response_body.get("usage", {}) or {}

    result = ClaudeResponse(
        text=text.strip(),
        model=model,
        input_tokens=int(usage.get("input_tokens", 0)),
        output_tokens=int(usage.get("output_tokens", 0)),
        stop_reason=response_body.get("stop_reason"),
    )

    try:
        _record_usage(tenant_id, result)
    except Exception as e:
        logger.warning("Failed to record AI usage", error=str(e), tenant_id=tenant_id)

    return result


def invoke_claude(
    prompt: str,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 1024,
    temperature: float = 0.7,
    tenant_id: str | None = None,
) -> str:
    """Invoke Claude with a single user prompt.

    Returns:
        The generated text response.
    """
    return invoke_claude_messages(
        messages=[{"role": "user", "content": prompt}],
        system=system,
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        tenant_id=tenant_id,
    ).text


def extract_json(text: str) -> Any:
    """Parse JSON from model output, tolerating markdown code fences.

    Raises:
        ValueError: If no valid JSON is found.
    """
    payload = text
    if "```json" in payload:
        start = payload.find("```json") + 7
        end = payload.find("```", start)
        payload = payload[start:end if end != -1 else None].strip()
    elif "```" in payload:
        start = payload.find("```") + 3
        end = payload.find("```", start)
        payload = payload[start:end if end != -1 else None].strip()

    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse JSON response", response=text[:500], error=str(e))
        raise ValueError(f"Invalid JSON response from AI: {e}")


def invoke_claude_json(
    prompt: str,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int = 1024,
    tenant_id: str | None = None,
) -> Any:
    """Invoke Claude and parse a JSON response.

    Raises:
        ValueError: If the response is not valid JSON.
    """
    response = invoke_claude(
        prompt=prompt,
        system=system,
        model=model,
        max_tokens=max_tokens,
        temperature=0.2,
        tenant_id=tenant_id,
    )
    return extract_json(response)


def build_chat_messages(history: list[tuple[str, str]]) -> list[dict[str, str]]:
    """Turn (role, text) history into a valid Bedrock message list.

    Drops leading assistant turns and merges consecutive turns of the same
    role, since the API requires strictly alternating roles starting with
    the user.
    """
    messages: list[dict[str, str]] = []
    for role, text in history:
        if role not in ("user", "assistant") or not text:
            continue
        if not messages and role != "user":
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n" + text
        else:
            messages.append({"role": role, "content": text})
    return messages


def generate_chat_reply(
    history: list[tuple[str, str]],
    intent: str,
    tenant_id: str | None = None,
) -> ClaudeResponse:
    """Generate the assistant's next chat reply.

    Args:
        history: (role, text) pairs, oldest first, ending with the visitor's
            latest message.
        intent: Detected intent of the latest message.
        tenant_id: Tenant to bill token usage to.

    Returns:
        ClaudeResponse.

    Raises:
        AIUnavailableError: If AI chat is disabled.
        ValueError: If there is no user message to answer.
    """
    config = get_ai_config()
    if not config or not config.chat_enabled:
        raise AIUnavailableError("AI chat is disabled")

    messages = build_chat_messages(history)
    if not messages or messages[-1]["role"] != "user":
        raise ValueError("Chat history must end with a user message")

    system = f"{SYSTEM_PROMPT_CZ}\n\n{intent_hint(intent)}"

    return invoke_claude_messages(
        messages=messages,
        system=system,
        model=config.model_id,
        max_tokens=CHAT_MAX_TOKENS,
        temperature=CHAT_TEMPERATURE,
        tenant_id=tenant_id,
    )
