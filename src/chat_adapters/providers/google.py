"""Google Gemini generateContent adapter."""

from __future__ import annotations

import json
import logging
from typing import Any

from chat_adapters.providers.base import (
    BaseAdapter,
    Rate,
    VendorRequest,
    cost_for,
    lookup_rate,
)
from chat_adapters.settings import resolve_api_key
from chat_adapters.types import (
    FunctionCall,
    Message,
    ModelConfig,
    ModelInfo,
    StreamEvent,
    TokenUsage,
    ToolCall,
)

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
_DONE_MARKER = "[DONE]"

# USD per 1M tokens.
_PER_TOKENS = 1_000_000
_RATES: dict[str, Rate] = {
    "gemini-1.5-pro": Rate(3.5, 10.5),
    "gemini-1.5-flash": Rate(0.35, 1.05),
    "gemini-1.0-pro": Rate(0.5, 1.5),
}
_DEFAULT_RATE = "gemini-1.5-flash"

MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(
        id="gemini-1.5-pro",
        name="Gemini 1.5 Pro",
        provider="google",
        speed="medium",
        cost="medium",
        quality="best",
        context_window=1_000_000,
        description="Largest context window, excellent reasoning",
        streaming=True,
        tool_calling=True,
        vision=True,
    ),
    ModelInfo(
        id="gemini-1.5-flash",
        name="Gemini 1.5 Flash",
        provider="google",
        speed="fast",
        cost="low",
        quality="good",
        context_window=1_000_000,
        description="Fast and affordable with huge context",
        streaming=True,
        tool_calling=True,
        vision=True,
    ),
    ModelInfo(
        id="gemini-1.0-pro",
        name="Gemini 1.0 Pro",
        provider="google",
        speed="fast",
        cost="low",
        quality="good",
        context_window=32_000,
        description="Original Gemini model",
        streaming=True,
        tool_calling=True,
        vision=False,
    ),
)


def estimate_cost(usage: TokenUsage, model: str) -> float:
    rate = lookup_rate(_RATES, model, default=_DEFAULT_RATE, family="gemini-")
    return cost_for(usage, rate, _PER_TOKENS)


def decode_frame(frame: str, model: str) -> list[StreamEvent]:
    """Map one line of the streamed JSON array to events.

    Lines are bare JSON values; the enclosing array's ``[``, ``,`` and ``]``
    are trimmed first. The vendor sends no end sentinel. A chunk whose
    candidate carries ``finishReason`` ends the stream with its usage;
    otherwise the stream closing ends it.
    """
    line = frame.strip()
    if not line or line == _DONE_MARKER:
        return []

    line = line.lstrip("[,").rstrip("]").strip()
    if not line:
        return []

    try:
        payload = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Skipping non-JSON streaming chunk: %s", line)
        return []
    if not isinstance(payload, dict):
        return []

    try:
        return _map_payload(payload, model)
    except (AttributeError, TypeError, ValueError):
        logger.debug("Skipping malformed streaming chunk: %s", line)
        return []


def _map_payload(payload: dict[str, Any], model: str) -> list[StreamEvent]:
    error = payload.get("error")
    if isinstance(error, dict):
        return [StreamEvent(type="error", error=error.get("message") or "stream error", raw=payload)]

    events: list[StreamEvent] = []
    candidates = payload.get("candidates") or []
    candidate = candidates[0] if candidates else {}
    content = candidate.get("content") or {}

    for part in content.get("parts") or []:
        text = part.get("text")
        if text and part.get("thought"):
            events.append(StreamEvent(type="thinking", thinking_step=text, raw=payload))
        elif text:
            events.append(StreamEvent(type="token", content=text, raw=payload))
        elif part.get("functionCall"):
            fc = part["functionCall"]
            name = fc.get("name") or ""
            tool_call = ToolCall(
                id=fc.get("id") or name,
                function=FunctionCall(name=name, arguments=json.dumps(fc.get("args") or {})),
            )
            events.append(StreamEvent(type="tool_call", tool_call=tool_call, raw=payload))

    # usageMetadata rides on every chunk; only the one that finishes the reply is final.
    usage_data = payload.get("usageMetadata")
    if usage_data and candidate.get("finishReason"):
        prompt = usage_data.get("promptTokenCount") or 0
        completion = usage_data.get("candidatesTokenCount") or 0
        usage = TokenUsage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=usage_data.get("totalTokenCount") or prompt + completion,
        )
        usage.estimated_cost = estimate_cost(usage, model)
        events.append(StreamEvent(type="done", usage=usage, raw=payload))

    return events


class GoogleAdapter(BaseAdapter):
    """Adapter for the Gemini ``generateContent`` REST API.

    The API key travels as the ``key`` query parameter rather than a header.
    System messages stay inline as ``model`` turns.
    """

    name = "google"
    models = MODELS

    def build_request(
        self, messages: list[Message], config: ModelConfig, *, stream: bool
    ) -> VendorRequest:
        method = "streamGenerateContent" if stream else "generateContent"
        base_url = (config.base_url or _DEFAULT_BASE_URL).rstrip("/")

        generation_config = {
            "temperature": config.temperature,
            "maxOutputTokens": config.max_tokens,
            "topP": config.top_p,
            "stopSequences": config.stop,
        }
        body: dict[str, Any] = {
            "contents": [self._serialize_message(m) for m in messages],
            "generationConfig": {k: v for k, v in generation_config.items() if v is not None},
        }

        return VendorRequest(
            url=f"{base_url}/models/{config.model}:{method}",
            headers={"Content-Type": "application/json"},
            params={"key": resolve_api_key(config.api_key, self.name)},
            body=body,
        )

    def parse_completion(self, data: dict[str, Any]) -> Message:
        candidates = data.get("candidates") or []
        content = (candidates[0].get("content") or {}) if candidates else {}
        text = "".join(p.get("text", "") for p in content.get("parts") or [] if not p.get("thought"))
        return Message(role="assistant", content=text)

    def decode_frame(self, frame: str, model: str) -> list[StreamEvent]:
        return decode_frame(frame, model)

    def estimate_cost(self, usage: TokenUsage, model: str) -> float:
        return estimate_cost(usage, model)

    @staticmethod
    def _serialize_message(message: Message) -> dict[str, Any]:
        return {
            "role": "user" if message.role == "user" else "model",
            "parts": [{"text": message.text()}],
        }
