"""OpenAI chat completions adapter."""

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
    ContentPart,
    FunctionCall,
    Message,
    ModelConfig,
    ModelInfo,
    StreamEvent,
    TokenUsage,
    ToolCall,
)

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openai.com/v1"
_CHAT_PATH = "/chat/completions"
_DATA_PREFIX = "data:"
_DONE_MARKER = "[DONE]"

# USD per 1K tokens.
_PER_TOKENS = 1_000
_RATES: dict[str, Rate] = {
    "gpt-4-turbo": Rate(0.01, 0.03),
    "gpt-4-turbo-preview": Rate(0.01, 0.03),
    "gpt-4": Rate(0.03, 0.06),
    "gpt-4-32k": Rate(0.06, 0.12),
    "gpt-3.5-turbo": Rate(0.0015, 0.002),
    "gpt-3.5-turbo-16k": Rate(0.003, 0.004),
}
_DEFAULT_RATE = "gpt-3.5-turbo"

MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(
        id="gpt-4-turbo",
        name="GPT-4 Turbo",
        provider="openai",
        speed="fast",
        cost="medium",
        quality="best",
        context_window=128_000,
        description="Most capable model, best for complex tasks",
        streaming=True,
        tool_calling=True,
        vision=True,
    ),
    ModelInfo(
        id="gpt-4",
        name="GPT-4",
        provider="openai",
        speed="medium",
        cost="high",
        quality="best",
        context_window=8_192,
        description="Original GPT-4, excellent reasoning",
        streaming=True,
        tool_calling=True,
        vision=False,
    ),
    ModelInfo(
        id="gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        provider="openai",
        speed="fast",
        cost="low",
        quality="good",
        context_window=16_385,
        description="Fast and affordable for simple tasks",
        streaming=True,
        tool_calling=True,
        vision=False,
    ),
)


def estimate_cost(usage: TokenUsage, model: str) -> float:
    rate = lookup_rate(_RATES, model, default=_DEFAULT_RATE, family="gpt-")
    return cost_for(usage, rate, _PER_TOKENS)


def decode_frame(frame: str, model: str) -> list[StreamEvent]:
    """Map one ``data:`` line of the chat completions stream to events.

    The ``[DONE]`` sentinel and lines without the ``data:`` prefix yield
    nothing. Tool-call deltas are emitted as they arrive, one event per
    fragment, without joining their argument strings.
    """
    line = frame.strip()
    if not line.startswith(_DATA_PREFIX):
        return []

    data_str = line[len(_DATA_PREFIX) :].strip()
    if not data_str or data_str == _DONE_MARKER:
        return []

    try:
        payload = json.loads(data_str)
    except json.JSONDecodeError:
        logger.debug("Skipping non-JSON streaming chunk: %s", data_str)
        return []
    if not isinstance(payload, dict):
        return []

    try:
        return _map_payload(payload, model)
    except (AttributeError, TypeError, ValueError):
        logger.debug("Skipping malformed streaming chunk: %s", data_str)
        return []


def _map_payload(payload: dict[str, Any], model: str) -> list[StreamEvent]:
    error = payload.get("error")
    if isinstance(error, dict):
        return [StreamEvent(type="error", error=error.get("message") or "stream error", raw=payload)]

    events: list[StreamEvent] = []
    choices = payload.get("choices") or []
    delta = (choices[0].get("delta") or {}) if choices else {}

    content = delta.get("content")
    if isinstance(content, str) and content:
        events.append(StreamEvent(type="token", content=content, raw=payload))

    for tc in delta.get("tool_calls") or []:
        fn = tc.get("function")
        if not fn:
            continue
        events.append(
            StreamEvent(
                type="tool_call",
                tool_call=ToolCall(
                    id=tc.get("id") or "",
                    index=tc.get("index"),
                    function=FunctionCall(
                        name=fn.get("name") or "",
                        arguments=fn.get("arguments") or "",
                    ),
                ),
                raw=payload,
            )
        )

    usage_data = payload.get("usage")
    if usage_data:
        prompt = usage_data.get("prompt_tokens") or 0
        completion = usage_data.get("completion_tokens") or 0
        usage = TokenUsage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=usage_data.get("total_tokens") or prompt + completion,
        )
        usage.estimated_cost = estimate_cost(usage, model)
        events.append(StreamEvent(type="done", usage=usage, raw=payload))

    return events


class OpenAIAdapter(BaseAdapter):
    """Adapter for the OpenAI Chat Completions API."""

    name = "openai"
    models = MODELS

    def build_request(
        self, messages: list[Message], config: ModelConfig, *, stream: bool
    ) -> VendorRequest:
        api_key = resolve_api_key(config.api_key, self.name)
        body: dict[str, Any] = {
            "model": config.model,
            "messages": [self._serialize_message(m) for m in messages],
        }

        optional = {
            "temperature": config.temperature,
            "max_tokens": config.max_tokens,
            "top_p": config.top_p,
            "frequency_penalty": config.frequency_penalty,
            "presence_penalty": config.presence_penalty,
            "stop": config.stop,
        }
        body.update({key: value for key, value in optional.items() if value is not None})

        if stream:
            body["stream"] = True
            # Without this the final usage frame is never sent.
            body["stream_options"] = {"include_usage": True}

        return VendorRequest(
            url=f"{(config.base_url or _DEFAULT_BASE_URL).rstrip('/')}{_CHAT_PATH}",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            body=body,
        )

    def parse_completion(self, data: dict[str, Any]) -> Message:
        choices = data.get("choices") or []
        message = (choices[0].get("message") or {}) if choices else {}

        tool_calls = [
            ToolCall(
                id=tc.get("id") or "",
                function=FunctionCall(
                    name=(tc.get("function") or {}).get("name") or "",
                    arguments=(tc.get("function") or {}).get("arguments") or "",
                ),
            )
            for tc in message.get("tool_calls") or []
        ]

        return Message(
            role="assistant",
            content=message.get("content") or "",
            tool_calls=tool_calls or None,
        )

    def decode_frame(self, frame: str, model: str) -> list[StreamEvent]:
        return decode_frame(frame, model)

    def estimate_cost(self, usage: TokenUsage, model: str) -> float:
        return estimate_cost(usage, model)

    @classmethod
    def _serialize_message(cls, message: Message) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": message.role}
        if isinstance(message.content, str):
            payload["content"] = message.content
        else:
            payload["content"] = [cls._serialize_part(p) for p in message.content]
        if message.name:
            payload["name"] = message.name
        if message.tool_calls:
            payload["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                }
                for tc in message.tool_calls
            ]
        return payload

    @staticmethod
    def _serialize_part(part: ContentPart) -> dict[str, Any]:
        if part.type == "image":
            return {"type": "image_url", "image_url": {"url": part.image_url}}
        if part.type == "tool_result":
            result = part.tool_result
            text = result if isinstance(result, str) else json.dumps(result)
            return {"type": "text", "text": text}
        return {"type": "text", "text": part.text or ""}
