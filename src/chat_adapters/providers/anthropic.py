"""Anthropic Messages API adapter."""

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

_DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
_MESSAGES_PATH = "/messages"
_API_VERSION = "2023-06-01"
_DEFAULT_MAX_TOKENS = 4096
_DATA_PREFIX = "data:"

# USD per 1M tokens.
_PER_TOKENS = 1_000_000
_RATES: dict[str, Rate] = {
    "claude-3-opus-20240229": Rate(15, 75),
    "claude-3-sonnet-20240229": Rate(3, 15),
    "claude-3-haiku-20240307": Rate(0.25, 1.25),
    "claude-2.1": Rate(8, 24),
    "claude-2.0": Rate(8, 24),
}
_DEFAULT_RATE = "claude-3-sonnet-20240229"

MODELS: tuple[ModelInfo, ...] = (
    ModelInfo(
        id="claude-3-opus-20240229",
        name="Claude 3 Opus",
        provider="anthropic",
        speed="medium",
        cost="high",
        quality="best",
        context_window=200_000,
        description="Most capable Claude model, exceptional reasoning",
        streaming=True,
        tool_calling=True,
        vision=True,
    ),
    ModelInfo(
        id="claude-3-sonnet-20240229",
        name="Claude 3 Sonnet",
        provider="anthropic",
        speed="fast",
        cost="medium",
        quality="excellent",
        context_window=200_000,
        description="Balanced performance and cost",
        streaming=True,
        tool_calling=True,
        vision=True,
    ),
    ModelInfo(
        id="claude-3-haiku-20240307",
        name="Claude 3 Haiku",
        provider="anthropic",
        speed="fast",
        cost="low",
        quality="good",
        context_window=200_000,
        description="Fastest Claude model, great for simple tasks",
        streaming=True,
        tool_calling=True,
        vision=True,
    ),
)


def estimate_cost(usage: TokenUsage, model: str) -> float:
    rate = lookup_rate(_RATES, model, default=_DEFAULT_RATE, family="claude-")
    return cost_for(usage, rate, _PER_TOKENS)


def decode_frame(frame: str, model: str) -> list[StreamEvent]:
    """Map one ``data:`` line of the Messages stream to events.

    ``event:`` lines carry no data and are skipped. Usage arrives on the
    ``message_delta`` frame, separate from the ``content_block_delta`` frames
    that carry text. There is no end sentinel; the stream simply closes.
    """
    line = frame.strip()
    if not line.startswith(_DATA_PREFIX):
        return []

    data_str = line[len(_DATA_PREFIX) :].strip()
    if not data_str:
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
    kind = payload.get("type")

    if kind == "content_block_delta":
        delta = payload.get("delta") or {}
        if delta.get("text"):
            return [StreamEvent(type="token", content=delta["text"], raw=payload)]
        if delta.get("type") == "thinking_delta" and delta.get("thinking"):
            return [StreamEvent(type="thinking", thinking_step=delta["thinking"], raw=payload)]
        if delta.get("type") == "input_json_delta" and delta.get("partial_json"):
            tool_call = ToolCall(
                index=payload.get("index"),
                function=FunctionCall(arguments=delta["partial_json"]),
            )
            return [StreamEvent(type="tool_call", tool_call=tool_call, raw=payload)]
        return []

    if kind == "content_block_start":
        block = payload.get("content_block") or {}
        if block.get("type") != "tool_use":
            return []
        tool_call = ToolCall(
            id=block.get("id") or "",
            index=payload.get("index"),
            function=FunctionCall(name=block.get("name") or ""),
        )
        return [StreamEvent(type="tool_call", tool_call=tool_call, raw=payload)]

    if kind == "message_delta" and payload.get("usage"):
        usage_data = payload["usage"]
        prompt = usage_data.get("input_tokens") or 0
        completion = usage_data.get("output_tokens") or 0
        usage = TokenUsage(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )
        usage.estimated_cost = estimate_cost(usage, model)
        return [StreamEvent(type="done", usage=usage, raw=payload)]

    if kind == "error":
        error = payload.get("error") or {}
        return [StreamEvent(type="error", error=error.get("message") or "stream error", raw=payload)]

    return []


class AnthropicAdapter(BaseAdapter):
    """Adapter for the Anthropic Messages API."""

    name = "anthropic"
    models = MODELS

    def build_request(
        self, messages: list[Message], config: ModelConfig, *, stream: bool
    ) -> VendorRequest:
        system_text, conversation = self._split_system(messages)

        body: dict[str, Any] = {
            "model": config.model,
            "messages": [self._serialize_message(m) for m in conversation],
            "max_tokens": config.max_tokens or _DEFAULT_MAX_TOKENS,
        }
        if system_text:
            body["system"] = system_text

        optional = {
            "temperature": config.temperature,
            "top_p": config.top_p,
            "stop_sequences": config.stop,
        }
        body.update({key: value for key, value in optional.items() if value is not None})

        if stream:
            body["stream"] = True

        return VendorRequest(
            url=f"{(config.base_url or _DEFAULT_BASE_URL).rstrip('/')}{_MESSAGES_PATH}",
            headers={
                "x-api-key": resolve_api_key(config.api_key, self.name),
                "anthropic-version": _API_VERSION,
                "content-type": "application/json",
            },
            body=body,
        )

    def parse_completion(self, data: dict[str, Any]) -> Message:
        blocks = data.get("content") or []
        text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
        return Message(role="assistant", content=text)

    def decode_frame(self, frame: str, model: str) -> list[StreamEvent]:
        return decode_frame(frame, model)

    def estimate_cost(self, usage: TokenUsage, model: str) -> float:
        return estimate_cost(usage, model)

    @staticmethod
    def _split_system(messages: list[Message]) -> tuple[str, list[Message]]:
        system_parts: list[str] = []
        rest: list[Message] = []
        for m in messages:
            if m.role == "system":
                system_parts.append(m.text())
            else:
                rest.append(m)
        return ("\n".join(system_parts), rest)

    @classmethod
    def _serialize_message(cls, message: Message) -> dict[str, Any]:
        # Only user/assistant turns exist here; the system prompt has its own field.
        role = "assistant" if message.role == "assistant" else "user"
        if isinstance(message.content, str):
            return {"role": role, "content": message.content}
        return {"role": role, "content": [cls._serialize_part(p) for p in message.content]}

    @staticmethod
    def _serialize_part(part: ContentPart) -> dict[str, Any]:
        if part.type == "image":
            return {"type": "image", "source": {"type": "url", "url": part.image_url}}
        if part.type == "tool_result":
            result = part.tool_result
            return {
                "type": "tool_result",
                "tool_use_id": part.tool_call_id or "",
                "content": result if isinstance(result, str) else json.dumps(result),
            }
        return {"type": "text", "text": part.text or ""}
