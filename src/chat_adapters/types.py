"""Provider-agnostic request, response and streaming models."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["system", "user", "assistant"]
StreamEventType = Literal["token", "tool_call", "thinking", "citation", "done", "error"]

TERMINAL_EVENT_TYPES: frozenset[str] = frozenset({"done", "error"})


class FunctionCall(BaseModel):
    """Function name plus its arguments as a (possibly incomplete) JSON string."""

    name: str = ""
    arguments: str = ""


class ToolCall(BaseModel):
    """A complete or partial function-call descriptor."""

    id: str = ""
    type: Literal["function"] = "function"
    function: FunctionCall = Field(default_factory=FunctionCall)
    # vendor slot of the call within one response; fragments share it
    index: int | None = None


class Citation(BaseModel):
    """Source reference attached to assistant output."""

    id: str
    source: str
    chunk_text: str
    confidence: float | None = None
    metadata: dict[str, Any] | None = None
    url: str | None = None


class ContentPart(BaseModel):
    """One element of structured message content."""

    type: Literal["text", "image", "tool_result"]
    text: str | None = None
    image_url: str | None = None
    tool_call_id: str | None = None
    tool_result: Any = None


class Message(BaseModel):
    """Single chat message. Immutable once constructed."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str | list[ContentPart]
    tool_calls: list[ToolCall] | None = None
    citations: list[Citation] | None = None
    name: str | None = None

    def text(self) -> str:
        """Return the plain-text view of the content."""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text or "" for part in self.content if part.type == "text")


class StreamCallbacks(BaseModel):
    """Side-channel hooks invoked synchronously as stream events are produced."""

    on_token: Callable[[str], Any] | None = None
    on_tool_call: Callable[[ToolCall], Any] | None = None
    on_thinking: Callable[[str], Any] | None = None
    on_citation: Callable[[Citation], Any] | None = None


class ModelConfig(BaseModel):
    """Per-call settings. Adapters never keep a reference past the call."""

    provider: str
    model: str
    api_key: str | None = None
    base_url: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: list[str] | None = None
    stream_callbacks: StreamCallbacks | None = None


class TokenUsage(BaseModel):
    """Vendor-reported token counts, normalized."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    estimated_cost: float | None = None


class StreamEvent(BaseModel):
    """Normalized streaming event emitted by every adapter."""

    type: StreamEventType
    content: str | None = None
    tool_call: ToolCall | None = None
    thinking_step: str | None = None
    citation: Citation | None = None
    usage: TokenUsage | None = None
    error: str | None = None
    # provider-specific payload kept for debugging or advanced use
    raw: dict[str, Any] | None = None

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENT_TYPES


class ModelInfo(BaseModel):
    """Static catalog entry used for model discovery and display."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    provider: Literal["openai", "anthropic", "google"]
    speed: Literal["fast", "medium", "slow"]
    cost: Literal["low", "medium", "high"]
    quality: Literal["good", "excellent", "best"]
    context_window: int
    description: str | None = None
    streaming: bool = True
    tool_calling: bool = False
    vision: bool = False
