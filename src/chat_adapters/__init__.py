"""Unified streaming adapters for OpenAI, Anthropic and Google chat APIs."""

from chat_adapters.accumulate import StreamAccumulator, collect
from chat_adapters.errors import (
    ChatAdapterError,
    ProtocolViolationError,
    ProviderError,
    UnknownModelError,
    UnknownProviderError,
)
from chat_adapters.partial import PartialParse, parse_partial_json
from chat_adapters.registry import ALL_MODELS, get_adapter, get_model_info, list_models
from chat_adapters.types import (
    Citation,
    ContentPart,
    Message,
    ModelConfig,
    ModelInfo,
    StreamCallbacks,
    StreamEvent,
    TokenUsage,
    ToolCall,
)

__all__ = [
    "ALL_MODELS",
    "ChatAdapterError",
    "Citation",
    "ContentPart",
    "Message",
    "ModelConfig",
    "ModelInfo",
    "PartialParse",
    "ProtocolViolationError",
    "ProviderError",
    "StreamAccumulator",
    "StreamCallbacks",
    "StreamEvent",
    "TokenUsage",
    "ToolCall",
    "UnknownModelError",
    "UnknownProviderError",
    "collect",
    "get_adapter",
    "get_model_info",
    "list_models",
    "parse_partial_json",
]
