"""Provider lookup and the combined model catalog."""

from __future__ import annotations

from chat_adapters.errors import UnknownModelError, UnknownProviderError
from chat_adapters.providers import AnthropicAdapter, BaseAdapter, GoogleAdapter, OpenAIAdapter
from chat_adapters.types import ModelInfo

_ADAPTERS: dict[str, BaseAdapter] = {
    adapter.name: adapter for adapter in (OpenAIAdapter(), AnthropicAdapter(), GoogleAdapter())
}

ALL_MODELS: tuple[ModelInfo, ...] = (
    *OpenAIAdapter.models,
    *AnthropicAdapter.models,
    *GoogleAdapter.models,
)


def get_adapter(provider: str) -> BaseAdapter:
    """Return the adapter registered under ``provider``."""
    try:
        return _ADAPTERS[provider]
    except KeyError as exc:
        raise UnknownProviderError(provider) from exc


def register_adapter(adapter: BaseAdapter) -> None:
    """Register (or replace) the adapter for ``adapter.name``."""
    _ADAPTERS[adapter.name] = adapter


def providers() -> list[str]:
    return sorted(_ADAPTERS)


def list_models(provider: str | None = None) -> list[ModelInfo]:
    """Return catalog entries, optionally limited to one provider."""
    if provider is None:
        return list(ALL_MODELS)
    return [m for m in ALL_MODELS if m.provider == provider]


def get_model_info(model_id: str) -> ModelInfo:
    for model in ALL_MODELS:
        if model.id == model_id:
            return model
    raise UnknownModelError(model_id)
