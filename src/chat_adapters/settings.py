"""Environment-sourced provider credentials."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderSettings(BaseSettings):
    """API keys read from the environment when a call supplies none."""

    model_config = SettingsConfigDict(extra="ignore")

    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""


def resolve_api_key(explicit: str | None, provider: str) -> str:
    """Return the explicit key, else the provider's environment variable, else ``""``.

    An empty key is passed through untouched; the vendor rejects it with an
    auth error rather than failing locally.
    """
    if explicit:
        return explicit
    return getattr(ProviderSettings(), f"{provider}_api_key", "")
