"""Vendor adapters for chat_adapters."""

from .anthropic import AnthropicAdapter
from .base import BaseAdapter
from .google import GoogleAdapter
from .openai import OpenAIAdapter

__all__ = [
    "BaseAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GoogleAdapter",
]
