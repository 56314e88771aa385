"""Provider-agnostic adapter interface and the shared HTTP driver."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

import httpx

from chat_adapters.errors import ProviderError
from chat_adapters.framing import iter_frames
from chat_adapters.types import (
    Message,
    ModelConfig,
    ModelInfo,
    StreamCallbacks,
    StreamEvent,
    TokenUsage,
)

logger = logging.getLogger(__name__)

_NO_BODY_STATUSES = frozenset({204, 205})


class Rate(NamedTuple):
    """Input and output price for one model, in the vendor's own token unit."""

    input: float
    output: float


@dataclass(frozen=True)
class VendorRequest:
    """Everything needed to issue one vendor HTTP call."""

    url: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] | None = None


def lookup_rate(rates: Mapping[str, Rate], model: str, *, default: str, family: str) -> Rate | None:
    """Resolve the price entry for ``model``.

    Exact ids win, then the longest table id that ``model`` extends with a
    ``-suffix`` (dated snapshots), then the ``default`` entry for ids inside
    the vendor ``family`` prefix. Anything else has no rate.
    """
    if model in rates:
        return rates[model]
    extended = [key for key in rates if model.startswith(f"{key}-")]
    if extended:
        return rates[max(extended, key=len)]
    if model.startswith(family):
        return rates[default]
    return None


def cost_for(usage: TokenUsage, rate: Rate | None, per_tokens: int) -> float:
    if rate is None:
        return 0.0
    return (usage.prompt_tokens / per_tokens) * rate.input + (
        usage.completion_tokens / per_tokens
    ) * rate.output


def error_detail(body: bytes, fallback: str) -> str:
    """Pull the vendor's error message out of an error body, else use ``fallback``."""
    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict):
        err = data.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str) and err:
            return err
    return fallback or "request failed"


def notify(callbacks: StreamCallbacks | None, event: StreamEvent) -> None:
    """Deliver ``event`` to the matching side-channel callback, if any."""
    if callbacks is None:
        return
    if event.type == "token" and callbacks.on_token and event.content is not None:
        callbacks.on_token(event.content)
    elif event.type == "tool_call" and callbacks.on_tool_call and event.tool_call is not None:
        callbacks.on_tool_call(event.tool_call)
    elif event.type == "thinking" and callbacks.on_thinking and event.thinking_step is not None:
        callbacks.on_thinking(event.thinking_step)
    elif event.type == "citation" and callbacks.on_citation and event.citation is not None:
        callbacks.on_citation(event.citation)


def _has_body(response: httpx.Response) -> bool:
    if response.status_code in _NO_BODY_STATUSES:
        return False
    return response.headers.get("content-length") != "0"


class BaseAdapter(ABC):
    """One adapter per vendor, sharing the chat/stream/estimate_cost surface.

    Subclasses describe the vendor: how to build a request, how to read a
    one-shot completion, which frame decoder to run and how to price usage.
    The HTTP plumbing lives here. A fresh ``httpx.AsyncClient`` is opened for
    every call and closed when the call ends, including when a caller stops
    iterating a stream early.
    """

    name: str
    models: tuple[ModelInfo, ...] = ()

    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @abstractmethod
    def build_request(
        self, messages: list[Message], config: ModelConfig, *, stream: bool
    ) -> VendorRequest:
        """Return the vendor request for ``messages``."""
        raise NotImplementedError

    @abstractmethod
    def parse_completion(self, data: dict[str, Any]) -> Message:
        """Convert a one-shot vendor response into an assistant message."""
        raise NotImplementedError

    @abstractmethod
    def decode_frame(self, frame: str, model: str) -> list[StreamEvent]:
        """Turn one framed line into zero or more events."""
        raise NotImplementedError

    @abstractmethod
    def estimate_cost(self, usage: TokenUsage, model: str) -> float:
        """Price ``usage`` for ``model``; unknown models cost ``0``."""
        raise NotImplementedError

    def _client(self) -> httpx.AsyncClient:
        # No timeout: a hung vendor connection blocks the call.
        return httpx.AsyncClient(transport=self._transport, timeout=None)

    async def chat(self, messages: list[Message], config: ModelConfig) -> Message:
        """Issue one non-streaming request and return the assistant reply."""
        request = self.build_request(messages, config, stream=False)

        async with self._client() as client:
            try:
                response = await client.post(
                    request.url, headers=request.headers, params=request.params, json=request.body
                )
            except httpx.HTTPError as exc:
                logger.warning("%s request failed: %s", self.name, exc)
                raise ProviderError(self.name, str(exc) or type(exc).__name__) from exc

        if response.is_error:
            raise ProviderError(
                self.name,
                error_detail(response.content, response.reason_phrase),
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ProviderError(self.name, "response body is not JSON", response.status_code) from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape", response.status_code)
        return self.parse_completion(data)

    def stream(self, messages: list[Message], config: ModelConfig) -> AsyncIterator[StreamEvent]:
        """Return a single-pass async iterator of events ending in ``done`` or ``error``."""

        async def _gen() -> AsyncIterator[StreamEvent]:
            request = self.build_request(messages, config, stream=True)
            callbacks = config.stream_callbacks

            async with self._client() as client:
                try:
                    async with client.stream(
                        "POST",
                        request.url,
                        headers=request.headers,
                        params=request.params,
                        json=request.body,
                    ) as response:
                        if response.is_error:
                            body = await response.aread()
                            yield StreamEvent(
                                type="error", error=error_detail(body, response.reason_phrase)
                            )
                            return

                        if not _has_body(response):
                            yield StreamEvent(type="error", error="No response body")
                            return

                        async for frame in iter_frames(response.aiter_bytes()):
                            for event in self.decode_frame(frame, config.model):
                                notify(callbacks, event)
                                yield event
                                if event.is_terminal:
                                    return
                except httpx.HTTPError as exc:
                    logger.warning("%s stream failed: %s", self.name, exc)
                    yield StreamEvent(type="error", error=str(exc) or type(exc).__name__)
                    return

            # Vendor closed the stream without a usage-bearing frame.
            yield StreamEvent(type="done")

        return _gen()
