"""Caller-side helpers for consuming an adapter's event stream."""

from __future__ import annotations

from collections.abc import AsyncIterable

from chat_adapters.errors import ProtocolViolationError
from chat_adapters.partial import PartialParse, parse_partial_json
from chat_adapters.types import Citation, FunctionCall, Message, StreamEvent, TokenUsage, ToolCall


class StreamAccumulator:
    """Applies stream events in order and keeps the running result.

    Tokens are concatenated. Tool-call fragments sharing an ``index`` are
    merged, with argument strings joined in arrival order; calls without an
    index are kept as they came. Any event after ``done`` or ``error`` raises
    :class:`ProtocolViolationError`.
    """

    def __init__(self) -> None:
        self._chunks: list[str] = []
        self._tool_calls: list[ToolCall] = []
        self._slots: dict[int, int] = {}
        self.thinking_steps: list[str] = []
        self.citations: list[Citation] = []
        self.terminal: StreamEvent | None = None

    def apply(self, event: StreamEvent) -> None:
        if self.terminal is not None:
            raise ProtocolViolationError(event.type, self.terminal.type)

        if event.type == "token" and event.content:
            self._chunks.append(event.content)
        elif event.type == "tool_call" and event.tool_call is not None:
            self._merge_tool_call(event.tool_call)
        elif event.type == "thinking" and event.thinking_step:
            self.thinking_steps.append(event.thinking_step)
        elif event.type == "citation" and event.citation is not None:
            self.citations.append(event.citation)
        elif event.is_terminal:
            self.terminal = event

    def _merge_tool_call(self, fragment: ToolCall) -> None:
        if fragment.index is None or fragment.index not in self._slots:
            if fragment.index is not None:
                self._slots[fragment.index] = len(self._tool_calls)
            self._tool_calls.append(fragment.model_copy(deep=True))
            return

        position = self._slots[fragment.index]
        current = self._tool_calls[position]
        self._tool_calls[position] = current.model_copy(
            update={
                "id": current.id or fragment.id,
                "function": FunctionCall(
                    name=current.function.name or fragment.function.name,
                    arguments=current.function.arguments + fragment.function.arguments,
                ),
            }
        )

    @property
    def content(self) -> str:
        return "".join(self._chunks)

    @property
    def tool_calls(self) -> list[ToolCall]:
        return list(self._tool_calls)

    @property
    def finished(self) -> bool:
        return self.terminal is not None

    @property
    def usage(self) -> TokenUsage | None:
        if self.terminal is None or self.terminal.type != "done":
            return None
        return self.terminal.usage

    @property
    def error(self) -> str | None:
        if self.terminal is None or self.terminal.type != "error":
            return None
        return self.terminal.error

    def partial(self) -> PartialParse:
        """Tolerant parse of the content received so far."""
        return parse_partial_json(self.content)

    def to_message(self) -> Message:
        return Message(
            role="assistant",
            content=self.content,
            tool_calls=self.tool_calls or None,
            citations=list(self.citations) or None,
        )


async def collect(stream: AsyncIterable[StreamEvent]) -> StreamAccumulator:
    """Drain ``stream`` into a new accumulator."""
    acc = StreamAccumulator()
    async for event in stream:
        acc.apply(event)
    return acc
