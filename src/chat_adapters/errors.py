"""Package specific exception hierarchy."""


class ChatAdapterError(Exception):
    """Base exception for chat_adapters package."""


class UnknownProviderError(ChatAdapterError):
    """Raised when no adapter is registered for a provider identifier."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unknown provider: {provider}")
        self.provider = provider


class UnknownModelError(ChatAdapterError):
    """Raised when a model id is missing from the combined catalog."""

    def __init__(self, model: str) -> None:
        super().__init__(f"Unknown model: {model}")
        self.model = model


class ProviderError(ChatAdapterError):
    """Represents provider-specific HTTP or API errors."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        suffix = f" (status {status_code})" if status_code is not None else ""
        super().__init__(f"{provider}: {message}{suffix}")
        self.provider = provider
        self.detail = message
        self.status_code = status_code


class ProtocolViolationError(ChatAdapterError):
    """Raised when a stream yields an event after its terminal event."""

    def __init__(self, event_type: str, terminal_type: str) -> None:
        super().__init__(f"Received '{event_type}' event after terminal '{terminal_type}' event.")
        self.event_type = event_type
        self.terminal_type = terminal_type
