"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class ResolutionFailure(DomainError):
    """Raised when no provider produced a playable result for a query."""

    def __init__(self, query: str, message: str | None = None) -> None:
        msg = message or f"No playable result for '{query}'"
        super().__init__(msg, code="RESOLUTION_FAILURE")
        self.query = query


class StreamOpenError(DomainError):
    """Raised by the voice sink when a track's audio stream cannot be opened."""

    def __init__(self, url: str, message: str | None = None) -> None:
        msg = message or f"Could not open stream for {url}"
        super().__init__(msg, code="STREAM_OPEN_FAILURE")
        self.url = url


class VoiceConnectDegraded(DomainError):
    """Raised when the voice handshake does not become ready in time."""

    def __init__(self, channel_id: int, timeout: float, message: str | None = None) -> None:
        msg = message or f"Voice channel {channel_id} not ready after {timeout:g}s"
        super().__init__(msg, code="VOICE_CONNECT_DEGRADED")
        self.channel_id = channel_id
        self.timeout = timeout


class InteractionDeliveryFailure(DomainError):
    """Raised when a reply or edit could not be delivered to the command surface."""

    def __init__(self, operation: str, message: str | None = None) -> None:
        msg = message or f"Failed to deliver '{operation}'"
        super().__init__(msg, code="INTERACTION_DELIVERY_FAILURE")
        self.operation = operation
