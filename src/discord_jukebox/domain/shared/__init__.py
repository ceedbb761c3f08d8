"""
Shared Domain Kernel

Contains exceptions, messages, and constrained types shared across the package.
"""

from discord_jukebox.domain.shared.exceptions import (
    DomainError,
    InteractionDeliveryFailure,
    ResolutionFailure,
    StreamOpenError,
    VoiceConnectDegraded,
)

__all__ = [
    "DomainError",
    "InteractionDeliveryFailure",
    "ResolutionFailure",
    "StreamOpenError",
    "VoiceConnectDegraded",
]
