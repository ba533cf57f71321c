"""
Error taxonomy shared by all platform adapters.
"""

from __future__ import annotations


class BotBridgeError(Exception):
    """Base class for adapter errors."""


class ConfigurationError(BotBridgeError):
    """A required credential or option is missing at construction time."""


class VerificationError(BotBridgeError):
    """An inbound request failed its signature or token check."""


class UnsupportedOperationError(BotBridgeError):
    """The platform API does not expose the requested operation."""


class TransportError(BotBridgeError):
    """The outbound platform API call failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CallbackError(BotBridgeError):
    """The bot logic callback raised while handling an activity."""
