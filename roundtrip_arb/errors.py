"""
Error types raised by the arbitrage bot.
"""
from typing import Optional


class ArbitrageBotError(Exception):
    """Base class for all bot errors."""


class VenueError(ArbitrageBotError):
    """Non-success response from Jupiter, the Solana RPC or the Jito relay."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            base = f"{base} (status={self.status_code})"
        if self.body:
            base = f"{base}: {self.body[:200]}"
        return base


class InvalidPayloadError(ArbitrageBotError):
    """Transaction payload is empty or cannot be deserialized."""


class ConfigurationError(ArbitrageBotError):
    """Required setting is missing or invalid. Fatal, raised before the loop starts."""
