"""
Custom exceptions for the Poker Cashier.

This module defines all custom exceptions used throughout the application
for consistent error handling. Every ``message`` is safe to show to a
channel; ``details`` carries the structured context for logs.
"""

from typing import Any, Dict, Optional


class CashierError(Exception):
    """Base exception for all cashier errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(CashierError):
    """Raised when user input validation fails."""

    pass


class SessionError(CashierError):
    """Raised when a session precondition does not hold."""

    pass


class SessionNotFoundError(SessionError):
    """Raised when the channel has no session."""

    pass


class SessionStateError(SessionError):
    """Raised when the session status does not allow the operation."""

    pass


class NotSessionHostError(SessionError):
    """Raised when someone other than the host tries a host-only action."""

    pass


class PlayerNotFoundError(SessionError):
    """Raised when the user never joined the session."""

    pass


class CashoutAlreadyRecordedError(SessionError):
    """Raised when a settled cashout is submitted again."""

    pass


class RateUnavailableError(CashierError):
    """Raised when neither the price feed nor the static override yields a rate."""

    pass


class PriceFeedUnavailableError(CashierError):
    """Raised by price feeds on network errors, bad status or malformed payloads."""

    pass


class PayoutError(CashierError):
    """Raised when the payout transport fails to send a transfer."""

    pass


# Convenience functions for error creation
def create_validation_error(field: str, value: Any, reason: str) -> ValidationError:
    """Create a validation error with standardized format."""
    return ValidationError(reason, {"field": field, "value": value})


def create_payout_error(user_id: str, amount_wei: int, cause: BaseException) -> PayoutError:
    """Create a payout error that keeps the transport's message."""
    return PayoutError(str(cause) or cause.__class__.__name__, {"user_id": user_id, "amount_wei": amount_wei})
