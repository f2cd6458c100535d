"""
Validation errors for loyalty operations.

All of these are user-facing and non-fatal: they are raised before any
state is mutated, so a rejected action leaves the session untouched.
"""


class LoyaltyValidationError(ValueError):
    """Base class for rejected loyalty actions."""


class MissingFieldError(LoyaltyValidationError):
    """Raised when a required program field is empty."""
    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class InvalidAmountError(LoyaltyValidationError):
    """Raised when a purchase or redeem amount is not a positive number."""


class InsufficientBalanceError(LoyaltyValidationError):
    """Raised when redeeming more points than the program balance holds."""
    def __init__(self, message: str, requested, available):
        super().__init__(message)
        self.requested = requested
        self.available = available


class WalletNotConnectedError(LoyaltyValidationError):
    """Raised when issuing or redeeming without a connected wallet."""


class UnknownProgramError(LoyaltyValidationError):
    """Raised when a program id is not in the registry."""
