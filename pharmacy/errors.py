"""Exceptions raised inside the cart and order core."""


class PharmacyError(Exception):
    """Base exception for storefront core errors."""


class ValidationError(PharmacyError):
    """Raised for client-correctable input problems."""

    def __init__(self, message: str, field: str = None) -> None:
        super().__init__(message)
        self.field = field


class TotalsMismatch(PharmacyError):
    """Raised when supplied order totals disagree with the line items."""

    def __init__(self, field: str, expected, supplied) -> None:
        super().__init__(f"{field} mismatch: expected {expected}, got {supplied}")
        self.field = field
        self.expected = expected
        self.supplied = supplied


class PersistenceFailure(PharmacyError):
    """Raised when an order store write fails."""

    def __init__(self, stage: str, cause: Exception = None) -> None:
        super().__init__(f"order store write failed at {stage}: {cause}")
        self.stage = stage
        self.cause = cause


class CorruptLocalState(PharmacyError):
    """Raised when a persisted cart cannot be parsed."""
