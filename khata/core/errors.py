"""Domain exceptions for the debt ledger."""


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class ValidationError(LedgerError):
    """Raised when an amount or field is rejected before any write."""
    pass


class NotFoundError(LedgerError):
    """Raised when a debt or payment does not exist."""
    pass


class ConflictError(LedgerError):
    """Raised when a debt changed between read and write."""
    pass


class StoreError(LedgerError):
    """Raised when the store reports a failure it could not classify."""
    pass


class NoPendingDebtError(LedgerError):
    """Raised when a collection is requested for an owner with nothing open."""
    pass


class PartialAllocationError(LedgerError):
    """
    Raised when a collection stopped partway through.

    Payments recorded before the failure stand; nothing is rolled back.
    """

    def __init__(self, message, amount_applied, amount_remaining, allocations=None, cause=None):
        super().__init__(message)
        self.amount_applied = amount_applied
        self.amount_remaining = amount_remaining
        self.allocations = allocations or []
        self.cause = cause
