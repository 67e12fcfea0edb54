"""
Domain-specific exceptions for the ledger app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service errors."""
    pass


class MovementValidationError(LedgerServiceError):
    """Raised when a movement draft is malformed or out of range."""
    pass


class MovementNotFoundError(LedgerServiceError):
    """Raised when a movement does not exist or belongs to another owner."""
    pass


class PartialWriteError(LedgerServiceError):
    """
    Raised when the commission half of a split could not be written.

    ``rolled_back`` tells the caller whether the primary movement was
    undone as well.
    """

    def __init__(self, message, *, rolled_back=True, primary_movement_number=None):
        super().__init__(message)
        self.rolled_back = rolled_back
        self.primary_movement_number = primary_movement_number
