"""
Domain exceptions for statements app.

Exception Hierarchy:
    StatementsServiceError (base)
    └── InvalidDateRangeError

Customer and movement lookups raise the customers and ledger apps' own
not-found errors.
"""


class StatementsServiceError(Exception):
    """Base exception for all statements service errors."""
    pass


class InvalidDateRangeError(StatementsServiceError):
    """Raised when a statement period ends before it starts."""
    pass
