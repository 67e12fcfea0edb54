"""
Domain-specific exceptions for customers app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class CustomersServiceError(Exception):
    """Base exception for all customers service errors."""
    pass


class CustomerNotFoundError(CustomersServiceError):
    """Raised when a customer link or its backing profile does not exist."""
    pass


class CustomerValidationError(CustomersServiceError):
    """Raised when customer input is invalid (e.g. blank name)."""
    pass


class DuplicateCustomerError(CustomersServiceError):
    """Raised when a registered user is already in the owner's list."""
    pass


class CannotAddSelfError(CustomersServiceError):
    """Raised when an owner tries to add their own account as a customer."""
    pass


class ProfitLossAccountProtectedError(CustomersServiceError):
    """Raised on reset, delete or rename of the profit-and-loss customer."""
    pass


class OutstandingBalanceError(CustomersServiceError):
    """
    Raised when deleting a customer whose balance is not settled.

    ``balances`` holds the non-zero BalanceLine values so the caller can
    show them and decide whether to confirm.
    """

    def __init__(self, message, *, balances):
        super().__init__(message)
        self.balances = balances
