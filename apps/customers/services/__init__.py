"""Services for customers business logic."""

from .exceptions import (
    CustomersServiceError,
    CustomerNotFoundError,
    CustomerValidationError,
    DuplicateCustomerError,
    CannotAddSelfError,
    ProfitLossAccountProtectedError,
    OutstandingBalanceError,
)
from .identity import (
    ResolvedCustomer,
    format_local_account_number,
    resolve_customer,
    resolve_customer_links,
)
from .customer_search import search_registered_profiles
from .customer_management import (
    CustomerSummary,
    get_customer_link,
    add_registered_customer,
    add_local_customer,
    update_local_customer,
    get_or_create_profit_loss_customer,
    list_customers,
    get_customer_detail,
)
from .customer_lifecycle import (
    DeletionPreview,
    preview_customer_deletion,
    reset_customer_account,
    delete_customer,
)

__all__ = [
    # Exceptions
    'CustomersServiceError',
    'CustomerNotFoundError',
    'CustomerValidationError',
    'DuplicateCustomerError',
    'CannotAddSelfError',
    'ProfitLossAccountProtectedError',
    'OutstandingBalanceError',
    # Identity
    'ResolvedCustomer',
    'format_local_account_number',
    'resolve_customer',
    'resolve_customer_links',
    # Services
    'search_registered_profiles',
    'CustomerSummary',
    'get_customer_link',
    'add_registered_customer',
    'add_local_customer',
    'update_local_customer',
    'get_or_create_profit_loss_customer',
    'list_customers',
    'get_customer_detail',
    'DeletionPreview',
    'preview_customer_deletion',
    'reset_customer_account',
    'delete_customer',
]
