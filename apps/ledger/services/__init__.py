"""Services for ledger business logic."""

from .exceptions import (
    LedgerServiceError,
    MovementValidationError,
    MovementNotFoundError,
    PartialWriteError,
)
from .movement_entry import RecordedMovement, record_movement
from .transfers import RecordedTransfer, record_internal_transfer
from .movement_management import (
    FeedItem,
    CustomerFeed,
    CustomerBalances,
    get_movement,
    commission_pool,
    build_feed_item,
    list_customer_movements,
    get_customer_balances,
    update_movement,
    delete_movement,
)

__all__ = [
    # Exceptions
    'LedgerServiceError',
    'MovementValidationError',
    'MovementNotFoundError',
    'PartialWriteError',
    # Services
    'RecordedMovement',
    'record_movement',
    'RecordedTransfer',
    'record_internal_transfer',
    'FeedItem',
    'CustomerFeed',
    'CustomerBalances',
    'get_movement',
    'commission_pool',
    'build_feed_item',
    'list_customer_movements',
    'get_customer_balances',
    'update_movement',
    'delete_movement',
]
