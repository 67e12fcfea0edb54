"""
Reset and delete operations on customers.

Both purge movements; delete also removes the link and, for local
customers, the contact row. A registered user's own account is never
touched. The profit-and-loss customer is protected from both.
"""

import logging
from dataclasses import dataclass
from typing import List
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.customers.models import CustomerKind, LocalCustomer
from apps.ledger import engine
from apps.ledger.models import Movement
from apps.ledger.signals import notify_ledger_changed, SCOPE_ALL

from .customer_management import get_customer_link
from .exceptions import ProfitLossAccountProtectedError, OutstandingBalanceError
from .identity import ResolvedCustomer, resolve_customer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionPreview:
    customer: ResolvedCustomer
    movement_count: int
    outstanding_balances: List[engine.BalanceLine]

    @property
    def has_outstanding_balance(self) -> bool:
        return bool(self.outstanding_balances)


def _link_balances(link) -> List[engine.BalanceLine]:
    entries = [engine.LedgerEntry.from_movement(m) for m in Movement.objects.filter(customer_link=link)]
    return engine.current_balances(entries)


def preview_customer_deletion(*, owner: User, link_id: UUID) -> DeletionPreview:
    """Movement count and unsettled balances, for the confirmation step."""
    link = get_customer_link(owner=owner, link_id=link_id)
    return DeletionPreview(
        customer=resolve_customer(link),
        movement_count=Movement.objects.filter(customer_link=link).count(),
        outstanding_balances=_link_balances(link),
    )


@transaction.atomic
def reset_customer_account(*, owner: User, link_id: UUID) -> int:
    """
    Delete every movement of a customer, keeping the customer.

    Returns:
        Number of movements deleted

    Raises:
        CustomerNotFoundError: If the link doesn't exist
        ProfitLossAccountProtectedError: If the link is the profit-and-loss customer
    """
    link = get_customer_link(owner=owner, link_id=link_id)
    if link.is_profit_loss:
        raise ProfitLossAccountProtectedError("The profit and loss account cannot be reset")

    deleted = Movement.objects.filter(customer_link=link).count()
    Movement.objects.filter(customer_link=link).delete()

    logger.info("Reset customer %s for owner %s: %d movement(s) deleted", link.id, owner.id, deleted)
    notify_ledger_changed(owner_id=owner.id, scope=SCOPE_ALL, link_ids=[link.id])
    return deleted


@transaction.atomic
def delete_customer(*, owner: User, link_id: UUID, acknowledge_outstanding: bool = False) -> int:
    """
    Delete a customer together with all of its movements.

    Deleting a customer whose balance is not zero in some currency needs
    ``acknowledge_outstanding=True``; without it OutstandingBalanceError
    carries the balances back to the caller.

    Returns:
        Number of movements deleted

    Raises:
        CustomerNotFoundError: If the link doesn't exist
        ProfitLossAccountProtectedError: If the link is the profit-and-loss customer
        OutstandingBalanceError: If balances are unsettled and not acknowledged
    """
    link = get_customer_link(owner=owner, link_id=link_id)
    if link.is_profit_loss:
        raise ProfitLossAccountProtectedError("The profit and loss account cannot be deleted")

    balances = _link_balances(link)
    if balances:
        if not acknowledge_outstanding:
            raise OutstandingBalanceError(
                "Customer has an unsettled balance; confirm to delete anyway",
                balances=balances,
            )
        logger.warning(
            "Deleting customer %s for owner %s with outstanding balance: %s",
            link.id, owner.id,
            ', '.join(f"{line.balance} {line.currency}" for line in balances),
        )

    deleted = Movement.objects.filter(customer_link=link).count()
    Movement.objects.filter(customer_link=link).delete()

    local_customer_id = link.local_customer_id if link.kind == CustomerKind.LOCAL else None
    link.delete()
    if local_customer_id is not None:
        LocalCustomer.objects.filter(id=local_customer_id).delete()

    logger.info("Deleted customer %s for owner %s: %d movement(s) deleted", link_id, owner.id, deleted)
    notify_ledger_changed(owner_id=owner.id, scope=SCOPE_ALL, link_ids=[link_id])
    return deleted
