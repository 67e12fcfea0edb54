"""
Movement management service.

Reading a customer's feed and balances, and editing or deleting single
movements while keeping commission splits and transfer legs consistent.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.customers.services import ResolvedCustomer, get_customer_link, resolve_customer
from apps.ledger import engine
from apps.ledger.models import Movement
from apps.ledger.signals import notify_ledger_changed, SCOPE_MOVEMENTS

from . import movement_entry
from .exceptions import MovementNotFoundError, MovementValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedItem:
    movement: Movement
    combined_amount: Decimal
    commission_amount: Decimal
    net_amount: Decimal


@dataclass(frozen=True)
class CustomerFeed:
    customer: ResolvedCustomer
    items: List[FeedItem]


@dataclass(frozen=True)
class CustomerBalances:
    customer: ResolvedCustomer
    balances: List[engine.BalanceLine]
    summary: List[engine.CurrencySummary]


def get_movement(*, owner: User, movement_id: UUID) -> Movement:
    """
    Raises:
        MovementNotFoundError: If the movement doesn't exist or belongs to another owner
    """
    try:
        return (
            Movement.objects
            .select_related('customer_link', 'related_commission_movement')
            .get(id=movement_id, owner=owner)
        )
    except Movement.DoesNotExist:
        raise MovementNotFoundError(f"Movement with ID {movement_id} not found")


def commission_pool(*, owner: User, movements: List[Movement]) -> List[engine.LedgerEntry]:
    """
    Entries needed to compute combined and net amounts for ``movements``:
    the movements themselves plus every commission split from them.
    """
    primary_ids = [movement.id for movement in movements if not movement.is_commission_movement]
    related = Movement.objects.filter(
        owner=owner,
        is_commission_movement=True,
        related_commission_movement_id__in=primary_ids,
    )
    pool = {movement.id: movement for movement in movements}
    for movement in related:
        pool.setdefault(movement.id, movement)
    return [engine.LedgerEntry.from_movement(movement) for movement in pool.values()]


def build_feed_item(movement: Movement, pool: List[engine.LedgerEntry]) -> FeedItem:
    entry = engine.LedgerEntry.from_movement(movement)
    return FeedItem(
        movement=movement,
        combined_amount=engine.combined_amount(entry, pool),
        commission_amount=engine.commission_total(entry, pool),
        net_amount=engine.net_amount(entry, pool),
    )


def _matches(movement: Movement, term: str) -> bool:
    local_date = timezone.localtime(movement.created_at).date().isoformat()
    haystack = [
        str(movement.movement_number),
        str(movement.amount),
        movement.note,
        movement.sender_name,
        movement.beneficiary_name,
        local_date,
    ]
    amount = movement.amount
    if amount == amount.to_integral_value():
        haystack.append(str(amount.quantize(Decimal('1'))))
    return any(term in value.lower() for value in haystack if value)


def list_customer_movements(
    *,
    owner: User,
    link_id: UUID,
    search: Optional[str] = None
) -> CustomerFeed:
    """
    A customer's movement feed, most recent first.

    The profit-and-loss customer sees only commission movements, everyone
    else only ordinary ones. ``search`` filters by movement number,
    amount, note, party names or date (YYYY-MM-DD).

    Raises:
        CustomerNotFoundError: If the customer doesn't belong to the owner
    """
    link = get_customer_link(owner=owner, link_id=link_id)
    customer = resolve_customer(link)

    movements = {m.id: m for m in Movement.objects.filter(owner=owner, customer_link=link)}
    entries = [engine.LedgerEntry.from_movement(m) for m in movements.values()]
    visible = engine.sort_feed(engine.filter_for_customer(entries, customer.is_profit_loss))
    visible_movements = [movements[entry.id] for entry in visible]

    term = (search or '').strip().lower()
    if term:
        visible_movements = [m for m in visible_movements if _matches(m, term)]

    pool = commission_pool(owner=owner, movements=visible_movements)
    return CustomerFeed(
        customer=customer,
        items=[build_feed_item(movement, pool) for movement in visible_movements],
    )


def get_customer_balances(*, owner: User, link_id: UUID) -> CustomerBalances:
    """
    Current balances (currency order) and the incoming/outgoing summary.

    Raises:
        CustomerNotFoundError: If the customer doesn't belong to the owner
    """
    link = get_customer_link(owner=owner, link_id=link_id)
    customer = resolve_customer(link)
    entries = [
        engine.LedgerEntry.from_movement(m)
        for m in Movement.objects.filter(owner=owner, customer_link=link)
    ]
    return CustomerBalances(
        customer=customer,
        balances=engine.current_balances(entries, order=engine.BALANCE_ORDER_CURRENCY),
        summary=engine.movement_summary(entries),
    )


def _transfer_legs(movement: Movement) -> List[Movement]:
    if not (movement.is_internal_transfer and movement.transfer_group_id):
        return [movement]
    return list(
        Movement.objects
        .select_for_update()
        .filter(
            owner_id=movement.owner_id,
            transfer_group_id=movement.transfer_group_id,
            is_commission_movement=False,
        )
    )


@transaction.atomic
def update_movement(
    *,
    owner: User,
    movement_id: UUID,
    amount=None,
    currency: Optional[str] = None,
    note: Optional[str] = None
) -> Movement:
    """
    Edit a movement's amount, currency or note.

    Commission movements keep their primary's currency and must stay below
    its amount. A primary must stay above the commission split from it,
    and its commissions follow a currency change. Editing one leg of a
    transfer updates the other leg's amount and currency too.

    Raises:
        MovementNotFoundError: If the movement doesn't exist
        MovementValidationError: If the edit breaks one of the rules above
    """
    try:
        movement = Movement.objects.select_for_update().get(id=movement_id, owner=owner)
    except Movement.DoesNotExist:
        raise MovementNotFoundError(f"Movement with ID {movement_id} not found")

    new_amount = movement_entry.parse_amount(amount) if amount is not None else movement.amount
    new_currency = (
        movement_entry.validate_currency(currency) if currency is not None else movement.currency
    )

    touched_links = {movement.customer_link_id}

    if movement.is_commission_movement:
        if new_currency != movement.currency:
            raise MovementValidationError("A commission keeps the currency of its movement")
        primary = movement.related_commission_movement
        if primary is not None:
            others = (
                primary.commission_movements
                .exclude(id=movement.id)
                .values_list('amount', flat=True)
            )
            if new_amount + sum(others, Decimal('0')) >= primary.amount:
                raise MovementValidationError("Commission must be less than the amount")
    else:
        legs = _transfer_legs(movement)
        commissions = list(
            Movement.objects
            .select_for_update()
            .filter(related_commission_movement__in=legs, is_commission_movement=True)
        )
        if commissions and new_amount <= sum((c.amount for c in commissions), Decimal('0')):
            raise MovementValidationError("Commission must be less than the amount")

        if new_currency != movement.currency:
            Movement.objects.filter(id__in=[c.id for c in commissions]).update(currency=new_currency)
            touched_links.update(c.customer_link_id for c in commissions)

        other_legs = [leg for leg in legs if leg.id != movement.id]
        if other_legs:
            Movement.objects.filter(id__in=[leg.id for leg in other_legs]).update(
                amount=new_amount,
                currency=new_currency,
            )
            touched_links.update(leg.customer_link_id for leg in other_legs)

    movement.amount = new_amount
    movement.currency = new_currency
    if note is not None:
        movement.note = note.strip()
    movement.save()

    notify_ledger_changed(owner_id=owner.id, scope=SCOPE_MOVEMENTS, link_ids=touched_links)
    return movement


@transaction.atomic
def delete_movement(*, owner: User, movement_id: UUID) -> int:
    """
    Delete a movement together with what depends on it.

    Deleting a primary removes the commissions split from it; deleting one
    leg of a transfer removes the other leg as well. Deleting a commission
    removes only that commission.

    Returns:
        Number of movements deleted

    Raises:
        MovementNotFoundError: If the movement doesn't exist
    """
    try:
        movement = Movement.objects.select_for_update().get(id=movement_id, owner=owner)
    except Movement.DoesNotExist:
        raise MovementNotFoundError(f"Movement with ID {movement_id} not found")

    ids = {movement.id}
    if not movement.is_commission_movement:
        ids.update(leg.id for leg in _transfer_legs(movement))
        ids.update(
            Movement.objects
            .filter(related_commission_movement_id__in=ids, is_commission_movement=True)
            .values_list('id', flat=True)
        )

    doomed = Movement.objects.filter(id__in=ids, owner=owner)
    link_ids = set(doomed.values_list('customer_link_id', flat=True))
    count = doomed.count()
    doomed.delete()

    logger.info("Deleted movement %s for owner %s (%d row(s))", movement.movement_number, owner.id, count)
    notify_ledger_changed(owner_id=owner.id, scope=SCOPE_MOVEMENTS, link_ids=link_ids)
    return count
