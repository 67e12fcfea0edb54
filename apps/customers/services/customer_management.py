"""
Customer management service.

Adds registered and local customers to an owner's list, keeps the
profit-and-loss pseudo-customer, and builds list/detail views.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.db import transaction, IntegrityError
from django.db.models import Max

from apps.accounts.models import User
from apps.customers.models import CustomerLink, CustomerKind, LocalCustomer
from apps.ledger import engine
from apps.ledger.models import Movement
from apps.ledger.signals import notify_ledger_changed, SCOPE_CUSTOMERS

from .exceptions import (
    CustomerNotFoundError,
    CustomerValidationError,
    DuplicateCustomerError,
    CannotAddSelfError,
    ProfitLossAccountProtectedError,
)
from .identity import ResolvedCustomer, resolve_customer, resolve_customer_links

logger = logging.getLogger(__name__)

PROFIT_LOSS_ACCOUNT_NUMBER = 0


@dataclass(frozen=True)
class CustomerSummary:
    customer: ResolvedCustomer
    balances: List[engine.BalanceLine]
    movement_count: int
    last_activity_at: Optional[datetime]


def get_customer_link(*, owner: User, link_id: UUID) -> CustomerLink:
    """
    Fetch one of the owner's customer links.

    Raises:
        CustomerNotFoundError: If the link doesn't exist or belongs to another owner
    """
    try:
        return (
            CustomerLink.objects
            .select_related('registered_user', 'local_customer')
            .get(id=link_id, owner=owner)
        )
    except CustomerLink.DoesNotExist:
        raise CustomerNotFoundError(f"Customer with ID {link_id} not found")


@transaction.atomic
def add_registered_customer(*, owner: User, registered_user_id: UUID) -> CustomerLink:
    """
    Link another platform user into the owner's customer list.

    Raises:
        CannotAddSelfError: If the user is the owner
        CustomerNotFoundError: If the user doesn't exist
        DuplicateCustomerError: If the user is already linked (caught from IntegrityError)
    """
    if str(registered_user_id) == str(owner.id):
        raise CannotAddSelfError("You cannot add yourself as a customer")

    try:
        profile = User.objects.get(id=registered_user_id, is_active=True)
    except User.DoesNotExist:
        raise CustomerNotFoundError(f"User with ID {registered_user_id} not found")

    if CustomerLink.objects.filter(owner=owner, registered_user=profile).exists():
        raise DuplicateCustomerError(f"@{profile.username} is already in your list")

    try:
        with transaction.atomic():
            link = CustomerLink.objects.create(
                owner=owner,
                kind=CustomerKind.REGISTERED,
                registered_user=profile,
            )
    except IntegrityError:
        # Concurrent add of the same user
        raise DuplicateCustomerError(f"@{profile.username} is already in your list")

    notify_ledger_changed(owner_id=owner.id, scope=SCOPE_CUSTOMERS, link_ids=[link.id])
    return link


def _next_local_account_number(owner: User) -> int:
    current = (
        LocalCustomer.objects
        .filter(owner=owner)
        .aggregate(top=Max('local_account_number'))['top']
    )
    return (current or 0) + 1


def add_local_customer(
    *,
    owner: User,
    display_name: str,
    phone: str = '',
    note: str = '',
    max_retries: int = 5
) -> CustomerLink:
    """
    Create a local contact and its customer link.

    Local numbers are per owner and computed as max + 1; a collision with
    a concurrent insert is retried in a fresh transaction.

    Raises:
        CustomerValidationError: If the name is blank
        RuntimeError: If no number could be assigned after retries
    """
    display_name = (display_name or '').strip()
    if not display_name:
        raise CustomerValidationError("Customer name is required")

    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                local = LocalCustomer.objects.create(
                    owner=owner,
                    display_name=display_name,
                    phone=(phone or '').strip(),
                    note=(note or '').strip(),
                    local_account_number=_next_local_account_number(owner),
                )
                link = CustomerLink.objects.create(
                    owner=owner,
                    kind=CustomerKind.LOCAL,
                    local_customer=local,
                )
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to assign a local account number after {max_retries} attempts"
                )
            continue

        notify_ledger_changed(owner_id=owner.id, scope=SCOPE_CUSTOMERS, link_ids=[link.id])
        return link

    # Should never reach here
    raise RuntimeError("Unexpected error in local customer creation")


@transaction.atomic
def update_local_customer(
    *,
    owner: User,
    link_id: UUID,
    display_name: Optional[str] = None,
    phone: Optional[str] = None,
    note: Optional[str] = None
) -> CustomerLink:
    """
    Edit a local contact's details.

    Raises:
        CustomerNotFoundError: If the link doesn't exist
        CustomerValidationError: If the link is a registered customer or the name is blank
        ProfitLossAccountProtectedError: If renaming the profit-and-loss customer
    """
    link = get_customer_link(owner=owner, link_id=link_id)
    if link.kind != CustomerKind.LOCAL:
        raise CustomerValidationError("Registered customers manage their own profile")

    local = LocalCustomer.objects.select_for_update().get(id=link.local_customer_id)

    if display_name is not None:
        display_name = display_name.strip()
        if not display_name:
            raise CustomerValidationError("Customer name is required")
        if local.is_profit_loss_account and display_name != local.display_name:
            raise ProfitLossAccountProtectedError("The profit and loss account cannot be renamed")
        local.display_name = display_name
    if phone is not None:
        local.phone = phone.strip()
    if note is not None:
        local.note = note.strip()
    local.save()

    link.local_customer = local
    notify_ledger_changed(owner_id=owner.id, scope=SCOPE_CUSTOMERS, link_ids=[link.id])
    return link


def _find_profit_loss_link(owner: User) -> Optional[CustomerLink]:
    return (
        CustomerLink.objects
        .select_related('local_customer')
        .filter(owner=owner, local_customer__is_profit_loss_account=True)
        .first()
    )


def get_or_create_profit_loss_customer(*, owner: User) -> CustomerLink:
    """
    Return the owner's profit-and-loss customer link, creating it on first use.

    Idempotent: repeated calls return the same link. A concurrent creation
    trips the one-per-owner constraint and the existing row is returned.
    """
    link = _find_profit_loss_link(owner)
    if link is not None:
        return link

    try:
        with transaction.atomic():
            local = LocalCustomer.objects.create(
                owner=owner,
                display_name=settings.LEDGER_PROFIT_LOSS_NAME,
                local_account_number=PROFIT_LOSS_ACCOUNT_NUMBER,
                is_profit_loss_account=True,
            )
            link = CustomerLink.objects.create(
                owner=owner,
                kind=CustomerKind.LOCAL,
                local_customer=local,
            )
    except IntegrityError:
        link = _find_profit_loss_link(owner)
        if link is None:
            raise
        return link

    logger.info("Created profit and loss account for owner %s", owner.id)
    return link


def list_customers(*, owner: User) -> List[CustomerSummary]:
    """
    The owner's customer list, newest first, with current balances.

    Balances use the list-view order (largest absolute balance first).
    Links whose backing record is missing are skipped.
    """
    links = list(CustomerLink.objects.filter(owner=owner).order_by('-created_at'))
    customers = resolve_customer_links(links)

    entries = [
        engine.LedgerEntry.from_movement(movement)
        for movement in Movement.objects.filter(owner=owner)
    ]
    by_link = {}
    for entry in entries:
        by_link.setdefault(entry.customer_link_id, []).append(entry)

    summaries = []
    for customer in customers:
        link_entries = by_link.get(customer.id, [])
        visible = engine.filter_for_customer(link_entries, customer.is_profit_loss)
        summaries.append(CustomerSummary(
            customer=customer,
            balances=engine.current_balances(link_entries, order=engine.BALANCE_ORDER_MAGNITUDE),
            movement_count=len(visible),
            last_activity_at=max((entry.created_at for entry in visible), default=None),
        ))
    return summaries


def get_customer_detail(*, owner: User, link_id: UUID) -> CustomerSummary:
    """
    One customer with balances in currency order.

    Raises:
        CustomerNotFoundError: If the link or its backing record is missing
    """
    link = get_customer_link(owner=owner, link_id=link_id)
    customer = resolve_customer(link)

    entries = [
        engine.LedgerEntry.from_movement(movement)
        for movement in Movement.objects.filter(owner=owner, customer_link=link)
    ]
    visible = engine.filter_for_customer(entries, customer.is_profit_loss)

    return CustomerSummary(
        customer=customer,
        balances=engine.current_balances(entries, order=engine.BALANCE_ORDER_CURRENCY),
        movement_count=len(visible),
        last_activity_at=max((entry.created_at for entry in visible), default=None),
    )
