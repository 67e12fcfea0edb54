"""
Movement entry service.

Records a movement and, when a commission is taken, splits it into a
second movement on the owner's profit-and-loss customer. Both rows are
written in one transaction: either the pair exists or neither does.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError, DatabaseError
from django.db.models import Max
from django.utils import timezone

from apps.accounts.models import User
from apps.customers.models import CustomerLink
from apps.customers.services import (
    get_customer_link,
    get_or_create_profit_loss_customer,
    resolve_customer,
)
from apps.ledger.models import Movement, MovementType, Currency
from apps.ledger.signals import notify_ledger_changed, SCOPE_MOVEMENTS

from .exceptions import MovementValidationError, PartialWriteError

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


@dataclass(frozen=True)
class RecordedMovement:
    primary: Movement
    commission: Optional[Movement] = None


def parse_amount(value, field: str = 'amount') -> Decimal:
    """
    Parse a positive money amount with at most two decimal places.

    Raises:
        MovementValidationError: If the value is not a positive number
    """
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise MovementValidationError(f"{field} must be a number")

    if not amount.is_finite() or amount <= 0:
        raise MovementValidationError(f"{field} must be greater than zero")
    if amount != amount.quantize(CENT):
        raise MovementValidationError(f"{field} can have at most two decimal places")
    return amount.quantize(CENT)


def validate_currency(currency: str) -> str:
    if currency not in Currency.values:
        raise MovementValidationError(f"Unsupported currency: {currency}")
    return currency


def validate_commission(commission_amount, amount: Decimal, movement_type: str) -> Optional[Decimal]:
    """
    Commission is optional, only allowed on incoming movements and must be
    strictly between zero and the amount.
    """
    if commission_amount in (None, ''):
        return None
    if movement_type != MovementType.INCOMING:
        raise MovementValidationError("Commission can only be taken on incoming movements")

    try:
        commission = Decimal(str(commission_amount).strip())
    except (InvalidOperation, ValueError):
        raise MovementValidationError("commission_amount must be a number")
    if not commission.is_finite() or commission <= 0:
        raise MovementValidationError("Commission must be greater than zero")
    if commission >= amount:
        raise MovementValidationError("Commission must be less than the amount")
    if commission != commission.quantize(CENT):
        raise MovementValidationError("commission_amount can have at most two decimal places")
    return commission.quantize(CENT)


def next_movement_number() -> int:
    current = Movement.objects.aggregate(top=Max('movement_number'))['top']
    return (current or 0) + 1


def commission_note(customer_name: str, movement_number: int) -> str:
    return f"عمولة من {customer_name} - حركة رقم {movement_number}"


def post_commission(
    *,
    owner: User,
    primary: Movement,
    profit_loss_link: CustomerLink,
    commission: Decimal,
    customer_name: str
) -> Movement:
    """Insert the profit-and-loss half of a commission split."""
    return Movement.objects.create(
        owner=owner,
        customer_link=profit_loss_link,
        movement_number=primary.movement_number + 1,
        currency=primary.currency,
        amount=commission,
        movement_type=MovementType.INCOMING,
        note=commission_note(customer_name, primary.movement_number),
        is_commission_movement=True,
        related_commission_movement=primary,
        created_at=primary.created_at,
    )


def record_movement(
    *,
    owner: User,
    customer_link_id: UUID,
    movement_type: str,
    amount,
    currency: str,
    commission_amount=None,
    note: str = '',
    max_retries: int = 5
) -> RecordedMovement:
    """
    Record a movement, splitting off a commission if one is given.

    All input is validated before anything is written. With a commission
    the primary movement is posted to the customer and a second, incoming
    commission movement to the profit-and-loss customer, pointing back at
    the primary through related_commission_movement.

    Args:
        owner: Owner recording the movement
        customer_link_id: Customer the movement is posted against
        movement_type: 'incoming' or 'outgoing'
        amount: Positive amount, at most two decimals
        currency: One of the supported currency codes
        commission_amount: Optional commission (incoming only, 0 < c < amount)
        note: Optional free text
        max_retries: Attempts when a movement number collides

    Returns:
        RecordedMovement with the primary and optional commission movement

    Raises:
        MovementValidationError: If any input is invalid
        CustomerNotFoundError: If the customer doesn't belong to the owner
        PartialWriteError: If the commission insert failed; the primary is rolled back
    """
    if movement_type not in MovementType.values:
        raise MovementValidationError(f"Unknown movement type: {movement_type}")
    amount = parse_amount(amount)
    currency = validate_currency(currency)
    commission = validate_commission(commission_amount, amount, movement_type)
    note = (note or '').strip()

    link = get_customer_link(owner=owner, link_id=customer_link_id)
    if link.is_profit_loss:
        raise MovementValidationError(
            "The profit and loss account only receives commission movements"
        )
    customer = resolve_customer(link)

    profit_loss_link = None
    if commission is not None:
        profit_loss_link = get_or_create_profit_loss_customer(owner=owner)

    for attempt in range(max_retries):
        try:
            with transaction.atomic():
                primary = Movement.objects.create(
                    owner=owner,
                    customer_link=link,
                    movement_number=next_movement_number(),
                    currency=currency,
                    amount=amount,
                    movement_type=movement_type,
                    note=note,
                    created_at=timezone.now(),
                )

                commission_movement = None
                if commission is not None:
                    try:
                        with transaction.atomic():
                            commission_movement = post_commission(
                                owner=owner,
                                primary=primary,
                                profit_loss_link=profit_loss_link,
                                commission=commission,
                                customer_name=customer.name,
                            )
                    except IntegrityError:
                        # Number collision, retried by the outer loop
                        raise
                    except DatabaseError as e:
                        raise PartialWriteError(
                            f"Commission for movement {primary.movement_number} could not be "
                            f"recorded; the movement was rolled back",
                            rolled_back=True,
                            primary_movement_number=primary.movement_number,
                        ) from e
        except PartialWriteError as e:
            logger.error(
                "Commission write failed for owner %s, customer %s: %s",
                owner.id, link.id, e.__cause__,
            )
            raise
        except IntegrityError:
            # Movement number taken by a concurrent write
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to assign a movement number after {max_retries} attempts"
                )
            continue

        link_ids = [link.id]
        if commission_movement is not None:
            link_ids.append(profit_loss_link.id)
        notify_ledger_changed(owner_id=owner.id, scope=SCOPE_MOVEMENTS, link_ids=link_ids)

        return RecordedMovement(primary=primary, commission=commission_movement)

    # Should never reach here
    raise RuntimeError("Unexpected error in movement entry")
