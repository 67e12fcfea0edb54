"""
Internal transfer service.

A transfer moves money between two of the owner's own customers: the
sender is credited (incoming) and the beneficiary debited (outgoing).
Both legs share a transfer_group_id.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.db import transaction, IntegrityError, DatabaseError
from django.utils import timezone

from apps.accounts.models import User
from apps.customers.services import (
    get_customer_link,
    get_or_create_profit_loss_customer,
    resolve_customer,
)
from apps.ledger.models import Movement, MovementType
from apps.ledger.signals import notify_ledger_changed, SCOPE_MOVEMENTS

from . import movement_entry
from .exceptions import MovementValidationError, PartialWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordedTransfer:
    transfer_group_id: UUID
    incoming: Movement
    outgoing: Movement
    commission: Optional[Movement] = None


def record_internal_transfer(
    *,
    owner: User,
    from_link_id: UUID,
    to_link_id: UUID,
    amount,
    currency: str,
    commission_amount=None,
    note: str = '',
    max_retries: int = 5
) -> RecordedTransfer:
    """
    Record a transfer from one customer to another.

    The optional commission follows the usual split rules and is attached
    to the incoming (sender) leg.

    Raises:
        MovementValidationError: If input is invalid, both sides are the same
            customer, or either side is the profit-and-loss customer
        CustomerNotFoundError: If either customer doesn't belong to the owner
        PartialWriteError: If the commission insert failed; the transfer is rolled back
    """
    amount = movement_entry.parse_amount(amount)
    currency = movement_entry.validate_currency(currency)
    commission = movement_entry.validate_commission(
        commission_amount, amount, MovementType.INCOMING
    )
    note = (note or '').strip()

    if str(from_link_id) == str(to_link_id):
        raise MovementValidationError("Sender and beneficiary must be different customers")

    sender_link = get_customer_link(owner=owner, link_id=from_link_id)
    beneficiary_link = get_customer_link(owner=owner, link_id=to_link_id)
    if sender_link.is_profit_loss or beneficiary_link.is_profit_loss:
        raise MovementValidationError(
            "The profit and loss account cannot take part in a transfer"
        )

    sender = resolve_customer(sender_link)
    beneficiary = resolve_customer(beneficiary_link)

    profit_loss_link = None
    if commission is not None:
        profit_loss_link = get_or_create_profit_loss_customer(owner=owner)

    for attempt in range(max_retries):
        group_id = uuid.uuid4()
        try:
            with transaction.atomic():
                number = movement_entry.next_movement_number()
                created_at = timezone.now()
                shared = dict(
                    owner=owner,
                    currency=currency,
                    amount=amount,
                    note=note,
                    is_internal_transfer=True,
                    transfer_group_id=group_id,
                    sender_name=sender.name,
                    beneficiary_name=beneficiary.name,
                    created_at=created_at,
                )
                incoming = Movement.objects.create(
                    customer_link=sender_link,
                    movement_number=number,
                    movement_type=MovementType.INCOMING,
                    **shared
                )
                outgoing = Movement.objects.create(
                    customer_link=beneficiary_link,
                    movement_number=number + 1,
                    movement_type=MovementType.OUTGOING,
                    **shared
                )

                commission_movement = None
                if commission is not None:
                    try:
                        with transaction.atomic():
                            commission_movement = Movement.objects.create(
                                owner=owner,
                                customer_link=profit_loss_link,
                                movement_number=number + 2,
                                currency=currency,
                                amount=commission,
                                movement_type=MovementType.INCOMING,
                                note=movement_entry.commission_note(sender.name, number),
                                is_commission_movement=True,
                                related_commission_movement=incoming,
                                created_at=created_at,
                            )
                    except IntegrityError:
                        raise
                    except DatabaseError as e:
                        raise PartialWriteError(
                            f"Commission for transfer {number} could not be recorded; "
                            f"the transfer was rolled back",
                            rolled_back=True,
                            primary_movement_number=number,
                        ) from e
        except PartialWriteError as e:
            logger.error(
                "Commission write failed for transfer of owner %s: %s", owner.id, e.__cause__
            )
            raise
        except IntegrityError:
            if attempt == max_retries - 1:
                raise RuntimeError(
                    f"Failed to assign movement numbers after {max_retries} attempts"
                )
            continue

        link_ids = [sender_link.id, beneficiary_link.id]
        if commission_movement is not None:
            link_ids.append(profit_loss_link.id)
        notify_ledger_changed(owner_id=owner.id, scope=SCOPE_MOVEMENTS, link_ids=link_ids)

        logger.info(
            "Transfer %s recorded for owner %s: %s %s from %s to %s",
            group_id, owner.id, amount, currency, sender_link.id, beneficiary_link.id,
        )
        return RecordedTransfer(
            transfer_group_id=group_id,
            incoming=incoming,
            outgoing=outgoing,
            commission=commission_movement,
        )

    # Should never reach here
    raise RuntimeError("Unexpected error in transfer entry")
