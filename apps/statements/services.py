"""
Statements Module
=================

Assembles the data an external formatter needs to print an account
statement or a single-movement receipt. Nothing here renders markup or
changes balances; every figure comes from the ledger engine.

Example:
    Statement for January::

        from apps.statements.services import build_customer_statement

        statement = build_customer_statement(
            owner=user,
            link_id=customer_id,
            date_from=date(2026, 1, 1),
            date_to=date(2026, 1, 31),
        )
        for month in statement['months']:
            print(month['label'], len(month['movements']))
"""

import json
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from apps.accounts.models import User
from apps.accounts.services import get_branding
from apps.customers.services import get_customer_link, resolve_customer
from apps.ledger import engine
from apps.ledger.models import Movement, MovementType
from apps.ledger.services import commission_pool, get_movement

from .arabic_words import amount_in_arabic_words
from .exceptions import InvalidDateRangeError

logger = logging.getLogger(__name__)

ARABIC_MONTHS = [
    'يناير', 'فبراير', 'مارس', 'أبريل', 'مايو', 'يونيو',
    'يوليو', 'أغسطس', 'سبتمبر', 'أكتوبر', 'نوفمبر', 'ديسمبر',
]

TYPE_LABELS = {
    MovementType.INCOMING: 'له',
    MovementType.OUTGOING: 'عليه',
}

RECEIPT_TITLE_INCOMING = 'استلام من العميل'
RECEIPT_TITLE_OUTGOING = 'تسليم للعميل'
RECEIPT_TITLE_TRANSFER = 'تحويل داخلي بين عميلين'


def month_label(year: int, month: int) -> str:
    """Arabic month heading, e.g. 'يناير 2026'."""
    return f"{ARABIC_MONTHS[month - 1]} {year}"


def _customer_block(customer) -> dict:
    return {
        'id': customer.id,
        'name': customer.name,
        'secondary_label': customer.secondary_label,
        'account_number_display': customer.account_number_display,
        'phone': customer.phone,
        'is_profit_loss': customer.is_profit_loss,
    }


def _balance_line(line: engine.BalanceLine) -> dict:
    return {
        'currency': line.currency,
        'balance': line.balance,
        'symbol': line.symbol,
        'name': line.name,
    }


def _summary_line(line: engine.CurrencySummary) -> dict:
    return {
        'currency': line.currency,
        'incoming_total': line.incoming_total,
        'outgoing_total': line.outgoing_total,
        'balance': line.balance,
    }


def _in_period(movement: Movement, date_from: Optional[date], date_to: Optional[date]) -> bool:
    day = timezone.localtime(movement.created_at).date()
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


def build_customer_statement(
    *,
    owner: User,
    link_id: UUID,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None
) -> dict:
    """
    Statement data for one customer.

    Current balances always cover the whole history. The summary and the
    monthly groups cover the requested period (inclusive, local dates);
    a currency that nets to zero still shows in both.

    Args:
        owner: Owner the customer belongs to
        link_id: Customer to report on
        date_from: First day to include, or None for no lower bound
        date_to: Last day to include, or None for no upper bound

    Returns:
        dict with ``customer``, ``branding``, ``period``, ``generated_at``,
        ``balances``, ``summary`` and ``months``. Each month has ``year``,
        ``month``, ``label`` and its ``movements`` most recent first.

    Raises:
        CustomerNotFoundError: If the customer doesn't belong to the owner
        InvalidDateRangeError: If date_from is after date_to
    """
    if date_from and date_to and date_from > date_to:
        raise InvalidDateRangeError("Start date must be on or before end date")

    link = get_customer_link(owner=owner, link_id=link_id)
    customer = resolve_customer(link)

    movements = {m.id: m for m in Movement.objects.filter(owner=owner, customer_link=link)}
    entries = [engine.LedgerEntry.from_movement(m) for m in movements.values()]

    visible = [
        entry for entry in engine.filter_for_customer(entries, customer.is_profit_loss)
        if _in_period(movements[entry.id], date_from, date_to)
    ]
    pool = commission_pool(owner=owner, movements=[movements[entry.id] for entry in visible])

    months = []
    for group in engine.group_by_month(visible):
        rows = []
        for entry in group.entries:
            movement = movements[entry.id]
            rows.append({
                'id': movement.id,
                'movement_number': movement.movement_number,
                'created_at': movement.created_at,
                'movement_type': movement.movement_type,
                'type_label': TYPE_LABELS[movement.movement_type],
                'currency': movement.currency,
                'currency_symbol': engine.currency_symbol(movement.currency),
                'amount': movement.amount,
                'combined_amount': engine.combined_amount(entry, pool),
                'commission_amount': engine.commission_total(entry, pool),
                'net_amount': engine.net_amount(entry, pool),
                'note': movement.note,
                'sender_name': movement.sender_name,
                'beneficiary_name': movement.beneficiary_name,
            })
        months.append({
            'year': group.year,
            'month': group.month,
            'label': month_label(group.year, group.month),
            'movements': rows,
        })

    logger.debug(
        "Statement for customer %s of owner %s: %d movement(s)", link.id, owner.id, len(visible)
    )
    return {
        'customer': _customer_block(customer),
        'branding': get_branding(owner=owner),
        'period': {'date_from': date_from, 'date_to': date_to},
        'generated_at': timezone.now(),
        'balances': [_balance_line(line) for line in engine.current_balances(entries)],
        'summary': [_summary_line(line) for line in engine.movement_summary(visible)],
        'months': months,
    }


def _receipt_title(movement: Movement) -> str:
    if movement.is_internal_transfer:
        return RECEIPT_TITLE_TRANSFER
    if movement.movement_type == MovementType.OUTGOING:
        return RECEIPT_TITLE_OUTGOING
    return RECEIPT_TITLE_INCOMING


def build_movement_receipt(*, owner: User, movement_id: UUID) -> dict:
    """
    Receipt data for one movement.

    The amount in words spells the net amount (gross minus commission).
    ``qr_payload`` is the JSON string to encode in the receipt's QR code.

    Raises:
        MovementNotFoundError: If the movement doesn't belong to the owner
        CustomerNotFoundError: If its customer has no backing record
    """
    movement = get_movement(owner=owner, movement_id=movement_id)
    customer = resolve_customer(movement.customer_link)

    entry = engine.LedgerEntry.from_movement(movement)
    pool = commission_pool(owner=owner, movements=[movement])
    commission = engine.commission_total(entry, pool)
    net = engine.net_amount(entry, pool)

    local_time = timezone.localtime(movement.created_at)
    qr_payload = json.dumps({
        'receipt_number': movement.movement_number,
        'customer': customer.name,
        'amount': str(movement.amount),
        'currency': movement.currency,
        'date': movement.created_at.isoformat(),
        'type': movement.movement_type,
    }, ensure_ascii=False)

    return {
        'receipt_number': movement.movement_number,
        'title': _receipt_title(movement),
        'movement_type': movement.movement_type,
        'customer': _customer_block(customer),
        'currency': movement.currency,
        'currency_symbol': engine.currency_symbol(movement.currency),
        'currency_name': engine.currency_name(movement.currency),
        'amount': movement.amount,
        'commission_amount': commission,
        'net_amount': net,
        'amount_in_words': amount_in_arabic_words(net, movement.currency),
        'commission_recipient': settings.LEDGER_PROFIT_LOSS_NAME if commission else None,
        'sender_name': movement.sender_name,
        'beneficiary_name': movement.beneficiary_name,
        'note': movement.note,
        'date': local_time.strftime('%Y-%m-%d'),
        'time': local_time.strftime('%H:%M:%S'),
        'branding': get_branding(owner=owner),
        'qr_payload': qr_payload,
    }
