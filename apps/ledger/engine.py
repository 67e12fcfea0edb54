"""
Ledger Engine
=============

Pure aggregation over already-fetched movements. Nothing in this module
touches the database: callers load the movements for one customer (detail
view) or one owner (list view), convert them to ``LedgerEntry`` values and
hand them over.

Canonical form:
    Every entry carries a single signed ``Decimal``. Incoming movements are
    ``+amount`` (in the customer's favour), outgoing are ``-amount``. Both
    stored shapes (``movement_type`` + unsigned ``amount``, or a ready
    ``signed_amount``) are translated on the way in by ``LedgerEntry``.

Money is summed as ``Decimal`` only, so ten thousand 0.01 entries add up
to exactly 100.00.

Example:
    Balances for one customer::

        from apps.ledger.engine import LedgerEntry, current_balances

        entries = [LedgerEntry.from_movement(m) for m in movements]
        for line in current_balances(entries):
            print(line.currency, line.balance)

Note:
    No function here raises on empty input. Unknown currency codes are
    carried through untouched and displayed by their raw code.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from django.utils import timezone

from .models import Currency, MovementType

ZERO = Decimal('0.00')

BALANCE_ORDER_MAGNITUDE = 'magnitude'
BALANCE_ORDER_CURRENCY = 'currency'

CURRENCY_ORDER = [choice.value for choice in Currency]

CURRENCY_DISPLAY = {
    'USD': ('$', 'دولار أمريكي'),
    'YER': ('ر.ي', 'ريال يمني'),
    'SAR': ('ر.س', 'ريال سعودي'),
    'EGP': ('ج.م', 'جنيه مصري'),
    'EUR': ('€', 'يورو'),
    'AED': ('د.إ', 'درهم إماراتي'),
    'QAR': ('ر.ق', 'ريال قطري'),
}


def currency_symbol(code: str) -> str:
    """Display symbol for a currency code, or the code itself if unknown."""
    display = CURRENCY_DISPLAY.get(code)
    return display[0] if display else code


def currency_name(code: str) -> str:
    """Arabic display name for a currency code, or the code itself if unknown."""
    display = CURRENCY_DISPLAY.get(code)
    return display[1] if display else code


def _currency_rank(code: str) -> int:
    # Unknown codes go after the enumerated ones
    try:
        return CURRENCY_ORDER.index(code)
    except ValueError:
        return len(CURRENCY_ORDER)


def to_decimal(value: Any) -> Decimal:
    """Convert an amount to Decimal without passing through binary float."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


@dataclass(frozen=True)
class LedgerEntry:
    """A movement in canonical signed form."""

    id: Any
    customer_link_id: Any
    currency: str
    signed_amount: Decimal
    created_at: datetime
    is_commission_movement: bool = False
    related_commission_movement_id: Any = None
    movement_number: Optional[int] = None
    note: str = ''

    @property
    def amount(self) -> Decimal:
        return abs(self.signed_amount)

    @property
    def movement_type(self) -> str:
        if self.signed_amount >= 0:
            return MovementType.INCOMING
        return MovementType.OUTGOING

    @classmethod
    def from_movement(cls, movement) -> 'LedgerEntry':
        """Build an entry from a ``Movement`` model instance."""
        return cls(
            id=movement.id,
            customer_link_id=movement.customer_link_id,
            currency=movement.currency,
            signed_amount=to_decimal(movement.signed_amount),
            created_at=movement.created_at,
            is_commission_movement=bool(movement.is_commission_movement),
            related_commission_movement_id=movement.related_commission_movement_id,
            movement_number=movement.movement_number,
            note=movement.note or '',
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> 'LedgerEntry':
        """
        Build an entry from a plain mapping in either stored shape.

        A record with ``signed_amount`` is taken as-is. Otherwise ``amount``
        is read as a magnitude and signed by ``movement_type``.

        Raises:
            ValueError: If neither shape is present
        """
        if record.get('signed_amount') is not None:
            signed = to_decimal(record['signed_amount'])
        elif record.get('amount') is not None and record.get('movement_type'):
            magnitude = abs(to_decimal(record['amount']))
            if record['movement_type'] == MovementType.INCOMING:
                signed = magnitude
            elif record['movement_type'] == MovementType.OUTGOING:
                signed = -magnitude
            else:
                raise ValueError(f"Unknown movement type: {record['movement_type']}")
        else:
            raise ValueError("Record has neither signed_amount nor amount with movement_type")

        return cls(
            id=record.get('id'),
            customer_link_id=record.get('customer_link_id'),
            currency=record['currency'],
            signed_amount=signed,
            created_at=record['created_at'],
            is_commission_movement=bool(record.get('is_commission_movement')),
            related_commission_movement_id=record.get('related_commission_movement_id'),
            movement_number=record.get('movement_number'),
            note=record.get('note') or '',
        )


@dataclass(frozen=True)
class BalanceLine:
    currency: str
    balance: Decimal

    @property
    def symbol(self) -> str:
        return currency_symbol(self.currency)

    @property
    def name(self) -> str:
        return currency_name(self.currency)


@dataclass(frozen=True)
class CurrencySummary:
    """Incoming and outgoing totals for one currency."""

    currency: str
    incoming_total: Decimal
    outgoing_total: Decimal

    @property
    def balance(self) -> Decimal:
        return self.incoming_total - self.outgoing_total


@dataclass(frozen=True)
class MonthGroup:
    year: int
    month: int
    entries: List[LedgerEntry]


def _net_by_currency(entries: Iterable[LedgerEntry]) -> 'OrderedDict[str, Decimal]':
    totals = OrderedDict()
    for entry in entries:
        totals[entry.currency] = totals.get(entry.currency, ZERO) + entry.signed_amount
    return totals


def current_balances(
    entries: Iterable[LedgerEntry],
    order: str = BALANCE_ORDER_CURRENCY
) -> List[BalanceLine]:
    """
    Net balance per currency, zero balances dropped.

    Args:
        entries: Movements of one customer
        order: ``BALANCE_ORDER_CURRENCY`` keeps the currency enumeration
            order (detail view); ``BALANCE_ORDER_MAGNITUDE`` sorts by
            descending absolute balance (list view), ties broken by
            currency order.

    Returns:
        List of BalanceLine, one per currency with a non-zero balance
    """
    lines = [
        BalanceLine(currency=currency, balance=balance)
        for currency, balance in _net_by_currency(entries).items()
        if balance != 0
    ]

    if order == BALANCE_ORDER_MAGNITUDE:
        lines.sort(key=lambda line: (-abs(line.balance), _currency_rank(line.currency)))
    else:
        lines.sort(key=lambda line: (_currency_rank(line.currency), line.currency))
    return lines


def movement_summary(entries: Iterable[LedgerEntry]) -> List[CurrencySummary]:
    """
    Incoming and outgoing totals per currency, in currency order.

    Unlike ``current_balances`` a currency that nets to zero is kept as
    long as it had movements.
    """
    incoming = {}
    outgoing = {}
    for entry in entries:
        incoming.setdefault(entry.currency, ZERO)
        outgoing.setdefault(entry.currency, ZERO)
        if entry.signed_amount >= 0:
            incoming[entry.currency] += entry.signed_amount
        else:
            outgoing[entry.currency] += -entry.signed_amount

    return [
        CurrencySummary(
            currency=currency,
            incoming_total=incoming[currency],
            outgoing_total=outgoing[currency],
        )
        for currency in sorted(incoming, key=lambda code: (_currency_rank(code), code))
    ]


def combined_amount(primary: LedgerEntry, entries: Iterable[LedgerEntry]) -> Decimal:
    """
    Primary amount plus commissions carried on the same customer link.

    Matches commission entries that point back at ``primary`` and share its
    link, direction and currency. Commissions posted to the profit-and-loss
    link do not match, so for those the result is the primary amount.
    """
    total = primary.amount
    for entry in entries:
        if (
            entry.is_commission_movement
            and entry.related_commission_movement_id == primary.id
            and entry.customer_link_id == primary.customer_link_id
            and entry.movement_type == primary.movement_type
            and entry.currency == primary.currency
        ):
            total += entry.amount
    return total


def commission_total(primary: LedgerEntry, entries: Iterable[LedgerEntry]) -> Decimal:
    """Sum of all commission entries split from ``primary``, on any link."""
    return sum(
        (
            entry.amount
            for entry in entries
            if entry.is_commission_movement
            and entry.related_commission_movement_id == primary.id
            and entry.currency == primary.currency
        ),
        ZERO,
    )


def net_amount(primary: LedgerEntry, entries: Iterable[LedgerEntry]) -> Decimal:
    """Primary amount minus the commission retained from it."""
    return primary.amount - commission_total(primary, entries)


def sort_feed(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    """Most recent first; equal timestamps fall back to the movement number."""
    return sorted(
        entries,
        key=lambda entry: (entry.created_at, entry.movement_number or 0),
        reverse=True,
    )


def group_by_month(entries: Iterable[LedgerEntry], tz=None) -> List[MonthGroup]:
    """
    Partition entries into (year, month) buckets of the local calendar.

    Buckets come most recent first and each keeps the feed order.
    """
    groups = OrderedDict()
    for entry in sort_feed(entries):
        moment = entry.created_at
        if timezone.is_aware(moment):
            moment = timezone.localtime(moment, tz)
        groups.setdefault((moment.year, moment.month), []).append(entry)

    return [
        MonthGroup(year=year, month=month, entries=bucket)
        for (year, month), bucket in groups.items()
    ]


def filter_for_customer(entries: Iterable[LedgerEntry], is_profit_loss: bool) -> List[LedgerEntry]:
    """
    Entries shown on a customer's own feed.

    The profit-and-loss customer sees only commission entries; every other
    customer sees only ordinary ones.
    """
    if is_profit_loss:
        return [entry for entry in entries if entry.is_commission_movement]
    return [entry for entry in entries if not entry.is_commission_movement]
