"""
Reports Module
==============

Owner-wide figures for the dashboard and reports screens.

Classes:
    ReportQueries: Static methods for owner-level reports.

Example:
    Overview of the current month::

        from apps.reports.reports import ReportQueries

        overview = ReportQueries.owner_overview(
            owner=user,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 1, 31),
        )
        print(overview['customers_count'], overview['movements_count'])

Note:
    This module is read-only. Commission movements are reported as income
    only and never counted among ordinary movements.
"""

from apps.customers.models import CustomerLink
from apps.customers.services import resolve_customer_links
from apps.ledger import engine
from apps.ledger.models import Movement

from .exceptions import InvalidDateRangeError

RECENT_MOVEMENTS_LIMIT = 5


class ReportQueries:
    """
    Queries behind the owner dashboard.

    Methods:
        owner_overview: Customer and movement counts, currency totals,
            commission income and the latest movements.
    """

    @staticmethod
    def owner_overview(*, owner, start_date=None, end_date=None):
        """
        Summarize an owner's ledger.

        Args:
            owner (User): The shop owner.
            start_date (date, optional): First local day to include.
            end_date (date, optional): Last local day to include.

        Returns:
            dict: A dictionary containing:
                - customers_count (int): Customers, profit and loss excluded.
                - movements_count (int): Ordinary movements in the period.
                - currency_totals (list): Incoming, outgoing and balance per
                  currency over ordinary movements.
                - commission_income (list): Commission earned per currency.
                - recent_movements (list): Latest ordinary movements with
                  their customer's name.
                - period_start, period_end: The requested bounds.

        Raises:
            InvalidDateRangeError: If start_date is after end_date.
        """
        if start_date and end_date and start_date > end_date:
            raise InvalidDateRangeError("Start date must be on or before end date")

        customers_count = (
            CustomerLink.objects
            .filter(owner=owner)
            .exclude(local_customer__is_profit_loss_account=True)
            .count()
        )

        movements = Movement.objects.filter(owner=owner)
        if start_date:
            movements = movements.filter(created_at__date__gte=start_date)
        if end_date:
            movements = movements.filter(created_at__date__lte=end_date)

        ordinary = []
        commissions = []
        for movement in movements:
            entry = engine.LedgerEntry.from_movement(movement)
            (commissions if movement.is_commission_movement else ordinary).append(entry)

        recent = list(
            movements
            .filter(is_commission_movement=False)
            .order_by('-created_at', '-movement_number')[:RECENT_MOVEMENTS_LIMIT]
        )
        links = CustomerLink.objects.filter(id__in={m.customer_link_id for m in recent})
        names = {customer.id: customer.name for customer in resolve_customer_links(links)}

        return {
            'customers_count': customers_count,
            'movements_count': len(ordinary),
            'currency_totals': [
                {
                    'currency': line.currency,
                    'incoming_total': line.incoming_total,
                    'outgoing_total': line.outgoing_total,
                    'balance': line.balance,
                }
                for line in engine.movement_summary(ordinary)
            ],
            'commission_income': [
                {'currency': line.currency, 'total': line.incoming_total - line.outgoing_total}
                for line in engine.movement_summary(commissions)
            ],
            'recent_movements': [
                {
                    'id': movement.id,
                    'movement_number': movement.movement_number,
                    'customer_id': movement.customer_link_id,
                    'customer_name': names.get(movement.customer_link_id, ''),
                    'movement_type': movement.movement_type,
                    'amount': movement.amount,
                    'currency': movement.currency,
                    'created_at': movement.created_at,
                }
                for movement in recent
            ],
            'period_start': start_date,
            'period_end': end_date,
        }
