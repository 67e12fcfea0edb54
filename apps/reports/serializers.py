from datetime import datetime, timedelta

from rest_framework import serializers

from apps.ledger.serializers import CurrencySummarySerializer


class PeriodQuerySerializer(serializers.Serializer):
    """
    Validate period and date range query parameters.

    Query Parameters:
        period (str): Month period in YYYY-MM format (e.g., '2026-01')
        start_date (date): Start of date range
        end_date (date): End of date range

    Note:
        If 'period' is provided, it takes precedence and is converted
        to start_date and end_date for the full month.
    """

    period = serializers.RegexField(
        regex=r'^\d{4}-(0[1-9]|1[0-2])$',
        required=False,
        allow_blank=True,
        help_text='Month period in YYYY-MM format'
    )
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        """Parse period into date range if provided."""
        period = attrs.get('period')
        if period:
            year, month = (int(part) for part in period.split('-'))
            attrs['start_date'] = datetime(year, month, 1).date()
            if month == 12:
                attrs['end_date'] = datetime(year + 1, 1, 1).date() - timedelta(days=1)
            else:
                attrs['end_date'] = datetime(year, month + 1, 1).date() - timedelta(days=1)
        return attrs


class CommissionIncomeSerializer(serializers.Serializer):
    currency = serializers.CharField()
    total = serializers.DecimalField(max_digits=16, decimal_places=2)


class RecentMovementSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    movement_number = serializers.IntegerField()
    customer_id = serializers.UUIDField()
    customer_name = serializers.CharField(allow_blank=True)
    movement_type = serializers.CharField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    currency = serializers.CharField()
    created_at = serializers.DateTimeField()


class OverviewResponseSerializer(serializers.Serializer):
    """Owner dashboard response."""

    customers_count = serializers.IntegerField()
    movements_count = serializers.IntegerField()
    currency_totals = CurrencySummarySerializer(many=True)
    commission_income = CommissionIncomeSerializer(many=True)
    recent_movements = RecentMovementSerializer(many=True)
    period_start = serializers.DateField(allow_null=True)
    period_end = serializers.DateField(allow_null=True)


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
