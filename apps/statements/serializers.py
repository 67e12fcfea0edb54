from datetime import datetime, timedelta

from rest_framework import serializers

from apps.ledger.serializers import BalanceLineSerializer, CurrencySummarySerializer


class StatementQuerySerializer(serializers.Serializer):
    """
    Validate the statement period.

    Query Parameters:
        period (str): Month in YYYY-MM format (e.g., '2026-01')
        date_from (date): First day to include
        date_to (date): Last day to include

    Note:
        If 'period' is provided it takes precedence and covers the whole month.
    """

    period = serializers.RegexField(
        regex=r'^\d{4}-(0[1-9]|1[0-2])$',
        required=False,
        allow_blank=True,
        help_text='Month period in YYYY-MM format'
    )
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        period = attrs.pop('period', None)
        if period:
            year, month = (int(part) for part in period.split('-'))
            attrs['date_from'] = datetime(year, month, 1).date()
            if month == 12:
                attrs['date_to'] = datetime(year + 1, 1, 1).date() - timedelta(days=1)
            else:
                attrs['date_to'] = datetime(year, month + 1, 1).date() - timedelta(days=1)
        return attrs


class BrandingSerializer(serializers.Serializer):
    shop_name = serializers.CharField()
    shop_phone = serializers.CharField(allow_blank=True)
    shop_address = serializers.CharField(allow_blank=True)
    logo_data_uri = serializers.CharField(allow_null=True)


class StatementCustomerSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    name = serializers.CharField()
    secondary_label = serializers.CharField(allow_blank=True)
    account_number_display = serializers.CharField()
    phone = serializers.CharField(allow_blank=True)
    is_profit_loss = serializers.BooleanField()


class StatementRowSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    movement_number = serializers.IntegerField()
    created_at = serializers.DateTimeField()
    movement_type = serializers.CharField()
    type_label = serializers.CharField()
    currency = serializers.CharField()
    currency_symbol = serializers.CharField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    combined_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    commission_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    note = serializers.CharField(allow_blank=True)
    sender_name = serializers.CharField(allow_blank=True)
    beneficiary_name = serializers.CharField(allow_blank=True)


class StatementMonthSerializer(serializers.Serializer):
    year = serializers.IntegerField()
    month = serializers.IntegerField()
    label = serializers.CharField()
    movements = StatementRowSerializer(many=True)


class StatementPeriodSerializer(serializers.Serializer):
    date_from = serializers.DateField(allow_null=True)
    date_to = serializers.DateField(allow_null=True)


class StatementSerializer(serializers.Serializer):
    """Account statement handed to the statement formatter."""

    customer = StatementCustomerSerializer()
    branding = BrandingSerializer()
    period = StatementPeriodSerializer()
    generated_at = serializers.DateTimeField()
    balances = BalanceLineSerializer(many=True)
    summary = CurrencySummarySerializer(many=True)
    months = StatementMonthSerializer(many=True)


class ReceiptSerializer(serializers.Serializer):
    """Single movement receipt handed to the receipt formatter."""

    receipt_number = serializers.IntegerField()
    title = serializers.CharField()
    movement_type = serializers.CharField()
    customer = StatementCustomerSerializer()
    currency = serializers.CharField()
    currency_symbol = serializers.CharField()
    currency_name = serializers.CharField()
    amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    commission_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    amount_in_words = serializers.CharField()
    commission_recipient = serializers.CharField(allow_null=True)
    sender_name = serializers.CharField(allow_blank=True)
    beneficiary_name = serializers.CharField(allow_blank=True)
    note = serializers.CharField(allow_blank=True)
    date = serializers.CharField()
    time = serializers.CharField()
    branding = BrandingSerializer()
    qr_payload = serializers.CharField()


class ErrorSerializer(serializers.Serializer):
    """Standard error response serializer."""
    error = serializers.CharField()
