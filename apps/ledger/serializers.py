from rest_framework import serializers
from .models import Movement, MovementType, Currency


class BalanceLineSerializer(serializers.Serializer):
    currency = serializers.CharField()
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    symbol = serializers.CharField()
    name = serializers.CharField()


class CurrencySummarySerializer(serializers.Serializer):
    """Incoming/outgoing totals panel."""

    currency = serializers.CharField()
    incoming_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    outgoing_total = serializers.DecimalField(max_digits=16, decimal_places=2)
    balance = serializers.DecimalField(max_digits=16, decimal_places=2)


class MovementSerializer(serializers.ModelSerializer):
    """Stored movement, with its signed contribution to the balance."""

    customer_id = serializers.UUIDField(source='customer_link_id', read_only=True)
    related_commission_movement_id = serializers.UUIDField(read_only=True, allow_null=True)
    signed_amount = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = Movement
        fields = [
            'id',
            'movement_number',
            'customer_id',
            'currency',
            'amount',
            'signed_amount',
            'movement_type',
            'note',
            'is_commission_movement',
            'related_commission_movement_id',
            'is_internal_transfer',
            'transfer_group_id',
            'sender_name',
            'beneficiary_name',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class FeedItemSerializer(serializers.Serializer):
    """One row of a customer's feed with commission-adjusted amounts."""

    movement = MovementSerializer()
    combined_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    commission_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_amount = serializers.DecimalField(max_digits=16, decimal_places=2)


class MovementCreateSerializer(serializers.Serializer):
    """Quick-add movement input. Range rules are checked by the service."""

    customer_id = serializers.UUIDField()
    movement_type = serializers.ChoiceField(choices=MovementType.choices)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.ChoiceField(choices=Currency.choices)
    commission_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    note = serializers.CharField(required=False, allow_blank=True, default='')


class MovementUpdateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, required=False)
    currency = serializers.ChoiceField(choices=Currency.choices, required=False)
    note = serializers.CharField(required=False, allow_blank=True)


class TransferCreateSerializer(serializers.Serializer):
    """Transfer between two of the owner's customers."""

    from_customer_id = serializers.UUIDField()
    to_customer_id = serializers.UUIDField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    currency = serializers.ChoiceField(choices=Currency.choices)
    commission_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True
    )
    note = serializers.CharField(required=False, allow_blank=True, default='')


class RecordedMovementSerializer(serializers.Serializer):
    movement = MovementSerializer(source='primary')
    commission_movement = MovementSerializer(source='commission', allow_null=True)
    revision = serializers.IntegerField()


class RecordedTransferSerializer(serializers.Serializer):
    transfer_group_id = serializers.UUIDField()
    incoming = MovementSerializer()
    outgoing = MovementSerializer()
    commission_movement = MovementSerializer(source='commission', allow_null=True)
    revision = serializers.IntegerField()
