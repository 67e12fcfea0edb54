from rest_framework import serializers

from apps.accounts.serializers import UserPublicSerializer
from apps.ledger.serializers import BalanceLineSerializer


class CustomerSerializer(serializers.Serializer):
    """Uniform customer shape for both registered and local customers."""

    id = serializers.UUIDField()
    name = serializers.CharField()
    secondary_label = serializers.CharField()
    account_number_display = serializers.CharField()
    kind = serializers.CharField()
    is_profit_loss = serializers.BooleanField()
    phone = serializers.CharField()
    note = serializers.CharField()


class CustomerSummarySerializer(serializers.Serializer):
    customer = CustomerSerializer()
    balances = BalanceLineSerializer(many=True)
    movement_count = serializers.IntegerField()
    last_activity_at = serializers.DateTimeField(allow_null=True)


class LocalCustomerCreateSerializer(serializers.Serializer):
    display_name = serializers.CharField(max_length=150)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    note = serializers.CharField(required=False, allow_blank=True, default='')


class LocalCustomerUpdateSerializer(serializers.Serializer):
    display_name = serializers.CharField(max_length=150, required=False)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True)


class RegisteredCustomerCreateSerializer(serializers.Serializer):
    registered_user_id = serializers.UUIDField()


class ProfileSearchResultSerializer(UserPublicSerializer):
    """Search hit, flagged when the user is already in the owner's list."""

    already_added = serializers.SerializerMethodField()

    class Meta(UserPublicSerializer.Meta):
        fields = UserPublicSerializer.Meta.fields + ['already_added']
        read_only_fields = fields

    def get_already_added(self, obj):
        return obj.id in self.context.get('linked_user_ids', set())


class DeletionPreviewSerializer(serializers.Serializer):
    customer = CustomerSerializer()
    movement_count = serializers.IntegerField()
    outstanding_balances = BalanceLineSerializer(many=True)
    has_outstanding_balance = serializers.BooleanField()
