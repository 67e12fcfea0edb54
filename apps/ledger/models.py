from django.db import models
from django.db.models import Q
from django.core.validators import MinValueValidator
from django.utils import timezone
from decimal import Decimal
import uuid


class Currency(models.TextChoices):
    USD = 'USD', 'US Dollar'
    YER = 'YER', 'Yemeni Rial'
    SAR = 'SAR', 'Saudi Riyal'
    EGP = 'EGP', 'Egyptian Pound'
    EUR = 'EUR', 'Euro'
    AED = 'AED', 'UAE Dirham'
    QAR = 'QAR', 'Qatari Riyal'


class MovementType(models.TextChoices):
    INCOMING = 'incoming', 'Incoming'
    OUTGOING = 'outgoing', 'Outgoing'


class Movement(models.Model):
    """
    One currency-tagged ledger entry against a customer link.

    ``amount`` is always positive; the direction lives in ``movement_type``.
    Incoming counts as +amount for the customer, outgoing as -amount.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='movements'
    )
    customer_link = models.ForeignKey(
        'customers.CustomerLink',
        on_delete=models.CASCADE,
        related_name='movements'
    )

    # Global display number
    movement_number = models.PositiveIntegerField(unique=True)

    currency = models.CharField(max_length=3, choices=Currency.choices)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    movement_type = models.CharField(max_length=10, choices=MovementType.choices)
    note = models.TextField(blank=True)

    # Commission split
    is_commission_movement = models.BooleanField(default=False)
    related_commission_movement = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='commission_movements'
    )

    # Internal transfer between two of the owner's customers
    is_internal_transfer = models.BooleanField(default=False)
    transfer_group_id = models.UUIDField(null=True, blank=True, db_index=True)
    sender_name = models.CharField(max_length=150, blank=True)
    beneficiary_name = models.CharField(max_length=150, blank=True)

    # Sole ordering key
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'account_movements'
        constraints = [
            models.CheckConstraint(check=Q(amount__gt=0), name='movement_amount_positive'),
        ]
        indexes = [
            models.Index(fields=['owner', 'customer_link', 'created_at'], name='movement_owner_link_idx'),
            models.Index(fields=['owner', 'created_at'], name='movement_owner_created_idx'),
        ]
        ordering = ['-created_at', '-movement_number']

    def __str__(self):
        return f"#{self.movement_number} {self.movement_type} {self.amount} {self.currency}"

    @property
    def signed_amount(self):
        if self.movement_type == MovementType.INCOMING:
            return self.amount
        return -self.amount
