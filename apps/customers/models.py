from django.db import models
from django.db.models import Q
import uuid


class CustomerKind(models.TextChoices):
    REGISTERED = 'registered', 'Registered'
    LOCAL = 'local', 'Local'


class LocalCustomer(models.Model):
    """
    A contact entered by an owner, with no platform account.

    Numbered per owner starting at 1. The owner's profit-and-loss
    pseudo-customer is also stored here, flagged and holding number 0.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='local_customers'
    )
    display_name = models.CharField(max_length=150)
    phone = models.CharField(max_length=30, blank=True)
    note = models.TextField(blank=True)
    local_account_number = models.PositiveIntegerField()
    is_profit_loss_account = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'local_customers'
        constraints = [
            models.UniqueConstraint(
                fields=['owner', 'local_account_number'],
                name='unique_local_account_number_per_owner'
            ),
            models.UniqueConstraint(
                fields=['owner'],
                condition=Q(is_profit_loss_account=True),
                name='one_profit_loss_account_per_owner'
            ),
        ]
        ordering = ['local_account_number']

    def __str__(self):
        return f"{self.display_name} (L-{self.local_account_number:04d})"


class CustomerLink(models.Model):
    """
    The owner-scoped customer entry that movements are posted against.

    Backed by exactly one of a registered platform user or a local
    customer, as told by ``kind``.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        'accounts.User',
        on_delete=models.CASCADE,
        related_name='customer_links'
    )
    kind = models.CharField(max_length=20, choices=CustomerKind.choices)
    registered_user = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='customer_of_links'
    )
    local_customer = models.OneToOneField(
        LocalCustomer,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='link'
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'user_customers'
        constraints = [
            models.CheckConstraint(
                check=(
                    Q(kind=CustomerKind.REGISTERED, registered_user__isnull=False, local_customer__isnull=True)
                    | Q(kind=CustomerKind.LOCAL, registered_user__isnull=True, local_customer__isnull=False)
                ),
                name='customer_link_single_backing'
            ),
            models.UniqueConstraint(
                fields=['owner', 'registered_user'],
                condition=Q(registered_user__isnull=False),
                name='unique_registered_customer_per_owner'
            ),
        ]
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='customer_owner_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        if self.kind == CustomerKind.REGISTERED:
            return f"{self.owner} -> registered {self.registered_user_id}"
        return f"{self.owner} -> local {self.local_customer_id}"

    @property
    def is_profit_loss(self):
        return (
            self.kind == CustomerKind.LOCAL
            and self.local_customer is not None
            and self.local_customer.is_profit_loss_account
        )
