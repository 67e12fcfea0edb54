from django.contrib import admin
from .models import Movement


@admin.register(Movement)
class MovementAdmin(admin.ModelAdmin):
    """Read-mostly view of ledger movements."""

    list_display = [
        'movement_number',
        'owner',
        'customer_link',
        'movement_type',
        'amount',
        'currency',
        'is_commission_movement',
        'is_internal_transfer',
        'created_at',
    ]
    list_filter = ['movement_type', 'currency', 'is_commission_movement', 'is_internal_transfer', 'created_at']
    search_fields = ['movement_number', 'note', 'owner__username', 'sender_name', 'beneficiary_name']
    readonly_fields = ['movement_number', 'related_commission_movement', 'transfer_group_id', 'created_at', 'updated_at']
    raw_id_fields = ['owner', 'customer_link']
    ordering = ['-created_at']
    date_hierarchy = 'created_at'

    def get_queryset(self, request):
        """Optimize query."""
        return super().get_queryset(request).select_related('owner', 'customer_link')
