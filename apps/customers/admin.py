from django.contrib import admin
from .models import LocalCustomer, CustomerLink


@admin.register(LocalCustomer)
class LocalCustomerAdmin(admin.ModelAdmin):
    list_display = ['local_account_number', 'display_name', 'owner', 'phone', 'is_profit_loss_account', 'created_at']
    list_filter = ['is_profit_loss_account', 'created_at']
    search_fields = ['display_name', 'phone', 'owner__username']
    readonly_fields = ['local_account_number', 'is_profit_loss_account', 'created_at', 'updated_at']
    ordering = ['owner', 'local_account_number']


@admin.register(CustomerLink)
class CustomerLinkAdmin(admin.ModelAdmin):
    list_display = ['id', 'owner', 'kind', 'registered_user', 'local_customer', 'created_at']
    list_filter = ['kind', 'created_at']
    search_fields = ['owner__username', 'registered_user__username', 'local_customer__display_name']
    raw_id_fields = ['owner', 'registered_user', 'local_customer']

    def get_queryset(self, request):
        """Optimize query."""
        return super().get_queryset(request).select_related('owner', 'registered_user', 'local_customer')
