from django.contrib import admin

from .models import PaymentSession


@admin.register(PaymentSession)
class PaymentSessionAdmin(admin.ModelAdmin):
    """Payment sessions are written by the checkout flow and PayTR only."""

    list_display = ('merchant_oid', 'customer_name', 'total', 'status', 'order',
                    'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('merchant_oid', 'customer_name', 'customer_email')
    ordering = ('-created_at',)
    readonly_fields = [f.name for f in PaymentSession._meta.fields]

    def has_add_permission(self, request):
        return False
