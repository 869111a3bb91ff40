from django.contrib import admin
from .models import BankAccount, Payment


@admin.register(BankAccount)
class BankAccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'bank_name', 'account_number', 'currency', 'is_active']
    list_filter = ['bank_name', 'is_active']
    search_fields = ['name', 'account_number', 'iban']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['payment_number', 'payment_date', 'tenant', 'amount', 'payment_method', 'source', 'status']
    list_filter = ['payment_method', 'source', 'status']
    search_fields = ['payment_number', 'reference', 'transaction_id', 'source_pdc__cheque_number']
    readonly_fields = ['payment_number', 'source_pdc', 'source', 'invoice', 'amount', 'created_at']

    def has_delete_permission(self, request, obj=None):
        return False
