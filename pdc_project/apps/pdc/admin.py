from django.contrib import admin
from .models import PDCCheque, PDCStatusHistory, PDCWithdrawal


class PDCStatusHistoryInline(admin.TabularInline):
    model = PDCStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ['from_status', 'to_status', 'timestamp', 'actor', 'notes']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PDCCheque)
class PDCChequeAdmin(admin.ModelAdmin):
    """Read-only: status changes go through the API so history is kept."""
    list_display = [
        'pdc_number', 'cheque_number', 'bank_name', 'cheque_date',
        'amount', 'tenant', 'status', 'version'
    ]
    list_filter = ['status', 'bank_name']
    search_fields = ['pdc_number', 'cheque_number', 'tenant__name', 'bank_name']
    date_hierarchy = 'cheque_date'
    inlines = [PDCStatusHistoryInline]

    fieldsets = (
        ('Cheque Details', {
            'fields': ('pdc_number', 'cheque_number', 'bank_name', 'cheque_date', 'amount')
        }),
        ('Tenant & Lease', {
            'fields': ('tenant', 'lease', 'invoice')
        }),
        ('Status', {
            'fields': ('status', 'version')
        }),
        ('Deposit & Clearing', {
            'fields': ('deposit_date', 'deposit_bank_account', 'cleared_date')
        }),
        ('Bounce', {
            'fields': ('bounced_date', 'bounce_reason'),
            'classes': ('collapse',)
        }),
        ('Withdrawal', {
            'fields': ('withdrawal_date', 'withdrawal_reason', 'replacement_payment_method', 'transaction_id'),
            'classes': ('collapse',)
        }),
        ('Replacement', {
            'fields': ('original_cheque', 'replacement_cheque'),
            'classes': ('collapse',)
        }),
        ('Notes', {
            'fields': ('notes',)
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PDCWithdrawal)
class PDCWithdrawalAdmin(admin.ModelAdmin):
    list_display = ['pdc', 'tenant', 'withdrawal_date', 'reason', 'amount', 'replacement_payment_method']
    list_filter = ['reason', 'replacement_payment_method']
    search_fields = ['pdc__cheque_number', 'tenant__name', 'transaction_id']
    date_hierarchy = 'withdrawal_date'

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
