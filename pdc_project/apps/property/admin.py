"""
Property Management Admin
"""
from django.contrib import admin
from .models import Tenant, Lease, RentInvoice


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ['tenant_number', 'name', 'email', 'phone', 'is_active']
    list_filter = ['is_active']
    search_fields = ['tenant_number', 'name', 'email', 'phone']
    readonly_fields = ['tenant_number', 'created_at', 'updated_at']


@admin.register(Lease)
class LeaseAdmin(admin.ModelAdmin):
    list_display = ['lease_number', 'tenant', 'start_date', 'end_date', 'annual_rent', 'status']
    list_filter = ['status']
    search_fields = ['lease_number', 'tenant__name']
    readonly_fields = ['lease_number', 'created_at', 'updated_at']


@admin.register(RentInvoice)
class RentInvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'tenant', 'invoice_date', 'total_amount', 'paid_amount', 'status']
    list_filter = ['status']
    search_fields = ['invoice_number', 'tenant__name']
    readonly_fields = ['invoice_number', 'paid_amount', 'created_at', 'updated_at']
