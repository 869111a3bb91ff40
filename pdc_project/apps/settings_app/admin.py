from django.contrib import admin
from .models import Role, UserRole, CompanySettings, NumberSeries, AuditLog


class UserRoleInline(admin.TabularInline):
    model = UserRole
    extra = 0
    fields = ['user', 'assigned_date', 'is_active']
    readonly_fields = ['assigned_date']
    autocomplete_fields = ['user']


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ['code', 'name', 'is_system_role', 'is_active']
    list_filter = ['is_active']
    search_fields = ['code', 'name']
    inlines = [UserRoleInline]

    def get_readonly_fields(self, request, obj=None):
        # Permission checks match on code
        if obj and obj.is_system_role:
            return ['code', 'is_system_role']
        return []


@admin.register(CompanySettings)
class CompanySettingsAdmin(admin.ModelAdmin):
    list_display = ['company_name', 'currency', 'email']

    def has_add_permission(self, request):
        return not CompanySettings.objects.exists()


@admin.register(NumberSeries)
class NumberSeriesAdmin(admin.ModelAdmin):
    list_display = ['document_type', 'year', 'next_number']
    list_filter = ['year']

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Read-only trail of cheque and payment writes."""
    list_display = ['timestamp', 'model', 'record_id', 'action', 'user']
    list_filter = ['model', 'action']
    list_select_related = ['user']
    search_fields = ['record_id', 'user__username']
    date_hierarchy = 'timestamp'

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
