"""
Settings app models - Roles, Role assignments, Audit log, Company Settings,
Number series.
"""
from django.db import models
from django.conf import settings
from apps.core.models import BaseModel


class Role(BaseModel):
    """
    User roles for the system.
    Role codes are what the engine checks; names are for display.
    """
    SUPER_ADMIN = 'SUPER_ADMIN'
    ADMIN = 'ADMIN'
    PROPERTY_MANAGER = 'PROPERTY_MANAGER'

    name = models.CharField(max_length=100)
    code = models.CharField(max_length=50, unique=True)
    description = models.TextField(blank=True)
    is_system_role = models.BooleanField(default=False)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class UserRole(BaseModel):
    """
    Links users to roles.
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='user_roles')
    role = models.ForeignKey(Role, on_delete=models.CASCADE, related_name='user_roles')
    assigned_date = models.DateField(auto_now_add=True)

    class Meta:
        unique_together = ['user', 'role']

    def __str__(self):
        return f"{self.user.username} - {self.role.name}"


class CompanySettings(models.Model):
    """
    Company-wide settings. The company name is printed as PDC holder.
    """
    company_name = models.CharField(max_length=200)
    address = models.TextField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    tax_id = models.CharField(max_length=50, blank=True, verbose_name='Tax ID / TRN')
    currency = models.CharField(max_length=10, default='AED')
    timezone = models.CharField(max_length=50, default='Asia/Dubai')

    class Meta:
        verbose_name = 'Company Settings'
        verbose_name_plural = 'Company Settings'

    def __str__(self):
        return self.company_name

    @classmethod
    def get_settings(cls):
        """Return the configured settings row, or None if never configured."""
        return cls.objects.filter(pk=1).first()


class NumberSeries(models.Model):
    """
    Document number counter, one row per document type and year.
    Callers hold the row lock while they take a number.
    """
    document_type = models.CharField(max_length=50)
    year = models.PositiveIntegerField()
    next_number = models.PositiveIntegerField(default=1)

    class Meta:
        verbose_name_plural = 'Number Series'
        constraints = [
            models.UniqueConstraint(fields=['document_type', 'year'], name='number_series_type_year_uniq'),
        ]

    def __str__(self):
        return f"{self.document_type} {self.year}: {self.next_number}"

    def take_next(self):
        """Return the current counter value and advance the series."""
        number = self.next_number
        self.next_number += 1
        self.save(update_fields=['next_number'])
        return number


class AuditLog(models.Model):
    """
    System audit log for tracking all financial actions.
    """
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('transition', 'Status Transition'),
        ('post', 'Post'),
        ('notify', 'Notify'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='audit_logs'
    )
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    model = models.CharField(max_length=100)
    record_id = models.CharField(max_length=50, blank=True)
    changes = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)

    class Meta:
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['model', 'record_id'], name='auditlog_model_record_idx'),
        ]

    def __str__(self):
        return f"{self.user} - {self.action} - {self.model}"
