"""
Property Management reference entities.

Tenants, leases and rent invoices are owned by the wider property system;
the PDC engine only resolves them by id, scopes cheque numbers by tenant,
and posts payments against invoices.
"""
from django.db import models
from django.core.exceptions import ValidationError
from decimal import Decimal
from apps.core.models import BaseModel
from apps.core.utils import generate_number


class Tenant(BaseModel):
    """
    Tenant for property rental.
    """
    tenant_number = models.CharField(max_length=50, unique=True, editable=False)
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.tenant_number} - {self.name}"

    def save(self, *args, **kwargs):
        if not self.tenant_number:
            self.tenant_number = generate_number('TENANT', Tenant, 'tenant_number')
        super().save(*args, **kwargs)


class Lease(BaseModel):
    """
    Tenancy contract a cheque may be written against.
    """
    lease_number = models.CharField(max_length=50, unique=True, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name='leases')

    start_date = models.DateField()
    end_date = models.DateField()

    annual_rent = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=[
        ('draft', 'Draft'),
        ('active', 'Active'),
        ('ended', 'Ended'),
    ], default='draft')

    class Meta:
        ordering = ['-start_date']

    def __str__(self):
        return f"{self.lease_number} - {self.tenant.name}"

    def save(self, *args, **kwargs):
        if not self.lease_number:
            self.lease_number = generate_number('LEASE', Lease, 'lease_number')
        super().save(*args, **kwargs)


class RentInvoice(BaseModel):
    """
    Rent invoice a PDC may settle. Payments from cleared or substituted
    cheques are applied through `apply_payment`.
    """
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('posted', 'Posted'),
        ('partial', 'Partially Paid'),
        ('paid', 'Paid'),
        ('cancelled', 'Cancelled'),
    ]

    invoice_number = models.CharField(max_length=50, unique=True, editable=False)
    tenant = models.ForeignKey(Tenant, on_delete=models.PROTECT, related_name='rent_invoices')
    lease = models.ForeignKey(Lease, on_delete=models.SET_NULL, null=True, blank=True, related_name='rent_invoices')

    invoice_date = models.DateField()
    due_date = models.DateField()

    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='posted')

    class Meta:
        ordering = ['-invoice_date', '-created_at']

    def __str__(self):
        return f"{self.invoice_number} - {self.tenant.name}"

    def save(self, *args, **kwargs):
        if not self.invoice_number:
            self.invoice_number = generate_number('RENT_INVOICE', RentInvoice, 'invoice_number')
        super().save(*args, **kwargs)

    @property
    def balance(self):
        return self.total_amount - self.paid_amount

    def apply_payment(self, amount):
        """
        Add a received amount to the invoice and move its status.

        Reads the balance from the locked row, so cheques settling the same
        invoice in parallel transactions add up instead of overwriting each
        other. Must be called inside the transaction that records the payment.
        """
        locked = RentInvoice.objects.select_for_update().get(pk=self.pk)
        if locked.status == 'cancelled':
            raise ValidationError(f'Invoice {locked.invoice_number} is cancelled.')

        locked.paid_amount += amount
        if locked.paid_amount >= locked.total_amount:
            locked.status = 'paid'
        elif locked.paid_amount > 0:
            locked.status = 'partial'
        locked.save(update_fields=['paid_amount', 'status', 'updated_at'])

        self.paid_amount = locked.paid_amount
        self.status = locked.status
        self.updated_at = locked.updated_at
