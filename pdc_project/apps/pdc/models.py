"""
PDC record store.

`PDCCheque.status` is only written by the service layer (apps.pdc.services,
replacement, withdrawals), which locks the row, checks the transition table
and appends a `PDCStatusHistory` entry in the same transaction.
"""
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.db.models import Q

from apps.core.models import BaseModel, VersionedModel
from apps.core.utils import generate_number

from .states import PDCStatus

MIN_AMOUNT = Decimal('0.01')
MAX_AMOUNT = Decimal('99999999.99')

cheque_number_validator = RegexValidator(
    r'^[A-Za-z0-9-]{3,50}$',
    'Cheque number must be 3-50 characters of letters, digits or hyphens.'
)


class PDCCheque(BaseModel, VersionedModel):
    """
    Post-Dated Cheque received from a tenant.

    Cheque numbers are unique per tenant across every cheque that was not
    cancelled, including cleared, replaced and withdrawn ones.
    """
    REPLACEMENT_METHOD_CHOICES = [
        ('BANK_TRANSFER', 'Bank Transfer'),
        ('CASH', 'Cash'),
        ('NEW_CHEQUE', 'New Cheque'),
    ]

    pdc_number = models.CharField(max_length=50, unique=True, editable=False)

    tenant = models.ForeignKey('property.Tenant', on_delete=models.PROTECT, related_name='pdc_cheques')
    lease = models.ForeignKey(
        'property.Lease', on_delete=models.PROTECT, null=True, blank=True, related_name='pdc_cheques'
    )
    invoice = models.ForeignKey(
        'property.RentInvoice', on_delete=models.PROTECT, null=True, blank=True, related_name='pdc_cheques',
        help_text='Invoice settled when the cheque clears'
    )

    # Cheque details
    cheque_number = models.CharField(max_length=50, validators=[cheque_number_validator])
    bank_name = models.CharField(max_length=100)
    amount = models.DecimalField(
        max_digits=12, decimal_places=2,
        validators=[MinValueValidator(MIN_AMOUNT), MaxValueValidator(MAX_AMOUNT)]
    )
    cheque_date = models.DateField(help_text='Date printed on the cheque')

    status = models.CharField(max_length=20, choices=PDCStatus.choices, default=PDCStatus.RECEIVED)

    # Deposit details
    deposit_date = models.DateField(null=True, blank=True)
    deposit_bank_account = models.ForeignKey(
        'finance.BankAccount',
        on_delete=models.PROTECT,
        null=True, blank=True,
        related_name='deposited_pdcs'
    )

    # Clearing details
    cleared_date = models.DateField(null=True, blank=True)

    # Bounce details
    bounced_date = models.DateField(null=True, blank=True)
    bounce_reason = models.CharField(max_length=255, blank=True)

    # Withdrawal details
    withdrawal_date = models.DateField(null=True, blank=True)
    withdrawal_reason = models.CharField(max_length=255, blank=True)
    replacement_payment_method = models.CharField(
        max_length=20, choices=REPLACEMENT_METHOD_CHOICES, blank=True
    )
    transaction_id = models.CharField(max_length=100, blank=True)

    # Replacement chain
    original_cheque = models.OneToOneField(
        'self',
        on_delete=models.PROTECT,
        null=True, blank=True,
        related_name='+',
        help_text='Bounced cheque this one replaces'
    )
    replacement_cheque = models.OneToOneField(
        'self',
        on_delete=models.PROTECT,
        null=True, blank=True,
        related_name='+',
        help_text='Cheque that replaced this one'
    )

    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['cheque_date', 'id']
        verbose_name = 'PDC Cheque'
        verbose_name_plural = 'PDC Cheques'
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'cheque_number'],
                condition=~Q(status=PDCStatus.CANCELLED),
                name='pdc_unique_tenant_cheque_number',
            ),
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name='pdc_amount_positive',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'cheque_date'], name='pdc_status_date_idx'),
            models.Index(fields=['tenant', 'status'], name='pdc_tenant_status_idx'),
            models.Index(fields=['deposit_date'], name='pdc_deposit_date_idx'),
        ]

    def __str__(self):
        return f"{self.pdc_number} - {self.cheque_number} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.pdc_number:
            self.pdc_number = generate_number('PDC', PDCCheque, 'pdc_number')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError('PDC cheques are retained for audit and cannot be deleted.')

    @property
    def status_enum(self):
        return PDCStatus(self.status)

    @property
    def is_terminal(self):
        return self.status_enum.is_terminal


class PDCStatusHistory(models.Model):
    """
    Append-only audit trail of status changes.
    `from_status` is empty for the entry recorded at receipt.
    """
    pdc = models.ForeignKey(PDCCheque, on_delete=models.PROTECT, related_name='status_history')
    from_status = models.CharField(max_length=20, choices=PDCStatus.choices, null=True, blank=True)
    to_status = models.CharField(max_length=20, choices=PDCStatus.choices)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True, blank=True,
        related_name='pdc_status_changes'
    )
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['timestamp', 'id']
        verbose_name_plural = 'PDC status history'
        indexes = [
            models.Index(fields=['to_status', 'timestamp'], name='pdchist_to_status_ts_idx'),
        ]

    def __str__(self):
        return f"{self.pdc_id}: {self.from_status or '-'} -> {self.to_status}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise PermissionError('Status history entries are append-only.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionError('Status history entries are append-only.')


class PDCWithdrawal(models.Model):
    """
    One row per withdrawn cheque, queryable by reason and date without
    scanning the cheque table.
    """
    STANDARD_REASONS = [
        'Cheque Bounced',
        'Replacement Requested',
        'Early Contract Termination',
        'Payment Method Change',
        'Tenant Request',
        'Other',
    ]

    pdc = models.OneToOneField(PDCCheque, on_delete=models.PROTECT, related_name='withdrawal')
    tenant = models.ForeignKey('property.Tenant', on_delete=models.PROTECT, related_name='pdc_withdrawals')
    withdrawal_date = models.DateField()
    reason = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    replacement_payment_method = models.CharField(
        max_length=20, choices=PDCCheque.REPLACEMENT_METHOD_CHOICES, blank=True
    )
    transaction_id = models.CharField(max_length=100, blank=True)
    bank_account = models.ForeignKey(
        'finance.BankAccount', on_delete=models.PROTECT, null=True, blank=True, related_name='pdc_withdrawals'
    )
    payment = models.OneToOneField(
        'finance.Payment', on_delete=models.PROTECT, null=True, blank=True, related_name='pdc_withdrawal'
    )
    recorded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='pdc_withdrawals'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-withdrawal_date', '-id']
        indexes = [
            models.Index(fields=['reason', 'withdrawal_date'], name='pdcwd_reason_date_idx'),
            models.Index(fields=['withdrawal_date'], name='pdcwd_date_idx'),
        ]

    def __str__(self):
        return f"{self.pdc} withdrawn {self.withdrawal_date}: {self.reason}"
