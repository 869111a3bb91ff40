"""
Finance models touched by the PDC engine.

Bank accounts are deposit targets; payments are the receipts posted when a
cheque clears or when a withdrawn cheque is substituted by another method.
"""
from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
from apps.core.models import BaseModel
from apps.core.utils import generate_number


class BankAccount(BaseModel):
    """
    Company bank account a cheque can be deposited into.
    """
    name = models.CharField(max_length=200)
    account_number = models.CharField(max_length=50)
    bank_name = models.CharField(max_length=200)
    branch = models.CharField(max_length=200, blank=True)
    swift_code = models.CharField(max_length=20, blank=True)
    iban = models.CharField(max_length=50, blank=True)
    currency = models.CharField(max_length=10, default='AED')

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} - {self.bank_name}"


class Payment(BaseModel):
    """
    Payment received against a rent invoice.

    At most one payment exists per (source_pdc, source): a cheque clears
    once and is withdrawn once.
    """
    PAYMENT_TYPE_CHOICES = [
        ('received', 'Payment Received'),
    ]

    METHOD_CHOICES = [
        ('pdc', 'Post-Dated Cheque'),
        ('bank', 'Bank Transfer'),
        ('cash', 'Cash'),
        ('cheque', 'Cheque'),
    ]

    STATUS_CHOICES = [
        ('confirmed', 'Confirmed'),
        ('cancelled', 'Cancelled'),
    ]

    SOURCE_PDC_CLEARANCE = 'pdc_clearance'
    SOURCE_PDC_WITHDRAWAL = 'pdc_withdrawal'
    SOURCE_CHOICES = [
        (SOURCE_PDC_CLEARANCE, 'PDC Clearance'),
        (SOURCE_PDC_WITHDRAWAL, 'PDC Withdrawal'),
    ]

    payment_number = models.CharField(max_length=50, unique=True, editable=False)
    payment_type = models.CharField(max_length=20, choices=PAYMENT_TYPE_CHOICES, default='received')
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='pdc')
    payment_date = models.DateField()

    amount = models.DecimalField(
        max_digits=15, decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    reference = models.CharField(max_length=200, blank=True)
    transaction_id = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='confirmed')

    tenant = models.ForeignKey(
        'property.Tenant',
        on_delete=models.PROTECT,
        related_name='payments'
    )
    invoice = models.ForeignKey(
        'property.RentInvoice',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )
    bank_account = models.ForeignKey(
        BankAccount,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments'
    )

    # Originating cheque
    source_pdc = models.ForeignKey(
        'pdc.PDCCheque',
        on_delete=models.PROTECT,
        related_name='payments'
    )
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)

    class Meta:
        ordering = ['-payment_date', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['source_pdc', 'source'],
                name='payment_unique_pdc_source',
            ),
        ]

    def __str__(self):
        return f"{self.payment_number} - {self.amount}"

    def save(self, *args, **kwargs):
        if not self.payment_number:
            self.payment_number = generate_number('PAYMENT', Payment, 'payment_number')
        super().save(*args, **kwargs)

    @classmethod
    def record_for_pdc(cls, pdc, source, amount, payment_date, payment_method='pdc',
                       transaction_id='', bank_account=None, notes=''):
        """
        Post a receipt originating from `pdc` and apply it to the cheque's
        invoice, if it has one.

        Must run inside the caller's unit of work so that the payment, the
        invoice balance and the cheque's status change commit together.
        """
        payment = cls.objects.create(
            payment_type='received',
            payment_method=payment_method,
            payment_date=payment_date,
            amount=amount,
            reference=pdc.cheque_number,
            transaction_id=transaction_id or '',
            notes=notes,
            tenant_id=pdc.tenant_id,
            invoice_id=pdc.invoice_id,
            bank_account=bank_account,
            source_pdc=pdc,
            source=source,
        )
        if pdc.invoice_id:
            pdc.invoice.apply_payment(amount)
        return payment
