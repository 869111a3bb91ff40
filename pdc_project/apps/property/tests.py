"""
Document numbering and invoice payment application.
"""
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from .models import Lease, RentInvoice, Tenant


class PropertySetupMixin:
    """Mixin for setting up test data."""

    @classmethod
    def setUpTestData(cls):
        cls.tenant = Tenant.objects.create(name='Tenant One', email='tenant1@test.com')
        cls.lease = Lease.objects.create(
            tenant=cls.tenant,
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
            annual_rent=Decimal('60000.00'),
        )


class NumberingTest(PropertySetupMixin, TestCase):

    def test_sequential_tenant_numbers(self):
        second = Tenant.objects.create(name='Tenant Two')
        first_seq = int(self.tenant.tenant_number.split('-')[-1])
        self.assertTrue(self.tenant.tenant_number.startswith('TEN-'))
        self.assertEqual(second.tenant_number.split('-')[-1], str(first_seq + 1).zfill(4))


class ApplyPaymentTest(PropertySetupMixin, TestCase):

    def make_invoice(self, **kwargs):
        return RentInvoice.objects.create(
            tenant=self.tenant,
            lease=self.lease,
            invoice_date=date(2026, 1, 1),
            due_date=date(2026, 1, 31),
            total_amount=Decimal('15000.00'),
            **kwargs
        )

    def test_partial_then_paid(self):
        invoice = self.make_invoice()

        invoice.apply_payment(Decimal('5000.00'))
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, 'partial')
        self.assertEqual(invoice.balance, Decimal('10000.00'))

        invoice.apply_payment(Decimal('10000.00'))
        invoice.refresh_from_db()
        self.assertEqual(invoice.status, 'paid')
        self.assertEqual(invoice.balance, Decimal('0.00'))

    def test_cancelled_invoice_rejects_payment(self):
        invoice = self.make_invoice(status='cancelled')
        with self.assertRaises(ValidationError):
            invoice.apply_payment(Decimal('100.00'))
        invoice.refresh_from_db()
        self.assertEqual(invoice.paid_amount, Decimal('0.00'))

    def test_stale_copies_accumulate(self):
        invoice = self.make_invoice()
        first_copy = RentInvoice.objects.get(pk=invoice.pk)
        second_copy = RentInvoice.objects.get(pk=invoice.pk)

        first_copy.apply_payment(Decimal('5000.00'))
        second_copy.apply_payment(Decimal('10000.00'))

        invoice.refresh_from_db()
        self.assertEqual(invoice.paid_amount, Decimal('15000.00'))
        self.assertEqual(invoice.status, 'paid')
        self.assertEqual(second_copy.paid_amount, Decimal('15000.00'))
