"""
PDC creation and lifecycle service tests.
"""
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F
from django.test import TestCase, override_settings

from apps.core.exceptions import (
    ConcurrencyConflict,
    DuplicateException,
    EntityNotFoundException,
    InvalidStatusException,
    TransientError,
    ValidationException,
)
from apps.finance.models import Payment
from apps.pdc import services
from apps.pdc.models import PDCCheque, PDCStatusHistory
from apps.pdc.states import PDCStatus
from apps.settings_app.models import AuditLog, NumberSeries

from .base import PDCSetupMixin


def cheque_rows(count, start=200001, amount='1000.00', cheque_date=None):
    return [
        {
            'cheque_number': str(start + i),
            'bank_name': 'ADCB',
            'amount': amount,
            'cheque_date': cheque_date,
        }
        for i in range(count)
    ]


class CreatePDCTest(PDCSetupMixin, TestCase):

    def test_create_records_received_cheque(self):
        pdc = self.make_pdc(lease_id=self.lease.pk, invoice_id=self.invoice.pk)

        self.assertEqual(pdc.status, PDCStatus.RECEIVED)
        self.assertEqual(pdc.version, 1)
        self.assertEqual(pdc.amount, Decimal('5000.00'))
        self.assertTrue(pdc.pdc_number.startswith('PDC-'))
        self.assertEqual(pdc.lease, self.lease)
        self.assertEqual(pdc.invoice, self.invoice)
        self.assertEqual(pdc.created_by, self.manager)

    def test_create_writes_receipt_history_and_audit(self):
        pdc = self.make_pdc()

        history = list(PDCStatusHistory.objects.filter(pdc=pdc))
        self.assertEqual(len(history), 1)
        self.assertIsNone(history[0].from_status)
        self.assertEqual(history[0].to_status, PDCStatus.RECEIVED)
        self.assertEqual(history[0].actor, self.manager)
        self.assertTrue(
            AuditLog.objects.filter(model='PDC.PDC', record_id=str(pdc.pk), action='create').exists()
        )

    def test_rejects_past_cheque_date(self):
        with self.assertRaises(ValidationException) as ctx:
            self.make_pdc(days_ahead=-1)
        self.assertIn('cheque_date', ctx.exception.errors)
        self.assertFalse(PDCCheque.objects.exists())

    def test_rejects_bad_amounts(self):
        for amount in ('0', '-5', '0.001', '100000000.00', 'abc'):
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationException) as ctx:
                    self.make_pdc(amount=amount)
                self.assertIn('amount', ctx.exception.errors)

    def test_accepts_amount_bounds(self):
        low = self.make_pdc('300001', amount='0.01')
        high = self.make_pdc('300002', amount='99999999.99')
        self.assertEqual(low.amount, Decimal('0.01'))
        self.assertEqual(high.amount, Decimal('99999999.99'))

    def test_rejects_bad_cheque_numbers(self):
        for number in ('12', 'AB 123', 'X' * 51, ''):
            with self.subTest(number=number):
                with self.assertRaises(ValidationException):
                    self.make_pdc(cheque_number=number)

    def test_unknown_tenant(self):
        with self.assertRaises(EntityNotFoundException) as ctx:
            services.create_pdc(999999, '100001', 'ADCB', '100.00', self.today.isoformat())
        self.assertEqual(ctx.exception.entity, 'Tenant')

    def test_invoice_of_another_tenant_rejected(self):
        with self.assertRaises(ValidationException) as ctx:
            self.make_pdc(tenant=self.other_tenant, invoice_id=self.invoice.pk)
        self.assertIn('invoice_id', ctx.exception.errors)

    def test_lease_of_another_tenant_rejected(self):
        with self.assertRaises(ValidationException):
            self.make_pdc(tenant=self.other_tenant, lease_id=self.lease.pk)


class ChequeNumberUniquenessTest(PDCSetupMixin, TestCase):

    def test_duplicate_for_same_tenant_rejected(self):
        self.make_pdc('100001')
        with self.assertRaises(DuplicateException) as ctx:
            self.make_pdc('100001', amount='10.00')
        self.assertEqual(ctx.exception.cheque_numbers, ['100001'])
        self.assertEqual(PDCCheque.objects.filter(cheque_number='100001').count(), 1)

    def test_same_number_allowed_for_different_tenants(self):
        self.make_pdc('100001')
        pdc = self.make_pdc('100001', tenant=self.other_tenant)
        self.assertEqual(pdc.tenant, self.other_tenant)

    def test_number_stays_taken_after_terminal_states(self):
        pdc = self.make_deposited('100001')
        services.clear_pdc(pdc.pk, self.today.isoformat())
        with self.assertRaises(DuplicateException):
            self.make_pdc('100001')

    def test_cancelled_number_can_be_reused(self):
        first = self.make_pdc('100001')
        services.cancel_pdc(first.pk)

        second = self.make_pdc('100001')
        self.assertNotEqual(first.pk, second.pk)
        self.assertFalse(services.cheque_number_exists(self.tenant.pk, '100001', exclude_id=second.pk))
        self.assertTrue(services.cheque_number_exists(self.tenant.pk, '100001'))

    def test_database_constraint_backs_the_check(self):
        pdc = self.make_pdc('100001')
        clone = PDCCheque(
            tenant=self.tenant,
            cheque_number='100001',
            bank_name='ADCB',
            amount=Decimal('10.00'),
            cheque_date=pdc.cheque_date,
        )
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                clone.save()


class DocumentNumberingTest(PDCSetupMixin, TestCase):

    def setUp(self):
        self.year_prefix = f'PDC-{self.today.year}-'

    @override_settings(NUMBER_SERIES={**settings.NUMBER_SERIES, 'PDC': {'prefix': 'PDC', 'padding': 1}})
    def test_series_continues_past_padding_width(self):
        for i in range(10):
            self.make_pdc(f'30000{i}')

        pdc = self.make_pdc('123456')
        self.assertEqual(pdc.pdc_number, f'{self.year_prefix}11')
        self.assertEqual(PDCCheque.objects.filter(pdc_number__startswith=self.year_prefix).count(), 11)

    def test_new_series_starts_after_highest_stored_number(self):
        low = self.make_pdc('300001')
        high = self.make_pdc('300002')
        PDCCheque.objects.filter(pk=low.pk).update(pdc_number=f'{self.year_prefix}9999')
        PDCCheque.objects.filter(pk=high.pk).update(pdc_number=f'{self.year_prefix}10000')
        NumberSeries.objects.filter(document_type='PDC').delete()

        pdc = self.make_pdc('300003')
        self.assertEqual(pdc.pdc_number, f'{self.year_prefix}10001')

    def test_document_number_clash_is_retryable(self):
        first = self.make_pdc('300001')
        NumberSeries.objects.filter(document_type='PDC').update(next_number=F('next_number') - 1)

        with self.assertRaises(TransientError) as ctx:
            self.make_pdc('300002')
        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.http_status, 503)
        self.assertFalse(PDCCheque.objects.filter(cheque_number='300002').exists())
        self.assertEqual(PDCCheque.objects.get(pk=first.pk).cheque_number, '300001')

    def test_bulk_document_number_clash_is_retryable(self):
        self.make_pdc('300001')
        NumberSeries.objects.filter(document_type='PDC').update(next_number=F('next_number') - 1)

        with self.assertRaises(TransientError):
            services.bulk_create_pdcs(self.tenant.pk, cheque_rows(2, cheque_date=self.today.isoformat()))
        self.assertEqual(PDCCheque.objects.filter(tenant=self.tenant).count(), 1)

    def test_payment_number_clash_rolls_back_clearance(self):
        first = self.make_deposited('300001', amount='1000.00', invoice_id=self.invoice.pk)
        services.clear_pdc(first.pk, self.today.isoformat())
        second = self.make_deposited('300002', amount='1000.00', invoice_id=self.invoice.pk)
        NumberSeries.objects.filter(document_type='PAYMENT').update(next_number=F('next_number') - 1)

        with self.assertRaises(TransientError):
            services.clear_pdc(second.pk, self.today.isoformat())

        second.refresh_from_db()
        self.assertEqual(second.status, PDCStatus.DEPOSITED)
        self.assertFalse(Payment.objects.filter(source_pdc=second).exists())
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal('1000.00'))


class BulkCreateTest(PDCSetupMixin, TestCase):

    def test_creates_batch_in_input_order(self):
        rows = cheque_rows(3, cheque_date=self.today.isoformat())
        rows[1]['invoice_id'] = self.invoice.pk

        created = services.bulk_create_pdcs(self.tenant.pk, rows, lease_id=self.lease.pk, actor=self.manager)

        self.assertEqual([pdc.cheque_number for pdc in created], ['200001', '200002', '200003'])
        self.assertTrue(all(pdc.status == PDCStatus.RECEIVED for pdc in created))
        self.assertTrue(all(pdc.lease_id == self.lease.pk for pdc in created))
        self.assertEqual(created[1].invoice, self.invoice)
        self.assertEqual(PDCStatusHistory.objects.filter(to_status=PDCStatus.RECEIVED).count(), 3)

    def test_batch_size_limits(self):
        for size in (0, 25):
            with self.subTest(size=size):
                with self.assertRaises(ValidationException):
                    services.bulk_create_pdcs(
                        self.tenant.pk, cheque_rows(size, cheque_date=self.today.isoformat())
                    )
        created = services.bulk_create_pdcs(self.tenant.pk, cheque_rows(24, cheque_date=self.today.isoformat()))
        self.assertEqual(len(created), 24)

    def test_duplicate_against_history_creates_nothing(self):
        self.make_pdc('200004')
        rows = cheque_rows(5, cheque_date=self.today.isoformat())

        with self.assertRaises(DuplicateException) as ctx:
            services.bulk_create_pdcs(self.tenant.pk, rows)

        self.assertEqual(ctx.exception.cheque_numbers, ['200004'])
        self.assertEqual(PDCCheque.objects.filter(tenant=self.tenant).count(), 1)

    def test_duplicate_within_batch_creates_nothing(self):
        rows = cheque_rows(3, cheque_date=self.today.isoformat())
        rows[2]['cheque_number'] = rows[0]['cheque_number']

        with self.assertRaises(DuplicateException) as ctx:
            services.bulk_create_pdcs(self.tenant.pk, rows)

        self.assertEqual(ctx.exception.cheque_numbers, ['200001'])
        self.assertFalse(PDCCheque.objects.exists())

    def test_invalid_row_reports_its_index(self):
        rows = cheque_rows(3, cheque_date=self.today.isoformat())
        rows[1]['amount'] = '0'

        with self.assertRaises(ValidationException) as ctx:
            services.bulk_create_pdcs(self.tenant.pk, rows)

        self.assertIn('cheques[1].amount', ctx.exception.errors)
        self.assertFalse(PDCCheque.objects.exists())

    def test_non_list_rejected(self):
        with self.assertRaises(ValidationException):
            services.bulk_create_pdcs(self.tenant.pk, {'cheque_number': '200001'})


class DepositClearBounceTest(PDCSetupMixin, TestCase):

    def test_deposit_records_bank_and_date(self):
        pdc = self.make_due()
        pdc = services.deposit_pdc(
            pdc.pk, self.today.isoformat(), self.bank_account.pk, expected_version=pdc.version,
            actor=self.manager,
        )

        self.assertEqual(pdc.status, PDCStatus.DEPOSITED)
        self.assertEqual(pdc.deposit_date, self.today)
        self.assertEqual(pdc.deposit_bank_account, self.bank_account)
        self.assertEqual(pdc.version, 3)

        last = services.status_history(pdc).last()
        self.assertEqual((last.from_status, last.to_status), (PDCStatus.DUE, PDCStatus.DEPOSITED))
        self.assertEqual(last.actor, self.manager)

    def test_deposit_rejects_future_date(self):
        pdc = self.make_due()
        tomorrow = self.today + timedelta(days=1)
        with self.assertRaises(ValidationException):
            services.deposit_pdc(pdc.pk, tomorrow.isoformat(), self.bank_account.pk)

    def test_deposit_rejects_inactive_or_unknown_account(self):
        pdc = self.make_due()
        for account_id in (self.closed_account.pk, 999999):
            with self.subTest(account_id=account_id):
                with self.assertRaises(EntityNotFoundException) as ctx:
                    services.deposit_pdc(pdc.pk, self.today.isoformat(), account_id)
                self.assertEqual(ctx.exception.entity, 'BankAccount')
        pdc.refresh_from_db()
        self.assertEqual(pdc.status, PDCStatus.DUE)

    def test_clear_without_invoice_posts_no_payment(self):
        pdc = self.make_deposited()
        pdc = services.clear_pdc(pdc.pk, self.today.isoformat())

        self.assertEqual(pdc.status, PDCStatus.CLEARED)
        self.assertEqual(pdc.cleared_date, self.today)
        self.assertFalse(Payment.objects.exists())

    def test_clear_posts_exactly_one_payment(self):
        pdc = self.make_deposited(invoice_id=self.invoice.pk)
        version = pdc.version

        services.clear_pdc(pdc.pk, self.today.isoformat(), expected_version=version, actor=self.manager)

        with self.assertRaises(ConcurrencyConflict):
            services.clear_pdc(pdc.pk, self.today.isoformat(), expected_version=version)
        with self.assertRaises(InvalidStatusException):
            services.clear_pdc(pdc.pk, self.today.isoformat())

        payments = Payment.objects.filter(source_pdc=pdc)
        self.assertEqual(payments.count(), 1)
        payment = payments.get()
        self.assertEqual(payment.source, Payment.SOURCE_PDC_CLEARANCE)
        self.assertEqual(payment.amount, Decimal('5000.00'))
        self.assertEqual(payment.invoice, self.invoice)
        self.assertEqual(payment.bank_account, self.bank_account)
        self.assertEqual(payment.reference, pdc.cheque_number)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal('5000.00'))
        self.assertEqual(self.invoice.status, 'paid')

    def test_clear_on_cancelled_invoice_rolls_back(self):
        pdc = self.make_deposited(invoice_id=self.invoice.pk)
        self.invoice.status = 'cancelled'
        self.invoice.save()

        with self.assertRaises(ValidationException):
            services.clear_pdc(pdc.pk, self.today.isoformat())

        pdc.refresh_from_db()
        self.assertEqual(pdc.status, PDCStatus.DEPOSITED)
        self.assertFalse(Payment.objects.exists())
        self.assertFalse(PDCStatusHistory.objects.filter(pdc=pdc, to_status=PDCStatus.CLEARED).exists())

    def test_bounce_records_reason(self):
        pdc = self.make_deposited()
        pdc = services.bounce_pdc(pdc.pk, self.today.isoformat(), 'Insufficient funds')

        self.assertEqual(pdc.status, PDCStatus.BOUNCED)
        self.assertEqual(pdc.bounced_date, self.today)
        self.assertEqual(pdc.bounce_reason, 'Insufficient funds')
        self.assertEqual(services.status_history(pdc).last().notes, 'Insufficient funds')

    def test_bounce_requires_reason(self):
        pdc = self.make_deposited()
        with self.assertRaises(ValidationException) as ctx:
            services.bounce_pdc(pdc.pk, self.today.isoformat(), '')
        self.assertIn('bounce_reason', ctx.exception.errors)

    def test_unknown_pdc(self):
        with self.assertRaises(EntityNotFoundException):
            services.clear_pdc(999999, self.today.isoformat())


class VersionConflictTest(PDCSetupMixin, TestCase):

    def test_stale_version_is_rejected(self):
        pdc = self.make_due()
        services.deposit_pdc(pdc.pk, self.today.isoformat(), self.bank_account.pk, expected_version=pdc.version)

        with self.assertRaises(ConcurrencyConflict) as ctx:
            services.bounce_pdc(
                pdc.pk, self.today.isoformat(), 'Stale', expected_version=pdc.version
            )

        self.assertEqual(ctx.exception.current_version, pdc.version + 1)
        self.assertEqual(ctx.exception.to_dict()['currentStatus'], 'DEPOSITED')
        self.assertTrue(ctx.exception.retryable)

    def test_non_integer_version(self):
        pdc = self.make_pdc()
        with self.assertRaises(ValidationException):
            services.cancel_pdc(pdc.pk, expected_version='one')

    def test_version_increments_once_per_transition(self):
        pdc = self.make_deposited()
        pdc = services.clear_pdc(pdc.pk, self.today.isoformat())
        # created 1, DUE 2, DEPOSITED 3, CLEARED 4
        self.assertEqual(pdc.version, 4)
        self.assertEqual(services.status_history(pdc).count(), 4)


class DueSweepTest(PDCSetupMixin, TestCase):

    def test_promotes_cheques_inside_window(self):
        inside = self.make_pdc('400001', days_ahead=7)
        outside = self.make_pdc('400002', days_ahead=8)

        promoted = services.promote_due_pdcs(self.today)

        self.assertEqual([pdc.pk for pdc in promoted], [inside.pk])
        inside.refresh_from_db()
        outside.refresh_from_db()
        self.assertEqual(inside.status, PDCStatus.DUE)
        self.assertEqual(outside.status, PDCStatus.RECEIVED)

        entry = services.status_history(inside).last()
        self.assertIsNone(entry.actor)
        self.assertEqual(entry.notes, f'Due sweep {self.today.isoformat()}')

    def test_overdue_received_cheques_are_promoted(self):
        pdc = self.make_pdc('400003')
        later = self.today + timedelta(days=30)

        promoted = services.promote_due_pdcs(later)

        self.assertEqual([p.pk for p in promoted], [pdc.pk])

    def test_sweep_is_idempotent(self):
        pdc = self.make_pdc('400004', days_ahead=3)

        self.assertEqual(len(services.promote_due_pdcs(self.today)), 1)
        self.assertEqual(services.promote_due_pdcs(self.today), [])

        self.assertEqual(
            PDCStatusHistory.objects.filter(pdc=pdc, to_status=PDCStatus.DUE).count(), 1
        )

    @override_settings(PDC_SETTINGS={'DUE_WINDOW_DAYS': 2})
    def test_window_is_configurable(self):
        self.make_pdc('400005', days_ahead=3)
        self.assertEqual(services.promote_due_pdcs(self.today), [])


class CancelTest(PDCSetupMixin, TestCase):

    def test_cancel_received(self):
        pdc = services.cancel_pdc(self.make_pdc().pk, notes='Entered by mistake', actor=self.admin)

        self.assertEqual(pdc.status, PDCStatus.CANCELLED)
        entry = services.status_history(pdc).last()
        self.assertEqual(entry.notes, 'Entered by mistake')
        self.assertEqual(entry.actor, self.admin)

    def test_records_are_not_deletable(self):
        pdc = self.make_pdc()
        with self.assertRaises(PermissionError):
            pdc.delete()
        entry = services.status_history(pdc).first()
        with self.assertRaises(PermissionError):
            entry.save()
        with self.assertRaises(PermissionError):
            entry.delete()


class QueryTest(PDCSetupMixin, TestCase):

    def test_distinct_bank_names(self):
        self.make_pdc('500001', bank_name='ADCB')
        self.make_pdc('500002', bank_name='Mashreq')
        self.make_pdc('500003', bank_name='ADCB')
        self.assertEqual(services.distinct_bank_names(), ['ADCB', 'Mashreq'])

    def test_pdcs_for_invoice(self):
        pdc = self.make_pdc('500004', invoice_id=self.invoice.pk)
        self.make_pdc('500005')
        self.assertEqual([p.pk for p in services.pdcs_for_invoice(self.invoice.pk)], [pdc.pk])
        with self.assertRaises(EntityNotFoundException):
            services.pdcs_for_invoice(999999)

    def test_pdcs_due_for_reminder(self):
        due_today = self.make_pdc('500006')
        self.make_pdc('500007', days_ahead=2)
        services.promote_due_pdcs(self.today)
        self.assertEqual([p.pk for p in services.pdcs_due_for_reminder(self.today)], [due_today.pk])
