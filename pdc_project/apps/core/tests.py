"""
Tests for the shared API helpers, error taxonomy and audit trail.
"""
from django.contrib.auth.models import User
from django.test import RequestFactory, SimpleTestCase, TestCase

from apps.settings_app.models import AuditLog

from .api import camel_to_snake, get_page_params, snake_keys
from .audit import log_finance_audit
from .exceptions import ConcurrencyConflict, DuplicateException, InvalidStatusException, ValidationException
from .middleware import acting_as, get_current_user


class CaseConversionTest(SimpleTestCase):

    def test_camel_to_snake(self):
        self.assertEqual(camel_to_snake('chequeNumber'), 'cheque_number')
        self.assertEqual(camel_to_snake('expectedVersion'), 'expected_version')
        self.assertEqual(camel_to_snake('amount'), 'amount')

    def test_snake_keys_is_recursive(self):
        payload = {
            'tenantId': 1,
            'cheques': [{'chequeNumber': 'A-1'}],
            'transactionDetails': {'bankAccountId': 2},
        }
        self.assertEqual(snake_keys(payload), {
            'tenant_id': 1,
            'cheques': [{'cheque_number': 'A-1'}],
            'transaction_details': {'bank_account_id': 2},
        })


class PageParamsTest(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_defaults(self):
        self.assertEqual(get_page_params(self.factory.get('/')), (0, 20))

    def test_rejects_out_of_range(self):
        for query in ({'page': -1}, {'size': 0}, {'size': 101}, {'page': 'x'}):
            with self.subTest(query=query):
                with self.assertRaises(ValidationException):
                    get_page_params(self.factory.get('/', query))


class ErrorBodyTest(SimpleTestCase):

    def test_invalid_status_body(self):
        body = InvalidStatusException('CLEARED', 'BOUNCED').to_dict()
        self.assertEqual(body['code'], 'INVALID_STATUS')
        self.assertEqual(body['currentStatus'], 'CLEARED')
        self.assertEqual(body['requestedStatus'], 'BOUNCED')
        self.assertFalse(body['retryable'])

    def test_conflict_is_retryable(self):
        exc = ConcurrencyConflict(2, 3, 'DEPOSITED')
        self.assertEqual(exc.http_status, 409)
        self.assertTrue(exc.to_dict()['retryable'])

    def test_duplicate_lists_numbers(self):
        exc = DuplicateException('taken', cheque_numbers=['A-1', 'A-2'])
        self.assertEqual(exc.to_dict()['chequeNumbers'], ['A-1', 'A-2'])

    def test_validation_without_errors_omits_key(self):
        self.assertNotIn('errors', ValidationException('bad').to_dict())


class AuditTrailTest(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.user = User.objects.create_user(username='auditor', password='testpass123')

    def test_finance_audit_entry(self):
        log_finance_audit(
            user=self.user, action='transition', entity_type='PDC', entity_id=7,
            reference_number='PDC-2026-0007', reason='Insufficient funds',
            details={'from_status': 'DEPOSITED', 'to_status': 'BOUNCED'},
        )

        entry = AuditLog.objects.get(model='PDC.PDC', record_id='7')
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.model, 'PDC.PDC')
        self.assertEqual(entry.changes['reason'], 'Insufficient funds')
        self.assertEqual(entry.changes['to_status'], 'BOUNCED')
        self.assertEqual(AuditLog.objects.count(), 1)

    def test_acting_as_restores_previous_user(self):
        self.assertIsNone(get_current_user())
        with acting_as(self.user):
            self.assertEqual(get_current_user(), self.user)
        self.assertIsNone(get_current_user())
