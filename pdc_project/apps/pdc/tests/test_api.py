"""
JSON API tests: status codes, error bodies, roles and camelCase payloads.
"""
import json
from datetime import timedelta

from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from apps.pdc import services
from apps.pdc.models import PDCCheque
from apps.pdc.states import PDCStatus

from .base import PDCSetupMixin


class APITestCase(PDCSetupMixin, TestCase):

    def setUp(self):
        self.client.force_login(self.manager)

    def send(self, method, url, payload=None):
        return getattr(self.client, method)(
            url, data=json.dumps(payload or {}), content_type='application/json'
        )

    def create_payload(self, **overrides):
        payload = {
            'tenantId': self.tenant.pk,
            'chequeNumber': '100001',
            'bankName': 'Emirates NBD',
            'amount': '5000.00',
            'chequeDate': self.today.isoformat(),
        }
        payload.update(overrides)
        return payload


class AuthTest(APITestCase):

    def test_anonymous_gets_401(self):
        self.client.logout()
        response = self.client.get(reverse('pdc:pdc_collection'))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error']['code'], 'UNAUTHORIZED')

    def test_user_without_role_gets_403(self):
        self.client.force_login(self.outsider)
        response = self.client.get(reverse('pdc:pdc_dashboard'))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['error']['code'], 'FORBIDDEN')

    def test_superuser_passes_role_check(self):
        root = User.objects.create_superuser('root', 'root@test.com', 'testpass123')
        self.client.force_login(root)
        self.assertEqual(self.client.get(reverse('pdc:pdc_dashboard')).status_code, 200)

    def test_wrong_method_gets_405(self):
        response = self.client.delete(reverse('pdc:pdc_collection'))
        self.assertEqual(response.status_code, 405)
        self.assertIn('POST', response['Allow'])

    def test_promote_due_is_admin_only(self):
        url = reverse('pdc:pdc_promote_due')
        self.assertEqual(self.send('post', url).status_code, 403)

        self.client.force_login(self.admin)
        self.make_pdc('100001')
        response = self.send('post', url, {'date': self.today.isoformat()})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['promoted']), 1)

    def test_request_id_is_echoed(self):
        response = self.client.get(reverse('pdc:pdc_banks'), HTTP_X_REQUEST_ID='req-42')
        self.assertEqual(response['X-Request-ID'], 'req-42')


class CreateAPITest(APITestCase):

    def test_create_returns_201_with_camel_case(self):
        response = self.send('post', reverse('pdc:pdc_collection'), self.create_payload(invoiceId=self.invoice.pk))

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['status'], 'RECEIVED')
        self.assertEqual(body['chequeNumber'], '100001')
        self.assertEqual(body['amount'], '5000.00')
        self.assertEqual(body['invoiceId'], self.invoice.pk)
        self.assertEqual(body['version'], 1)
        self.assertEqual(PDCCheque.objects.get(pk=body['id']).created_by, self.manager)

    def test_duplicate_returns_409(self):
        self.send('post', reverse('pdc:pdc_collection'), self.create_payload())
        response = self.send('post', reverse('pdc:pdc_collection'), self.create_payload())

        self.assertEqual(response.status_code, 409)
        error = response.json()['error']
        self.assertEqual(error['code'], 'DUPLICATE')
        self.assertEqual(error['chequeNumbers'], ['100001'])

    def test_validation_error_returns_400(self):
        response = self.send('post', reverse('pdc:pdc_collection'), self.create_payload(amount='0'))

        self.assertEqual(response.status_code, 400)
        error = response.json()['error']
        self.assertEqual(error['code'], 'VALIDATION_ERROR')
        self.assertIn('amount', error['errors'])
        self.assertFalse(error['retryable'])

    def test_malformed_json_returns_400(self):
        response = self.client.post(
            reverse('pdc:pdc_collection'), data='{not json', content_type='application/json'
        )
        self.assertEqual(response.status_code, 400)

    def test_unknown_tenant_returns_404(self):
        response = self.send('post', reverse('pdc:pdc_collection'), self.create_payload(tenantId=999999))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error']['entity'], 'Tenant')

    def test_bulk_create(self):
        payload = {
            'tenantId': self.tenant.pk,
            'leaseId': self.lease.pk,
            'cheques': [
                {
                    'chequeNumber': f'20000{i}',
                    'bankName': 'ADCB',
                    'amount': '1000.00',
                    'chequeDate': (self.today + timedelta(days=30 * i)).isoformat(),
                }
                for i in range(3)
            ],
        }
        response = self.send('post', reverse('pdc:pdc_bulk_create'), payload)

        self.assertEqual(response.status_code, 201)
        self.assertEqual([row['chequeNumber'] for row in response.json()], ['200000', '200001', '200002'])

    def test_bulk_create_over_limit(self):
        payload = {
            'tenantId': self.tenant.pk,
            'cheques': [
                {'chequeNumber': f'3{i:05d}', 'bankName': 'ADCB', 'amount': '1.00',
                 'chequeDate': self.today.isoformat()}
                for i in range(25)
            ],
        }
        response = self.send('post', reverse('pdc:pdc_bulk_create'), payload)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(PDCCheque.objects.exists())


class TransitionAPITest(APITestCase):

    def test_full_lifecycle(self):
        pdc = self.make_due(invoice_id=self.invoice.pk)

        response = self.send('patch', reverse('pdc:pdc_deposit', args=[pdc.pk]), {
            'depositDate': self.today.isoformat(),
            'bankAccountId': self.bank_account.pk,
            'expectedVersion': pdc.version,
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'DEPOSITED')
        self.assertEqual(response.json()['depositBankAccountId'], self.bank_account.pk)

        response = self.send('patch', reverse('pdc:pdc_clear', args=[pdc.pk]), {
            'clearedDate': self.today.isoformat(),
            'expectedVersion': response.json()['version'],
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'CLEARED')

        detail = self.client.get(reverse('pdc:pdc_detail', args=[pdc.pk])).json()
        self.assertEqual(
            [entry['toStatus'] for entry in detail['statusHistory']],
            ['RECEIVED', 'DUE', 'DEPOSITED', 'CLEARED'],
        )
        self.assertEqual(detail['statusHistory'][-1]['actorName'], 'manager')

    def test_invalid_transition_returns_409_with_current_status(self):
        pdc = self.make_pdc()
        response = self.send('patch', reverse('pdc:pdc_deposit', args=[pdc.pk]), {
            'depositDate': self.today.isoformat(),
            'bankAccountId': self.bank_account.pk,
        })

        self.assertEqual(response.status_code, 409)
        error = response.json()['error']
        self.assertEqual(error['code'], 'INVALID_STATUS')
        self.assertEqual(error['currentStatus'], 'RECEIVED')
        self.assertEqual(error['requestedStatus'], 'DEPOSITED')

    def test_stale_version_returns_409_retryable(self):
        pdc = self.make_pdc()
        response = self.send('patch', reverse('pdc:pdc_cancel', args=[pdc.pk]), {'expectedVersion': 7})

        self.assertEqual(response.status_code, 409)
        error = response.json()['error']
        self.assertEqual(error['code'], 'CONCURRENCY_CONFLICT')
        self.assertTrue(error['retryable'])
        self.assertEqual(error['currentVersion'], 1)
        self.assertEqual(error['currentStatus'], 'RECEIVED')

    def test_unknown_pdc_returns_404(self):
        response = self.client.get(reverse('pdc:pdc_detail', args=[999999]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error']['code'], 'NOT_FOUND')

    def test_bounce_and_replace(self):
        pdc = self.make_deposited()

        response = self.send('patch', reverse('pdc:pdc_bounce', args=[pdc.pk]), {
            'bouncedDate': self.today.isoformat(),
            'bounceReason': 'Insufficient Funds',
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['bounceReason'], 'Insufficient Funds')

        response = self.send('post', reverse('pdc:pdc_replace', args=[pdc.pk]), {
            'newChequeNumber': '100002',
            'bankName': 'Mashreq',
            'amount': '5000.00',
            'chequeDate': (self.today + timedelta(days=10)).isoformat(),
        })
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['original']['status'], 'REPLACED')
        self.assertEqual(body['replacement']['status'], 'RECEIVED')
        self.assertEqual(body['replacement']['originalChequeId'], pdc.pk)

        chain = self.client.get(reverse('pdc:pdc_chain', args=[body['replacement']['id']])).json()['chain']
        self.assertEqual([node['chequeNumber'] for node in chain], ['100001', '100002'])

    def test_withdraw_with_nested_transaction_details(self):
        pdc = self.make_pdc(invoice_id=self.invoice.pk)
        response = self.send('patch', reverse('pdc:pdc_withdraw', args=[pdc.pk]), {
            'withdrawalDate': self.today.isoformat(),
            'reason': 'Payment Method Change',
            'newPaymentMethod': 'BANK_TRANSFER',
            'transactionDetails': {
                'amount': '5000.00',
                'transactionId': 'TRX-1',
                'bankAccountId': self.bank_account.pk,
            },
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'WITHDRAWN')
        self.assertEqual(response.json()['transactionId'], 'TRX-1')

        history = self.client.get(reverse('pdc:pdc_withdrawals'), {'reason': 'Payment Method Change'}).json()
        self.assertEqual(history['totalElements'], 1)
        self.assertIsNotNone(history['content'][0]['paymentNumber'])
        self.assertEqual(
            history['byReason'], [{'reason': 'Payment Method Change', 'count': 1, 'amount': '5000.00'}]
        )


class QueryAPITest(APITestCase):

    def test_list_filters_and_paginates(self):
        for i in range(3):
            self.make_pdc(f'40000{i}', days_ahead=i * 10)
        self.make_pdc('400009', tenant=self.other_tenant)
        services.promote_due_pdcs(self.today)

        url = reverse('pdc:pdc_collection')
        response = self.client.get(url, {'status': 'DUE', 'tenantId': self.tenant.pk})
        self.assertEqual(response.json()['totalElements'], 1)

        response = self.client.get(url, {'status': 'ALL', 'size': 2, 'page': 1, 'sort': 'chequeDate'})
        body = response.json()
        self.assertEqual(body['totalElements'], 4)
        self.assertEqual(body['totalPages'], 2)
        self.assertEqual(len(body['content']), 2)

        response = self.client.get(url, {'search': '400009'})
        self.assertEqual([row['chequeNumber'] for row in response.json()['content']], ['400009'])

    def test_invalid_status_filter(self):
        response = self.client.get(reverse('pdc:pdc_collection'), {'status': 'LOST'})
        self.assertEqual(response.status_code, 400)

    def test_bad_page_size(self):
        response = self.client.get(reverse('pdc:pdc_collection'), {'size': 500})
        self.assertEqual(response.status_code, 400)

    def test_dashboard_shape(self):
        self.make_pdc()
        body = self.client.get(reverse('pdc:pdc_dashboard')).json()
        self.assertEqual(body['totalOutstandingValue'], '5000.00')
        self.assertEqual(body['dueThisWeek'], {'count': 0, 'amount': '0.00'})
        self.assertEqual(body['bounceRate'], '0.00')
        self.assertEqual(body['pdcHolder'], 'Gulf Properties LLC')
        self.assertIn('dueThisWeek', body)
        self.assertIn('recentlyBouncedCount', body)

    def test_check_duplicate(self):
        self.make_pdc('100001')
        url = reverse('pdc:pdc_check_duplicate')

        response = self.client.get(url, {'tenantId': self.tenant.pk, 'chequeNumber': '100001'})
        self.assertTrue(response.json()['exists'])
        response = self.client.get(url, {'tenantId': self.other_tenant.pk, 'chequeNumber': '100001'})
        self.assertFalse(response.json()['exists'])
        self.assertEqual(self.client.get(url, {'tenantId': 'abc', 'chequeNumber': '1'}).status_code, 400)

    def test_reference_lists(self):
        self.make_pdc(bank_name='ADCB')
        self.assertEqual(self.client.get(reverse('pdc:pdc_banks')).json(), {'banks': ['ADCB']})
        reasons = self.client.get(reverse('pdc:pdc_withdrawal_reasons')).json()['reasons']
        self.assertIn('Tenant Request', reasons)
        self.assertEqual(
            self.client.get(reverse('pdc:pdc_holder')).json(), {'holderName': 'Gulf Properties LLC'}
        )

    def test_by_invoice(self):
        pdc = self.make_pdc(invoice_id=self.invoice.pk)
        response = self.client.get(reverse('pdc:pdc_by_invoice', args=[self.invoice.pk]))
        self.assertEqual([row['id'] for row in response.json()['content']], [pdc.pk])
        self.assertEqual(self.client.get(reverse('pdc:pdc_by_invoice', args=[999999])).status_code, 404)

    def test_tenant_history(self):
        pdc = self.make_deposited()
        services.bounce_pdc(pdc.pk, self.today.isoformat(), 'Insufficient funds')
        self.make_pdc('100002')

        body = self.client.get(reverse('pdc:tenant_pdcs', args=[self.tenant.pk])).json()
        self.assertEqual(body['totalElements'], 2)
        self.assertEqual(body['bouncedPdcs'], 1)
        self.assertEqual(body['pendingPdcs'], 1)
        self.assertEqual(body['bounceRate'], '50.00')

    def test_terminal_status_reported_in_list(self):
        pdc = services.cancel_pdc(self.make_pdc().pk)
        body = self.client.get(reverse('pdc:pdc_collection'), {'status': PDCStatus.CANCELLED}).json()
        self.assertEqual([row['id'] for row in body['content']], [pdc.pk])
