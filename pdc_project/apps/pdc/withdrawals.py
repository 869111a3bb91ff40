"""
Withdrawal of undeposited cheques and the withdrawal history view.
"""
import logging

from django.db.models import Count, Sum

from apps.core.db import pdc_transaction
from apps.core.exceptions import ValidationException
from apps.core.middleware import acting_as
from apps.finance.models import BankAccount, Payment

from .forms import TransactionDetailsForm, WithdrawForm, WithdrawalFilterForm
from .models import PDCWithdrawal
from .services import get_or_404, apply_transition, check_transition, clean_form, lock_pdc, post_payment, resolve_actor
from .states import PDCStatus

logger = logging.getLogger(__name__)

# Finance payment method recorded for each substitute instrument
PAYMENT_METHODS = {
    'BANK_TRANSFER': 'bank',
    'CASH': 'cash',
    'NEW_CHEQUE': 'cheque',
}


def withdraw_pdc(pdc_id, withdrawal_date, reason, new_payment_method=None,
                 transaction_details=None, expected_version=None, actor=None):
    """
    Return a RECEIVED or DUE cheque to the tenant.

    Args:
        new_payment_method: BANK_TRANSFER, CASH or NEW_CHEQUE
        transaction_details: dict with amount, transaction_id and
            bank_account_id; required for BANK_TRANSFER

    When transaction details are given a payment is recorded against the
    cheque's invoice in the same transaction.
    """
    data = clean_form(WithdrawForm, {
        'withdrawal_date': withdrawal_date,
        'reason': reason,
        'new_payment_method': new_payment_method or '',
    }, 'Invalid withdrawal')
    method = data.get('new_payment_method') or ''

    details = None
    if transaction_details is not None and not isinstance(transaction_details, dict):
        raise ValidationException('transactionDetails must be an object.')
    if transaction_details:
        if not method:
            raise ValidationException(
                'Transaction details require a new payment method.',
                errors={'new_payment_method': ['Required with transaction details.']}
            )
        details = clean_form(TransactionDetailsForm, transaction_details, 'Invalid transaction details')
    elif method == 'BANK_TRANSFER':
        raise ValidationException(
            'Bank transfer requires transaction details (amount, transaction id, bank account).',
            errors={'transaction_details': ['Required for bank transfer.']}
        )

    user = resolve_actor(actor)

    with acting_as(user), pdc_transaction():
        pdc = lock_pdc(pdc_id, expected_version)
        check_transition(pdc, PDCStatus.WITHDRAWN)

        bank_account = None
        if details:
            bank_account = get_or_404(BankAccount, details['bank_account_id'], 'BankAccount', is_active=True)

        pdc.withdrawal_date = data['withdrawal_date']
        pdc.withdrawal_reason = data['reason']
        pdc.replacement_payment_method = method
        pdc.transaction_id = details['transaction_id'] if details else ''
        apply_transition(
            pdc, PDCStatus.WITHDRAWN, user,
            changed_fields=['withdrawal_date', 'withdrawal_reason', 'replacement_payment_method', 'transaction_id'],
            notes=data['reason'],
        )

        payment = None
        if details:
            payment = post_payment(
                pdc, Payment.SOURCE_PDC_WITHDRAWAL, details['amount'], data['withdrawal_date'], user,
                payment_method=PAYMENT_METHODS[method],
                transaction_id=details['transaction_id'],
                bank_account=bank_account,
                notes=f'Substitute for withdrawn cheque {pdc.cheque_number}',
            )

        PDCWithdrawal.objects.create(
            pdc=pdc,
            tenant_id=pdc.tenant_id,
            withdrawal_date=data['withdrawal_date'],
            reason=data['reason'],
            amount=pdc.amount,
            replacement_payment_method=method,
            transaction_id=pdc.transaction_id,
            bank_account=bank_account,
            payment=payment,
            recorded_by=user,
        )

    logger.info("PDC %s withdrawn (%s)", pdc.pdc_number, data['reason'])
    return pdc


def withdrawal_history(reason=None, date_from=None, date_to=None, tenant_id=None):
    """Withdrawals filtered by exact reason and inclusive date range, newest first."""
    filters = clean_form(WithdrawalFilterForm, {
        'reason': reason or '',
        'date_from': date_from,
        'date_to': date_to,
    }, 'Invalid filter')

    queryset = PDCWithdrawal.objects.select_related('pdc', 'tenant', 'bank_account', 'payment')
    if filters.get('reason'):
        queryset = queryset.filter(reason=filters['reason'])
    if filters.get('date_from'):
        queryset = queryset.filter(withdrawal_date__gte=filters['date_from'])
    if filters.get('date_to'):
        queryset = queryset.filter(withdrawal_date__lte=filters['date_to'])
    if tenant_id:
        queryset = queryset.filter(tenant_id=tenant_id)
    return queryset.order_by('-withdrawal_date', '-id')


def withdrawals_by_reason(queryset):
    """Count and face value per reason over a filtered history, largest group first."""
    return list(
        queryset.order_by()
        .values('reason')
        .annotate(count=Count('id'), amount=Sum('amount'))
        .order_by('-count', 'reason')
    )
