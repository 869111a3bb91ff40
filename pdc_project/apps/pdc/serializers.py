"""
JSON representations of PDC records (camelCase on the wire).
"""
from decimal import Decimal

CENTS = Decimal('0.01')


def _date(value):
    return value.isoformat() if value else None


def _money(value):
    # Aggregates drop the column scale; amounts always go out with two places
    return str(Decimal(value).quantize(CENTS)) if value is not None else None


def serialize_pdc(pdc):
    return {
        'id': pdc.pk,
        'pdcNumber': pdc.pdc_number,
        'tenantId': pdc.tenant_id,
        'tenantName': pdc.tenant.name,
        'leaseId': pdc.lease_id,
        'invoiceId': pdc.invoice_id,
        'chequeNumber': pdc.cheque_number,
        'bankName': pdc.bank_name,
        'amount': _money(pdc.amount),
        'chequeDate': _date(pdc.cheque_date),
        'status': pdc.status,
        'depositDate': _date(pdc.deposit_date),
        'depositBankAccountId': pdc.deposit_bank_account_id,
        'clearedDate': _date(pdc.cleared_date),
        'bouncedDate': _date(pdc.bounced_date),
        'bounceReason': pdc.bounce_reason or None,
        'withdrawalDate': _date(pdc.withdrawal_date),
        'withdrawalReason': pdc.withdrawal_reason or None,
        'replacementPaymentMethod': pdc.replacement_payment_method or None,
        'transactionId': pdc.transaction_id or None,
        'originalChequeId': pdc.original_cheque_id,
        'replacementChequeId': pdc.replacement_cheque_id,
        'notes': pdc.notes,
        'createdAt': pdc.created_at.isoformat(),
        'updatedAt': pdc.updated_at.isoformat(),
        'version': pdc.version,
    }


def serialize_history_entry(entry):
    return {
        'id': entry.pk,
        'fromStatus': entry.from_status,
        'toStatus': entry.to_status,
        'timestamp': entry.timestamp.isoformat(),
        'actorId': entry.actor_id,
        'actorName': entry.actor.get_username() if entry.actor_id else None,
        'notes': entry.notes,
    }


def serialize_pdc_detail(pdc, history):
    data = serialize_pdc(pdc)
    data['statusHistory'] = [serialize_history_entry(entry) for entry in history]
    return data


def serialize_withdrawal(withdrawal):
    return {
        'id': withdrawal.pk,
        'pdcId': withdrawal.pdc_id,
        'pdcNumber': withdrawal.pdc.pdc_number,
        'chequeNumber': withdrawal.pdc.cheque_number,
        'tenantId': withdrawal.tenant_id,
        'tenantName': withdrawal.tenant.name,
        'withdrawalDate': _date(withdrawal.withdrawal_date),
        'reason': withdrawal.reason,
        'amount': _money(withdrawal.amount),
        'replacementPaymentMethod': withdrawal.replacement_payment_method or None,
        'transactionId': withdrawal.transaction_id or None,
        'bankAccountId': withdrawal.bank_account_id,
        'paymentId': withdrawal.payment_id,
        'paymentNumber': withdrawal.payment.payment_number if withdrawal.payment_id else None,
    }


def serialize_reason_group(row):
    return {'reason': row['reason'], 'count': row['count'], 'amount': _money(row['amount'])}


def _count_amount(pair):
    return {'count': pair['count'], 'amount': _money(pair['amount'])}


def serialize_dashboard(data):
    return {
        'asOf': data['as_of'].isoformat(),
        'dueThisWeek': _count_amount(data['due_this_week']),
        'deposited': _count_amount(data['deposited']),
        'depositedThisMonth': _count_amount(data['deposited_this_month']),
        'totalOutstandingValue': _money(data['total_outstanding_value']),
        'recentlyBouncedCount': data['recently_bounced_count'],
        'bounceRate': _money(data['bounce_rate']),
        'upcoming': [serialize_pdc(pdc) for pdc in data['upcoming']],
        'recentlyDeposited': [serialize_pdc(pdc) for pdc in data['recently_deposited']],
        'pdcHolder': data['holder_name'],
    }
