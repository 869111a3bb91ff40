"""
PDC creation and status transition services.

Every mutating function here is one unit of work: it locks the rows it
touches, validates the move against the transition table, writes the new
state, appends exactly one status history entry per status change and
commits everything (including any payment it posts) together.

Callers pass `expected_version` to reject stale writes; when it is omitted
the row lock alone serializes concurrent callers.
"""
import logging
from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.utils import timezone

from apps.core.audit import audit_payment_create, audit_pdc_create, audit_pdc_transition
from apps.core.db import pdc_transaction
from apps.core.exceptions import (
    ConcurrencyConflict,
    DuplicateException,
    EntityNotFoundException,
    InvalidStatusException,
    TransientError,
    ValidationException,
)
from apps.core.middleware import acting_as, get_current_user
from apps.finance.models import BankAccount, Payment
from apps.property.models import Lease, RentInvoice, Tenant

from .conf import pdc_setting
from .forms import BounceForm, ClearForm, DepositForm, PDCChequeForm, repeated_values
from .models import PDCCheque, PDCStatusHistory
from .notifications import queue_bounce_notification
from .states import PDCStatus

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def resolve_actor(actor):
    """The explicit actor, else whoever the request or task published."""
    user = actor if actor is not None else get_current_user()
    if user is not None and getattr(user, 'is_authenticated', False):
        return user
    return None


def form_errors(form):
    return {field: [str(message) for message in messages] for field, messages in form.errors.items()}


def clean_form(form_class, data, prefix_message='Invalid input'):
    """Bind `data` to `form_class` and return cleaned data or raise ValidationException."""
    form = form_class(data=data)
    if not form.is_valid():
        errors = form_errors(form)
        first = next(iter(errors.values()))[0]
        raise ValidationException(f"{prefix_message}: {first}", errors=errors)
    return form.cleaned_data


def get_or_404(model, pk, entity, **filters):
    try:
        return model.objects.get(pk=pk, **filters)
    except (model.DoesNotExist, ValueError, TypeError):
        raise EntityNotFoundException(entity, pk)


def _lock_tenant(tenant_id):
    """Lock the tenant row so concurrent creates for one tenant serialize."""
    try:
        return Tenant.objects.select_for_update().get(pk=tenant_id)
    except (Tenant.DoesNotExist, ValueError, TypeError):
        raise EntityNotFoundException('Tenant', tenant_id)


def _resolve_lease(lease_id, tenant):
    if not lease_id:
        return None
    lease = get_or_404(Lease, lease_id, 'Lease')
    if lease.tenant_id != tenant.pk:
        raise ValidationException(
            f"Lease {lease.lease_number} does not belong to tenant {tenant.tenant_number}.",
            errors={'lease_id': ['Lease belongs to another tenant.']}
        )
    return lease


def _resolve_invoice(invoice_id, tenant):
    if not invoice_id:
        return None
    invoice = get_or_404(RentInvoice, invoice_id, 'Invoice')
    if invoice.tenant_id != tenant.pk:
        raise ValidationException(
            f"Invoice {invoice.invoice_number} does not belong to tenant {tenant.tenant_number}.",
            errors={'invoice_id': ['Invoice belongs to another tenant.']}
        )
    return invoice


def _existing_numbers(tenant, cheque_numbers):
    return set(
        PDCCheque.objects.filter(tenant=tenant, cheque_number__in=list(cheque_numbers))
        .exclude(status=PDCStatus.CANCELLED)
        .values_list('cheque_number', flat=True)
    )


def ensure_unique_numbers(tenant, cheque_numbers):
    """
    Raise DuplicateException listing every number repeated in
    `cheque_numbers` or already used by the tenant.
    """
    offending = repeated_values(cheque_numbers)
    existing = _existing_numbers(tenant, cheque_numbers)
    offending += [number for number in cheque_numbers if number in existing and number not in offending]
    if offending:
        raise DuplicateException(
            f"Cheque number(s) already used for this tenant: {', '.join(offending)}",
            cheque_numbers=offending,
        )


def creation_clash(tenant, cheque_numbers):
    """
    Error for a constraint failure raised while inserting cheques.

    Only a live cheque number held by the tenant is a duplicate. Any other
    clash (document numbering, a replacement pointer) is a race the caller
    may retry.
    """
    clashing = [number for number in cheque_numbers if number in _existing_numbers(tenant, cheque_numbers)]
    if clashing:
        return DuplicateException(
            f"Cheque number(s) already used for this tenant: {', '.join(clashing)}",
            cheque_numbers=clashing,
        )
    logger.warning("Constraint clash creating cheque(s) %s for tenant %s", ', '.join(cheque_numbers), tenant)
    return TransientError('Document numbering clashed with a concurrent write. Please retry.')


def lock_pdc(pdc_id, expected_version=None):
    """
    Lock a cheque for update and check the caller's version.

    Raises:
        EntityNotFoundException: unknown id
        ConcurrencyConflict: `expected_version` is stale
    """
    try:
        pdc = PDCCheque.objects.select_for_update().get(pk=pdc_id)
    except (PDCCheque.DoesNotExist, ValueError, TypeError):
        raise EntityNotFoundException('PDC', pdc_id)

    if expected_version is not None:
        try:
            expected = int(expected_version)
        except (TypeError, ValueError):
            raise ValidationException('expectedVersion must be an integer.')
        if expected != pdc.version:
            raise ConcurrencyConflict(expected, pdc.version, pdc.status)
    return pdc


def check_transition(pdc, target):
    if not pdc.status_enum.can_transition_to(target):
        raise InvalidStatusException(pdc.status, target)


def record_history(pdc, from_status, to_status, actor, notes=''):
    return PDCStatusHistory.objects.create(
        pdc=pdc,
        from_status=from_status,
        to_status=to_status,
        actor=actor,
        notes=notes or '',
    )


def apply_transition(pdc, target, actor, changed_fields=(), notes=''):
    """
    Move a locked cheque to `target`: save the given fields, bump the
    version, append history and audit the change.
    """
    check_transition(pdc, target)
    from_status = pdc.status
    pdc.status = target
    pdc.version += 1
    pdc.save(update_fields=['status', 'version', 'updated_at', *changed_fields])
    record_history(pdc, from_status, target, actor, notes)
    audit_pdc_transition(pdc, from_status, target, actor, reason=notes or None)
    logger.info("PDC %s moved %s -> %s (version %s)", pdc.pdc_number, from_status, target, pdc.version)
    return pdc


def new_cheque(tenant, data, actor, lease=None, invoice=None, original_cheque=None):
    """Insert one RECEIVED cheque with its creation history entry."""
    pdc = PDCCheque(
        tenant=tenant,
        lease=lease,
        invoice=invoice,
        cheque_number=data['cheque_number'],
        bank_name=data['bank_name'],
        amount=data['amount'],
        cheque_date=data['cheque_date'],
        notes=data.get('notes') or '',
        original_cheque=original_cheque,
        status=PDCStatus.RECEIVED,
    )
    pdc.save()
    record_history(pdc, None, PDCStatus.RECEIVED, actor, 'Cheque received')
    audit_pdc_create(pdc, actor)
    return pdc


def post_payment(pdc, source, amount, payment_date, actor, **kwargs):
    try:
        payment = Payment.record_for_pdc(pdc, source, amount, payment_date, **kwargs)
    except DjangoValidationError as exc:
        raise ValidationException(' '.join(exc.messages))
    except IntegrityError as exc:
        logger.warning("Payment for PDC %s (%s) clashed: %s", pdc.pdc_number, source, exc)
        raise TransientError('Payment numbering clashed with a concurrent write. Please retry.') from exc
    audit_payment_create(payment, actor)
    logger.info("Payment %s posted for PDC %s (%s)", payment.payment_number, pdc.pdc_number, source)
    return payment


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

def create_pdc(tenant_id, cheque_number, bank_name, amount, cheque_date,
               lease_id=None, invoice_id=None, notes='', actor=None):
    """
    Record one cheque in RECEIVED.

    Raises:
        ValidationException, DuplicateException, EntityNotFoundException
    """
    data = clean_form(PDCChequeForm, {
        'cheque_number': cheque_number,
        'bank_name': bank_name,
        'amount': amount,
        'cheque_date': cheque_date,
        'invoice_id': invoice_id,
        'notes': notes,
    }, 'Invalid cheque')
    user = resolve_actor(actor)

    try:
        with acting_as(user), pdc_transaction():
            tenant = _lock_tenant(tenant_id)
            lease = _resolve_lease(lease_id, tenant)
            invoice = _resolve_invoice(data.get('invoice_id'), tenant)
            ensure_unique_numbers(tenant, [data['cheque_number']])
            pdc = new_cheque(tenant, data, user, lease=lease, invoice=invoice)
    except IntegrityError as exc:
        raise creation_clash(tenant_id, [data['cheque_number']]) from exc

    logger.info("PDC %s created for tenant %s", pdc.pdc_number, tenant.tenant_number)
    return pdc


def bulk_create_pdcs(tenant_id, cheques, lease_id=None, actor=None):
    """
    Create 1..MAX_BULK cheques for one tenant, all or nothing.

    Args:
        tenant_id: Tenant the cheques belong to
        cheques: List of dicts with cheque_number, bank_name, amount,
            cheque_date and optionally invoice_id and notes
        lease_id: Optional lease for every cheque in the batch

    Returns:
        list: Created cheques in input order
    """
    max_bulk = pdc_setting('MAX_BULK')
    if not isinstance(cheques, (list, tuple)):
        raise ValidationException('cheques must be a list.')
    if not 1 <= len(cheques) <= max_bulk:
        raise ValidationException(
            f"A batch must contain between 1 and {max_bulk} cheques; got {len(cheques)}.",
            errors={'cheques': [f'Expected 1-{max_bulk} cheques.']}
        )

    cleaned = []
    errors = {}
    for index, row in enumerate(cheques):
        form = PDCChequeForm(data=row if isinstance(row, dict) else {})
        if form.is_valid():
            cleaned.append(form.cleaned_data)
        else:
            for field, messages in form_errors(form).items():
                errors[f'cheques[{index}].{field}'] = messages
    if errors:
        first_key = next(iter(errors))
        raise ValidationException(f"Invalid cheque at {first_key}: {errors[first_key][0]}", errors=errors)

    numbers = [row['cheque_number'] for row in cleaned]
    user = resolve_actor(actor)

    try:
        with acting_as(user), pdc_transaction():
            tenant = _lock_tenant(tenant_id)
            lease = _resolve_lease(lease_id, tenant)
            invoices = [_resolve_invoice(row.get('invoice_id'), tenant) for row in cleaned]
            ensure_unique_numbers(tenant, numbers)
            created = [
                new_cheque(tenant, row, user, lease=lease, invoice=invoice)
                for row, invoice in zip(cleaned, invoices)
            ]
    except IntegrityError as exc:
        raise creation_clash(tenant_id, numbers) from exc

    logger.info("Bulk created %d PDC(s) for tenant %s", len(created), tenant.tenant_number)
    return created


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def deposit_pdc(pdc_id, deposit_date, bank_account_id, expected_version=None, actor=None):
    """DUE -> DEPOSITED into an active company bank account."""
    data = clean_form(DepositForm, {
        'deposit_date': deposit_date,
        'bank_account_id': bank_account_id,
    }, 'Invalid deposit')
    user = resolve_actor(actor)

    with acting_as(user), pdc_transaction():
        pdc = lock_pdc(pdc_id, expected_version)
        check_transition(pdc, PDCStatus.DEPOSITED)
        bank_account = get_or_404(BankAccount, data['bank_account_id'], 'BankAccount', is_active=True)

        pdc.deposit_date = data['deposit_date']
        pdc.deposit_bank_account = bank_account
        apply_transition(
            pdc, PDCStatus.DEPOSITED, user,
            changed_fields=['deposit_date', 'deposit_bank_account'],
            notes=f'Deposited to {bank_account.name}',
        )
    return pdc


def clear_pdc(pdc_id, cleared_date, expected_version=None, actor=None):
    """
    DEPOSITED -> CLEARED. When the cheque settles an invoice, exactly one
    clearance payment is posted in the same transaction.
    """
    data = clean_form(ClearForm, {'cleared_date': cleared_date}, 'Invalid clearance')
    user = resolve_actor(actor)

    with acting_as(user), pdc_transaction():
        pdc = lock_pdc(pdc_id, expected_version)
        check_transition(pdc, PDCStatus.CLEARED)
        if pdc.deposit_date and data['cleared_date'] < pdc.deposit_date:
            raise ValidationException(
                'Cleared date cannot be before the deposit date.',
                errors={'cleared_date': ['Before deposit date.']}
            )

        pdc.cleared_date = data['cleared_date']
        apply_transition(pdc, PDCStatus.CLEARED, user, changed_fields=['cleared_date'])

        if pdc.invoice_id:
            post_payment(
                pdc, Payment.SOURCE_PDC_CLEARANCE, pdc.amount, pdc.cleared_date, user,
                payment_method='pdc',
                bank_account=pdc.deposit_bank_account,
            )
    return pdc


def bounce_pdc(pdc_id, bounced_date, bounce_reason, expected_version=None, actor=None):
    """DEPOSITED -> BOUNCED; queues the bounce notification on commit."""
    data = clean_form(BounceForm, {
        'bounced_date': bounced_date,
        'bounce_reason': bounce_reason,
    }, 'Invalid bounce')
    user = resolve_actor(actor)

    with acting_as(user), pdc_transaction():
        pdc = lock_pdc(pdc_id, expected_version)
        check_transition(pdc, PDCStatus.BOUNCED)
        if pdc.deposit_date and data['bounced_date'] < pdc.deposit_date:
            raise ValidationException(
                'Bounced date cannot be before the deposit date.',
                errors={'bounced_date': ['Before deposit date.']}
            )

        pdc.bounced_date = data['bounced_date']
        pdc.bounce_reason = data['bounce_reason']
        apply_transition(
            pdc, PDCStatus.BOUNCED, user,
            changed_fields=['bounced_date', 'bounce_reason'],
            notes=data['bounce_reason'],
        )
        queue_bounce_notification(pdc)
    return pdc


def cancel_pdc(pdc_id, expected_version=None, notes='', actor=None):
    """RECEIVED -> CANCELLED; frees the cheque number for reuse."""
    user = resolve_actor(actor)
    with acting_as(user), pdc_transaction():
        pdc = lock_pdc(pdc_id, expected_version)
        apply_transition(pdc, PDCStatus.CANCELLED, user, notes=notes or 'Cancelled')
    return pdc


def due_sweep_candidates(today):
    """RECEIVED cheques dated on or before the end of the due window."""
    horizon = today + timedelta(days=pdc_setting('DUE_WINDOW_DAYS'))
    return PDCCheque.objects.filter(
        status=PDCStatus.RECEIVED, cheque_date__lte=horizon
    ).order_by('cheque_date', 'id')


def promote_due_pdcs(today=None):
    """
    Move every RECEIVED cheque dated within the due window to DUE.

    Idempotent: a second run on the same day finds nothing to promote.
    Rows locked by a concurrent request are skipped and picked up by the
    next run.

    Returns:
        list: Promoted cheques
    """
    today = today or timezone.localdate()
    promoted = []

    with pdc_transaction():
        for pdc in due_sweep_candidates(today).select_for_update(skip_locked=True):
            apply_transition(pdc, PDCStatus.DUE, None, notes=f'Due sweep {today.isoformat()}')
            promoted.append(pdc)

    logger.info("Due sweep for %s promoted %d PDC(s)", today, len(promoted))
    return promoted


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def get_tenant(tenant_id):
    return get_or_404(Tenant, tenant_id, 'Tenant')


def get_pdc(pdc_id):
    try:
        return PDCCheque.objects.select_related(
            'tenant', 'lease', 'invoice', 'deposit_bank_account'
        ).get(pk=pdc_id)
    except (PDCCheque.DoesNotExist, ValueError, TypeError):
        raise EntityNotFoundException('PDC', pdc_id)


def status_history(pdc):
    return pdc.status_history.select_related('actor').order_by('timestamp', 'id')


def cheque_number_exists(tenant_id, cheque_number, exclude_id=None):
    """True when the tenant already has a non-cancelled cheque with this number."""
    queryset = PDCCheque.objects.filter(
        tenant_id=tenant_id, cheque_number=cheque_number
    ).exclude(status=PDCStatus.CANCELLED)
    if exclude_id:
        queryset = queryset.exclude(pk=exclude_id)
    return queryset.exists()


def distinct_bank_names():
    return list(
        PDCCheque.objects.order_by('bank_name').values_list('bank_name', flat=True).distinct()
    )


def pdcs_for_invoice(invoice_id):
    get_or_404(RentInvoice, invoice_id, 'Invoice')
    return PDCCheque.objects.filter(invoice_id=invoice_id).select_related('tenant').order_by('cheque_date', 'id')


def pdcs_due_for_reminder(reminder_date):
    return PDCCheque.objects.filter(
        status=PDCStatus.DUE, cheque_date=reminder_date
    ).select_related('tenant').order_by('cheque_date', 'id')
