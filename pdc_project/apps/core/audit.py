"""
Audit logging for the PDC engine.

The PDC status history is the domain audit trail; these AuditLog rows are
the cross-cutting, who-did-what-from-where record kept for every financial
action (creation, transitions, payments).
"""
import json
from decimal import Decimal

from .middleware import get_current_request
from .utils import get_client_ip


def serialize_value(value):
    """Convert value to JSON-serializable format."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return str(value)
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    if hasattr(value, 'pk'):
        return str(value)
    return value


def _request_ip(request=None):
    return get_client_ip(request or get_current_request())


def log_audit(user, action, model_name, record_id=None, changes=None, request=None):
    """
    Create an audit log entry.

    Args:
        user: The user performing the action
        action: One of AuditLog.ACTION_CHOICES
        model_name: Name of the model being modified
        record_id: Primary key of the record
        changes: Dictionary of changes
        request: HTTP request object (optional)
    """
    from apps.settings_app.models import AuditLog

    # Ensure changes is JSON serializable
    if changes:
        try:
            json.dumps(changes)
        except (TypeError, ValueError):
            changes = {'message': str(changes)}

    return AuditLog.objects.create(
        user=user if user is not None and user.is_authenticated else None,
        action=action,
        model=model_name,
        record_id=str(record_id) if record_id else '',
        changes=changes or {},
        ip_address=_request_ip(request)
    )


def log_finance_audit(user, action, entity_type, entity_id, reference_number=None,
                      amount_before=None, amount_after=None, reason=None,
                      details=None, request=None):
    """
    Log a finance-relevant action with full audit metadata.

    Args:
        user: User performing the action
        action: Action type (create, deposit, clear, bounce, ...)
        entity_type: Type of entity (PDC, Payment)
        entity_id: Primary key of the entity
        reference_number: Document reference (pdc_number, payment_number)
        amount_before: Amount before the action
        amount_after: Amount after the action
        reason: Bounce/withdrawal reason where applicable
        details: Additional details dictionary
        request: HTTP request object
    """
    changes = {
        'module': 'PDC',
        'entity_type': entity_type,
        'entity_id': str(entity_id),
        'reference_number': reference_number,
        'action_type': action,
    }
    if amount_before is not None:
        changes['amount_before'] = serialize_value(amount_before)
    if amount_after is not None:
        changes['amount_after'] = serialize_value(amount_after)
    if reason:
        changes['reason'] = reason
    if details:
        changes.update({k: serialize_value(v) for k, v in details.items()})

    return log_audit(
        user=user,
        action=action,
        model_name=f"PDC.{entity_type}",
        record_id=entity_id,
        changes=changes,
        request=request,
    )


def audit_pdc_create(pdc, user):
    log_finance_audit(
        user=user,
        action='create',
        entity_type='PDC',
        entity_id=pdc.pk,
        reference_number=pdc.pdc_number,
        amount_after=pdc.amount,
        details={
            'tenant': pdc.tenant_id,
            'cheque_number': pdc.cheque_number,
            'bank_name': pdc.bank_name,
            'cheque_date': pdc.cheque_date,
            'original_cheque': pdc.original_cheque_id,
        },
    )


def audit_pdc_transition(pdc, from_status, to_status, user, reason=None):
    log_finance_audit(
        user=user,
        action='transition',
        entity_type='PDC',
        entity_id=pdc.pk,
        reference_number=pdc.pdc_number,
        amount_after=pdc.amount,
        reason=reason,
        details={
            'from_status': from_status,
            'to_status': to_status,
            'version': pdc.version,
        },
    )


def audit_payment_create(payment, user):
    log_finance_audit(
        user=user,
        action='create',
        entity_type='Payment',
        entity_id=payment.pk,
        reference_number=payment.payment_number,
        amount_after=payment.amount,
        details={
            'payment_method': payment.payment_method,
            'source': payment.source,
            'invoice': payment.invoice_id,
            'source_pdc': payment.source_pdc_id,
            'date': payment.payment_date,
        },
    )
