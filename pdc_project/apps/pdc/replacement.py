"""
Replacement of bounced cheques and traversal of replacement chains.

A chain is a doubly linked list stored as two one-to-one columns:
`original_cheque` points back to the bounced cheque a record replaces and
`replacement_cheque` points forward to its substitute. Both pointers of a
pair are written in the same transaction.
"""
import logging

from django.db import IntegrityError

from apps.core.db import pdc_transaction
from apps.core.exceptions import ChainIntegrityError
from apps.core.middleware import acting_as

from .forms import ReplaceForm
from .models import PDCCheque
from .services import (
    resolve_actor, apply_transition, check_transition, clean_form, creation_clash, ensure_unique_numbers, lock_pdc,
    new_cheque,
)
from .states import PDCStatus

logger = logging.getLogger(__name__)


def replace_pdc(pdc_id, new_cheque_number, bank_name, amount, cheque_date,
                notes='', expected_version=None, actor=None):
    """
    Replace a BOUNCED cheque with a new RECEIVED one.

    Returns:
        tuple: (original, replacement)
    """
    data = clean_form(ReplaceForm, {
        'new_cheque_number': new_cheque_number,
        'bank_name': bank_name,
        'amount': amount,
        'cheque_date': cheque_date,
        'notes': notes,
    }, 'Invalid replacement')
    user = resolve_actor(actor)

    try:
        with acting_as(user), pdc_transaction():
            original = lock_pdc(pdc_id, expected_version)
            # Status first so a REPLACED cheque reports INVALID_STATUS, not a duplicate
            check_transition(original, PDCStatus.REPLACED)
            ensure_unique_numbers(original.tenant, [data['new_cheque_number']])

            replacement = new_cheque(
                original.tenant,
                {
                    'cheque_number': data['new_cheque_number'],
                    'bank_name': data['bank_name'],
                    'amount': data['amount'],
                    'cheque_date': data['cheque_date'],
                    'notes': data.get('notes') or f'Replacement for {original.cheque_number}',
                },
                user,
                lease=original.lease,
                invoice=original.invoice,
                original_cheque=original,
            )
            original.replacement_cheque = replacement
            apply_transition(
                original, PDCStatus.REPLACED, user,
                changed_fields=['replacement_cheque'],
                notes=f'Replaced by cheque {replacement.cheque_number}',
            )
    except IntegrityError as exc:
        raise creation_clash(original.tenant_id, [data['new_cheque_number']]) from exc

    logger.info("PDC %s replaced by %s", original.pdc_number, replacement.pdc_number)
    return original, replacement


def replacement_chain(pdc):
    """
    Every cheque in the chain containing `pdc`, oldest first.

    The walk visits each node once and is bounded by the tenant's cheque
    count; a revisit or a one-sided pointer raises ChainIntegrityError.
    """
    links = {
        pk: (original_id, replacement_id)
        for pk, original_id, replacement_id in PDCCheque.objects.filter(
            tenant_id=pdc.tenant_id
        ).values_list('id', 'original_cheque_id', 'replacement_cheque_id')
    }
    limit = len(links)

    # Back to the head
    visited = {pdc.pk}
    head = pdc.pk
    while links[head][0] is not None:
        previous = links[head][0]
        if previous in visited or len(visited) > limit or previous not in links:
            raise ChainIntegrityError(f"Replacement chain of PDC {pdc.pk} loops at {previous}.")
        if links[previous][1] != head:
            raise ChainIntegrityError(f"PDC {previous} does not point forward to {head}.")
        visited.add(previous)
        head = previous

    # Forward to the tail
    order = [head]
    seen = {head}
    current = head
    while links[current][1] is not None:
        following = links[current][1]
        if following in seen or len(seen) > limit or following not in links:
            raise ChainIntegrityError(f"Replacement chain of PDC {pdc.pk} loops at {following}.")
        if links[following][0] != current:
            raise ChainIntegrityError(f"PDC {following} does not point back to {current}.")
        seen.add(following)
        order.append(following)
        current = following

    records = PDCCheque.objects.select_related('tenant').in_bulk(order)
    return [records[pk] for pk in order]
