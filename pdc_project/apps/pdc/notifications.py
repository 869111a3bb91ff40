"""
Notification side effects of PDC transitions.

Bounce notifications are queued after the transition commits and are
delivered by a Celery task. A failure to queue is logged and never undoes
the bounce.
"""
import logging

from django.db import transaction

from apps.core.utils import RoleChecker
from apps.settings_app.models import Role

logger = logging.getLogger(__name__)


def bounce_recipients(pdc):
    """Tenant plus every active property manager, de-duplicated."""
    recipients = []
    if pdc.tenant.email:
        recipients.append(pdc.tenant.email)
    for user in RoleChecker.users_with_role(Role.PROPERTY_MANAGER):
        if user.email and user.email not in recipients:
            recipients.append(user.email)
    return recipients


def reminder_recipients():
    recipients = []
    for code in (Role.SUPER_ADMIN, Role.ADMIN):
        for user in RoleChecker.users_with_role(code):
            if user.email and user.email not in recipients:
                recipients.append(user.email)
    return recipients


def bounce_message(pdc):
    subject = f"PDC Bounced Alert - {pdc.cheque_number}"
    body = (
        f"Cheque {pdc.cheque_number} ({pdc.bank_name}) for AED {pdc.amount:,.2f} "
        f"from {pdc.tenant.name} bounced on {pdc.bounced_date:%b %d, %Y}.\n"
        f"Reason: {pdc.bounce_reason}\n"
        f"Reference: {pdc.pdc_number}"
    )
    return subject, body


def deposit_reminder_message(pdcs):
    subject = f"PDC Deposit Reminder - {len(pdcs)} PDC(s) Due"
    lines = [
        f"{pdc.pdc_number}  {pdc.cheque_number}  {pdc.bank_name}  AED {pdc.amount:,.2f}  {pdc.tenant.name}"
        for pdc in pdcs
    ]
    body = "The following cheques are due for deposit today:\n\n" + "\n".join(lines)
    return subject, body


def _dispatch_bounce(pdc_id):
    from .tasks import send_bounce_notification

    try:
        send_bounce_notification.delay(pdc_id)
    except Exception:
        logger.exception("Could not queue bounce notification for PDC %s", pdc_id)


def queue_bounce_notification(pdc):
    """Schedule the bounce notification for after the current transaction commits."""
    pdc_id = pdc.pk
    transaction.on_commit(lambda: _dispatch_bounce(pdc_id), robust=True)
