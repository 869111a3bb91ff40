"""
Celery tasks for the PDC engine.

Tasks:
- promote_due_pdcs_task: daily RECEIVED -> DUE sweep
- send_bounce_notification: notify tenant and property managers of a bounce
- send_due_reminders: remind admins of cheques due for deposit today
"""
import logging
from datetime import date
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from apps.core.audit import log_audit

from .conf import pdc_setting
from .models import PDCCheque
from .notifications import bounce_message, bounce_recipients, deposit_reminder_message, reminder_recipients
from .services import pdcs_due_for_reminder, promote_due_pdcs

logger = logging.getLogger(__name__)


def _from_email():
    return pdc_setting('NOTIFICATION_FROM_EMAIL') or settings.DEFAULT_FROM_EMAIL


@shared_task(bind=True, ignore_result=True)
def promote_due_pdcs_task(self, on_date=None):
    """
    Promote RECEIVED cheques that entered the due window.

    Args:
        on_date: ISO date to sweep for; defaults to today
    """
    today = date.fromisoformat(on_date) if on_date else timezone.localdate()
    promoted = promote_due_pdcs(today)
    return len(promoted)


@shared_task(
    bind=True,
    max_retries=5,
    default_retry_delay=60,
    autoretry_for=(SMTPException, OSError),
    retry_backoff=True,
)
def send_bounce_notification(self, pdc_id):
    """
    Email the bounce alert for one cheque.

    Returns:
        Number of recipients addressed
    """
    try:
        pdc = PDCCheque.objects.select_related('tenant').get(pk=pdc_id)
    except PDCCheque.DoesNotExist:
        logger.error("Bounce notification skipped: PDC %s not found", pdc_id)
        return 0

    recipients = bounce_recipients(pdc)
    if not recipients:
        logger.warning("Bounce notification for %s has no recipients", pdc.pdc_number)
        return 0

    subject, body = bounce_message(pdc)
    send_mail(subject, body, _from_email(), recipients)

    log_audit(
        user=None,
        action='notify',
        model_name='PDC.PDC',
        record_id=pdc.pk,
        changes={'event': 'bounced', 'recipients': recipients},
    )
    logger.info("Bounce notification for %s sent to %d recipient(s)", pdc.pdc_number, len(recipients))
    return len(recipients)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=300,
    autoretry_for=(SMTPException, OSError),
    retry_backoff=True,
)
def send_due_reminders(self, on_date=None):
    """Email admins the list of DUE cheques dated on the reminder date."""
    reminder_date = date.fromisoformat(on_date) if on_date else timezone.localdate()
    pdcs = list(pdcs_due_for_reminder(reminder_date))
    if not pdcs:
        logger.info("No PDCs due for deposit on %s", reminder_date)
        return 0

    recipients = reminder_recipients()
    if not recipients:
        logger.warning("%d PDC(s) due on %s but no admin has an email address", len(pdcs), reminder_date)
        return 0

    subject, body = deposit_reminder_message(pdcs)
    send_mail(subject, body, _from_email(), recipients)
    logger.info("Deposit reminder for %d PDC(s) sent to %d admin(s)", len(pdcs), len(recipients))
    return len(pdcs)
