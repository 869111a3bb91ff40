"""
Read-only PDC KPIs.

`build_dashboard` computes every figure and both lists inside one
`snapshot_read()` block against a single `today`, so no two numbers in a
response come from different snapshots.
"""
import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.core.db import snapshot_read
from apps.settings_app.models import CompanySettings

from .conf import pdc_setting
from .models import PDCCheque, PDCStatusHistory
from .states import OUTSTANDING_STATUSES, PDCStatus

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
CENTS = Decimal('0.01')
HUNDRED = Decimal('100')


def _count_and_sum(queryset):
    totals = queryset.aggregate(count=Count('id'), total=Sum('amount'))
    return {'count': totals['count'], 'amount': (totals['total'] or ZERO).quantize(CENTS)}


def _percentage(numerator, denominator):
    if not denominator:
        return ZERO
    return (Decimal(numerator) * HUNDRED / Decimal(denominator)).quantize(CENTS, rounding=ROUND_HALF_UP)


def pdc_holder_name():
    """
    Legal name printed as cheque payee. Falls back to a placeholder when
    the company profile is missing.
    """
    company = CompanySettings.get_settings()
    if company and company.company_name:
        return company.company_name
    logger.warning("Company settings not configured; using placeholder PDC holder name")
    return pdc_setting('HOLDER_FALLBACK_NAME')


def build_dashboard(now=None):
    """
    Returns:
        dict: due_this_week, deposited, deposited_this_month (count/amount
        pairs), total_outstanding_value, recently_bounced_count,
        bounce_rate, upcoming, recently_deposited, holder_name, as_of
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    due_until = today + timedelta(days=pdc_setting('DUE_WINDOW_DAYS'))
    bounce_since = now - timedelta(days=pdc_setting('BOUNCE_WINDOW_DAYS'))
    limit = pdc_setting('DASHBOARD_LIST_LIMIT')

    with snapshot_read():
        due_queryset = PDCCheque.objects.filter(
            status=PDCStatus.DUE, cheque_date__gte=today, cheque_date__lte=due_until
        )
        deposited_queryset = PDCCheque.objects.filter(status=PDCStatus.DEPOSITED)

        due_this_week = _count_and_sum(due_queryset)
        deposited = _count_and_sum(deposited_queryset)
        deposited_this_month = _count_and_sum(
            PDCCheque.objects.filter(
                deposit_date__gte=today.replace(day=1), deposit_date__lte=today
            )
        )
        outstanding = (PDCCheque.objects.filter(status__in=OUTSTANDING_STATUSES).aggregate(
            total=Sum('amount')
        )['total'] or ZERO).quantize(CENTS)

        recently_bounced = PDCStatusHistory.objects.filter(
            to_status=PDCStatus.BOUNCED, timestamp__gte=bounce_since, timestamp__lte=now
        ).count()
        bounced_ever = PDCStatusHistory.objects.filter(to_status=PDCStatus.BOUNCED).count()
        settled_attempts = PDCCheque.objects.exclude(status=PDCStatus.CANCELLED).count()

        upcoming = list(
            due_queryset.select_related('tenant').order_by('cheque_date', 'id')[:limit]
        )
        recently_deposited = list(
            deposited_queryset.select_related('tenant', 'deposit_bank_account')
            .order_by('-deposit_date', '-id')[:limit]
        )
        holder_name = pdc_holder_name()

    return {
        'as_of': now,
        'today': today,
        'due_this_week': due_this_week,
        'deposited': deposited,
        'deposited_this_month': deposited_this_month,
        'total_outstanding_value': outstanding,
        'recently_bounced_count': recently_bounced,
        'bounce_rate': _percentage(bounced_ever, settled_attempts),
        'upcoming': upcoming,
        'recently_deposited': recently_deposited,
        'holder_name': holder_name,
    }


def tenant_bounce_rate(tenant):
    """
    Bounce entries / (cheques - cancelled cheques) as a percentage with two
    decimals. Replaced cheques still count their bounce.
    """
    tenant_id = getattr(tenant, 'pk', tenant)
    counts = PDCCheque.objects.filter(tenant_id=tenant_id).aggregate(
        total=Count('id'),
        cancelled=Count('id', filter=Q(status=PDCStatus.CANCELLED)),
    )
    bounced = PDCStatusHistory.objects.filter(
        pdc__tenant_id=tenant_id, to_status=PDCStatus.BOUNCED
    ).count()
    return _percentage(bounced, counts['total'] - counts['cancelled'])


def tenant_pdc_history(tenant):
    """Summary counts for a tenant's cheques plus their bounce rate."""
    tenant_id = getattr(tenant, 'pk', tenant)
    with snapshot_read():
        counts = PDCCheque.objects.filter(tenant_id=tenant_id).aggregate(
            total=Count('id'),
            cleared=Count('id', filter=Q(status=PDCStatus.CLEARED)),
            bounced=Count('id', filter=Q(status__in=[PDCStatus.BOUNCED, PDCStatus.REPLACED])),
            pending=Count('id', filter=Q(status__in=OUTSTANDING_STATUSES)),
            cancelled=Count('id', filter=Q(status=PDCStatus.CANCELLED)),
        )
        counts['bounce_rate'] = tenant_bounce_rate(tenant_id)
    return counts
