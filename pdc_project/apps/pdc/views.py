"""
PDC JSON API views.
"""
from datetime import date

from django.http import JsonResponse
from django.utils import timezone

from apps.core.api import api_endpoint, paginate, snake_keys
from apps.core.exceptions import ValidationException
from apps.settings_app.models import Role

from . import dashboard, services
from .filters import PDCFilter
from .models import PDCCheque, PDCWithdrawal
from .replacement import replace_pdc, replacement_chain
from .serializers import (
    serialize_dashboard,
    serialize_pdc,
    serialize_pdc_detail,
    serialize_reason_group,
    serialize_withdrawal,
)
from .withdrawals import withdraw_pdc, withdrawal_history, withdrawals_by_reason

PDC_ROLES = (Role.SUPER_ADMIN, Role.ADMIN, Role.PROPERTY_MANAGER)
ADMIN_ROLES = (Role.SUPER_ADMIN, Role.ADMIN)


def _pdc_queryset():
    return PDCCheque.objects.select_related('tenant')


@api_endpoint(methods=('GET', 'POST'), roles=PDC_ROLES)
def pdc_collection(request):
    """GET: filtered, paginated list. POST: create one cheque."""
    if request.method == 'POST':
        data = request.data
        pdc = services.create_pdc(
            tenant_id=data.get('tenant_id'),
            cheque_number=data.get('cheque_number'),
            bank_name=data.get('bank_name'),
            amount=data.get('amount'),
            cheque_date=data.get('cheque_date'),
            lease_id=data.get('lease_id'),
            invoice_id=data.get('invoice_id'),
            notes=data.get('notes') or '',
            actor=request.user,
        )
        return JsonResponse(serialize_pdc(pdc), status=201)

    params = snake_keys(request.GET.dict())
    if params.get('status') == 'ALL':
        params.pop('status')
    pdc_filter = PDCFilter(params, queryset=_pdc_queryset().order_by('cheque_date', 'id'))
    if not pdc_filter.is_valid():
        raise ValidationException('Invalid filter.', errors=pdc_filter.errors.get_json_data())
    return JsonResponse(paginate(pdc_filter.qs, request, serialize_pdc))


@api_endpoint(methods=('POST',), roles=PDC_ROLES)
def pdc_bulk_create(request):
    data = request.data
    created = services.bulk_create_pdcs(
        tenant_id=data.get('tenant_id'),
        cheques=data.get('cheques'),
        lease_id=data.get('lease_id'),
        actor=request.user,
    )
    return JsonResponse([serialize_pdc(pdc) for pdc in created], safe=False, status=201)


@api_endpoint(roles=PDC_ROLES)
def pdc_detail(request, pk):
    pdc = services.get_pdc(pk)
    return JsonResponse(serialize_pdc_detail(pdc, services.status_history(pdc)))


@api_endpoint(methods=('PATCH',), roles=PDC_ROLES)
def pdc_deposit(request, pk):
    data = request.data
    pdc = services.deposit_pdc(
        pk,
        deposit_date=data.get('deposit_date'),
        bank_account_id=data.get('bank_account_id'),
        expected_version=data.get('expected_version'),
        actor=request.user,
    )
    return JsonResponse(serialize_pdc(pdc))


@api_endpoint(methods=('PATCH',), roles=PDC_ROLES)
def pdc_clear(request, pk):
    data = request.data
    pdc = services.clear_pdc(
        pk,
        cleared_date=data.get('cleared_date'),
        expected_version=data.get('expected_version'),
        actor=request.user,
    )
    return JsonResponse(serialize_pdc(pdc))


@api_endpoint(methods=('PATCH',), roles=PDC_ROLES)
def pdc_bounce(request, pk):
    data = request.data
    pdc = services.bounce_pdc(
        pk,
        bounced_date=data.get('bounced_date'),
        bounce_reason=data.get('bounce_reason'),
        expected_version=data.get('expected_version'),
        actor=request.user,
    )
    return JsonResponse(serialize_pdc(pdc))


@api_endpoint(methods=('POST',), roles=PDC_ROLES)
def pdc_replace(request, pk):
    data = request.data
    original, replacement = replace_pdc(
        pk,
        new_cheque_number=data.get('new_cheque_number'),
        bank_name=data.get('bank_name'),
        amount=data.get('amount'),
        cheque_date=data.get('cheque_date'),
        notes=data.get('notes') or '',
        expected_version=data.get('expected_version'),
        actor=request.user,
    )
    return JsonResponse({
        'original': serialize_pdc(original),
        'replacement': serialize_pdc(replacement),
    }, status=201)


@api_endpoint(methods=('PATCH',), roles=PDC_ROLES)
def pdc_withdraw(request, pk):
    data = request.data
    pdc = withdraw_pdc(
        pk,
        withdrawal_date=data.get('withdrawal_date'),
        reason=data.get('reason') or data.get('withdrawal_reason'),
        new_payment_method=data.get('new_payment_method'),
        transaction_details=data.get('transaction_details'),
        expected_version=data.get('expected_version'),
        actor=request.user,
    )
    return JsonResponse(serialize_pdc(pdc))


@api_endpoint(methods=('PATCH',), roles=PDC_ROLES)
def pdc_cancel(request, pk):
    data = request.data
    pdc = services.cancel_pdc(
        pk,
        expected_version=data.get('expected_version'),
        notes=data.get('notes') or '',
        actor=request.user,
    )
    return JsonResponse(serialize_pdc(pdc))


@api_endpoint(roles=PDC_ROLES)
def pdc_chain(request, pk):
    pdc = services.get_pdc(pk)
    return JsonResponse({'chain': [serialize_pdc(node) for node in replacement_chain(pdc)]})


@api_endpoint(roles=PDC_ROLES)
def pdc_dashboard(request):
    return JsonResponse(serialize_dashboard(dashboard.build_dashboard()))


@api_endpoint(roles=PDC_ROLES)
def pdc_withdrawals(request):
    queryset = withdrawal_history(
        reason=request.GET.get('reason'),
        date_from=request.GET.get('fromDate'),
        date_to=request.GET.get('toDate'),
        tenant_id=request.GET.get('tenantId'),
    )
    body = paginate(queryset, request, serialize_withdrawal)
    body['byReason'] = [serialize_reason_group(row) for row in withdrawals_by_reason(queryset)]
    return JsonResponse(body)


@api_endpoint(roles=PDC_ROLES)
def pdc_withdrawal_reasons(request):
    return JsonResponse({'reasons': PDCWithdrawal.STANDARD_REASONS})


@api_endpoint(roles=PDC_ROLES)
def pdc_banks(request):
    return JsonResponse({'banks': services.distinct_bank_names()})


@api_endpoint(roles=PDC_ROLES)
def pdc_holder(request):
    return JsonResponse({'holderName': dashboard.pdc_holder_name()})


@api_endpoint(roles=PDC_ROLES)
def pdc_check_duplicate(request):
    tenant_id = request.GET.get('tenantId')
    cheque_number = request.GET.get('chequeNumber')
    if not tenant_id or not cheque_number:
        raise ValidationException('tenantId and chequeNumber are required.')
    if not tenant_id.isdigit():
        raise ValidationException('tenantId must be an integer.')
    exists = services.cheque_number_exists(tenant_id, cheque_number, exclude_id=request.GET.get('excludeId'))
    return JsonResponse({'exists': exists})


@api_endpoint(roles=PDC_ROLES)
def pdc_by_invoice(request, invoice_id):
    return JsonResponse({'content': [serialize_pdc(pdc) for pdc in services.pdcs_for_invoice(invoice_id)]})


@api_endpoint(methods=('POST',), roles=ADMIN_ROLES)
def pdc_promote_due(request):
    on_date = request.data.get('date')
    today = timezone.localdate()
    if on_date:
        try:
            today = date.fromisoformat(on_date)
        except (TypeError, ValueError):
            raise ValidationException('date must be an ISO date (YYYY-MM-DD).')
    promoted = services.promote_due_pdcs(today)
    return JsonResponse({'date': today.isoformat(), 'promoted': [pdc.pk for pdc in promoted]})


@api_endpoint(roles=PDC_ROLES)
def tenant_pdcs(request, tenant_id):
    tenant = services.get_tenant(tenant_id)
    queryset = _pdc_queryset().filter(tenant=tenant).order_by('-cheque_date', '-id')
    data = paginate(queryset, request, serialize_pdc)
    summary = dashboard.tenant_pdc_history(tenant)
    data.update({
        'tenantId': tenant.pk,
        'tenantName': tenant.name,
        'totalPdcs': summary['total'],
        'clearedPdcs': summary['cleared'],
        'bouncedPdcs': summary['bounced'],
        'pendingPdcs': summary['pending'],
        'bounceRate': str(summary['bounce_rate']),
    })
    return JsonResponse(data)
