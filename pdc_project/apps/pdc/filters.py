"""
Query-string filters for the PDC list endpoint.
"""
import django_filters
from django.db.models import Q

from .models import PDCCheque
from .states import PDCStatus


class PDCFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=PDCStatus.choices)
    tenant_id = django_filters.NumberFilter(field_name='tenant_id')
    lease_id = django_filters.NumberFilter(field_name='lease_id')
    bank_name = django_filters.CharFilter(field_name='bank_name', lookup_expr='icontains')
    from_date = django_filters.DateFilter(field_name='cheque_date', lookup_expr='gte')
    to_date = django_filters.DateFilter(field_name='cheque_date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search')
    sort = django_filters.OrderingFilter(
        fields=(
            ('cheque_date', 'chequeDate'),
            ('amount', 'amount'),
            ('created_at', 'createdAt'),
            ('deposit_date', 'depositDate'),
            ('status', 'status'),
        )
    )

    class Meta:
        model = PDCCheque
        fields = []

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(cheque_number__icontains=value)
            | Q(pdc_number__icontains=value)
            | Q(tenant__name__icontains=value)
        )
