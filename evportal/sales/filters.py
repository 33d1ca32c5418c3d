import django_filters
from .lifecycle import QuotationStatus
from .models import Quotation, Order


class QuotationFilter(django_filters.FilterSet):
    """Query-string filters for the quotation list"""

    status = django_filters.CharFilter(method='filter_status', label='Status')
    userId = django_filters.NumberFilter(field_name='user_id', lookup_expr='exact')
    vehicleId = django_filters.NumberFilter(field_name='vehicle_id', lookup_expr='exact')
    # Approved quotations that still have no order ("ready to convert")
    convertible = django_filters.CharFilter(method='filter_convertible', label='Convertible')

    class Meta:
        model = Quotation
        fields = ['status', 'userId', 'vehicleId', 'convertible']

    def filter_status(self, queryset, name, value):
        # Accepts a comma separated list, case-insensitive
        statuses = [s.strip().upper() for s in (value or '').split(',') if s.strip()]
        if not statuses:
            return queryset
        return queryset.filter(status__in=statuses)

    def filter_convertible(self, queryset, name, value):
        if value.lower() not in ('true', '1'):
            return queryset
        return queryset.filter(status=QuotationStatus.APPROVED, order__isnull=True)


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name='status', lookup_expr='iexact')
    userId = django_filters.NumberFilter(field_name='user_id', lookup_expr='exact')
    vehicleId = django_filters.NumberFilter(field_name='vehicle_id', lookup_expr='exact')
    quotationId = django_filters.NumberFilter(field_name='quotation_id', lookup_expr='exact')

    class Meta:
        model = Order
        fields = ['status', 'userId', 'vehicleId', 'quotationId']
