import django_filters
from .models import InventoryDispatch


class DispatchFilter(django_filters.FilterSet):
    """Dispatch report filters; the date bounds are inclusive calendar days"""

    dealerId = django_filters.NumberFilter(field_name='dealer_id', lookup_expr='exact')
    vehicleId = django_filters.NumberFilter(field_name='vehicle_id', lookup_expr='exact')
    fromDate = django_filters.DateFilter(field_name='created_at', lookup_expr='date__gte')
    toDate = django_filters.DateFilter(field_name='created_at', lookup_expr='date__lte')

    class Meta:
        model = InventoryDispatch
        fields = ['dealerId', 'vehicleId', 'fromDate', 'toDate']
