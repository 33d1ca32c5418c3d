from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from evportal.core.exceptions import NotFoundError
from evportal.core.permissions import IsSalesStaff
from evportal.core.utils import envelope
from .filters import QuotationFilter, OrderFilter
from .models import Quotation, Order
from .serializers import QuotationSerializer, OrderSerializer, CreateOrderSerializer, UpdateOrderSerializer
from . import services


def _visible(queryset, user):
    """Customers only ever see their own quotations and orders"""
    if user.is_sales_staff:
        return queryset
    return queryset.filter(user=user)


def _require_sales_staff(request):
    # Reads are open to customers (own records); writes are staff only
    if not IsSalesStaff().has_permission(request, None):
        raise PermissionDenied(IsSalesStaff.message)


def _create_quotation(request):
    serializer = QuotationSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    quotation = services.create_quotation(serializer.validated_data, user=request.user, request=request)
    return envelope(QuotationSerializer(quotation).data, message='Quotation created successfully', status_code=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsSalesStaff])
def create_quotation(request):
    """Create a quotation (always starts PENDING)"""
    return _create_quotation(request)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def quotation_list_create(request):
    """List quotations (filterable by status, userId, vehicleId) or create one"""
    if request.method == 'GET':
        queryset = _visible(Quotation.objects.select_related('user', 'vehicle'), request.user)
        filterset = QuotationFilter(request.query_params, queryset=queryset)
        serializer = QuotationSerializer(filterset.qs, many=True)
        return envelope(serializer.data)

    _require_sales_staff(request)
    return _create_quotation(request)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def quotation_detail(request, pk):
    """Retrieve, update (including status transitions) or delete a quotation"""
    if request.method == 'GET':
        quotation = services.get_quotation(pk)
        if not request.user.is_sales_staff and quotation.user_id != request.user.id:
            raise NotFoundError(f'Quotation {pk} not found.')
        return envelope(QuotationSerializer(quotation).data)

    _require_sales_staff(request)

    if request.method in ('PUT', 'PATCH'):
        instance = services.get_quotation(pk)
        serializer = QuotationSerializer(instance, data=request.data, partial=request.method == 'PATCH')
        serializer.is_valid(raise_exception=True)
        quotation = services.update_quotation(pk, serializer.validated_data, user=request.user, request=request)
        return envelope(QuotationSerializer(quotation).data, message='Quotation updated successfully')

    services.delete_quotation(pk, user=request.user, request=request)
    return envelope(message='Quotation deleted successfully')


@api_view(['POST'])
@permission_classes([IsSalesStaff])
def create_order(request):
    """Convert an approved quotation into an order"""
    serializer = CreateOrderSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    result = services.convert_quotation(
        data['quotationId'],
        user=request.user,
        delivery_address=data.get('deliveryAddress'),
        attachment_image=data.get('attachmentImage'),
        attachment_file=data.get('attachmentFile'),
        request=request,
    )
    return envelope(
        OrderSerializer(result.order).data,
        message='Order created successfully',
        status_code=status.HTTP_201_CREATED,
        warnings=result.warnings,
    )


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def order_list(request):
    queryset = _visible(Order.objects.select_related('quotation', 'user', 'vehicle'), request.user)
    filterset = OrderFilter(request.query_params, queryset=queryset)
    return envelope(OrderSerializer(filterset.qs, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    """Retrieve, update fulfilment details of, or delete an order"""
    if request.method == 'GET':
        order = services.get_order(pk)
        if not request.user.is_sales_staff and order.user_id != request.user.id:
            raise NotFoundError(f'Order {pk} not found.')
        return envelope(OrderSerializer(order).data)

    _require_sales_staff(request)

    if request.method in ('PUT', 'PATCH'):
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = services.update_order(pk, serializer.validated_data, user=request.user, request=request)
        return envelope(OrderSerializer(order).data, message='Order updated successfully')

    services.delete_order(pk, user=request.user, request=request)
    return envelope(message='Order deleted successfully')
