from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from evportal.core.exceptions import ValidationError
from evportal.core.permissions import IsSalesStaff, IsEVMStaff
from evportal.core.utils import create_audit_log, envelope, request_object
from .filters import DispatchFilter
from .models import InventoryRecord, InventoryDispatch
from .serializers import InventoryRecordSerializer, InventoryDispatchSerializer
from . import ledger


def _quantity_from_request(request, default=None):
    """The quantity may arrive as a bare JSON number, an object field or a query param"""
    data = request.data
    if isinstance(data, (int, float, str)) and not isinstance(data, bool):
        return data
    if hasattr(data, 'get') and data.get('quantity') is not None:
        return data.get('quantity')
    return request.query_params.get('quantity', default)


@api_view(['GET'])
@permission_classes([IsSalesStaff])
def inventory_list(request):
    """List inventory records, optionally only available ones"""
    records = InventoryRecord.objects.select_related('vehicle').order_by('vehicle__model', 'vehicle__version')
    if request.query_params.get('available') in ('true', '1'):
        records = records.filter(quantity__gt=0)
    serializer = InventoryRecordSerializer(records, many=True)
    return envelope(serializer.data)


@api_view(['GET'])
@permission_classes([IsSalesStaff])
def inventory_detail(request, vehicle_id):
    """Availability of one vehicle (falls back to the vehicle status without a record)"""
    record = InventoryRecord.objects.select_related('vehicle').filter(vehicle_id=vehicle_id).first()
    data = {'vehicleId': vehicle_id, **ledger.availability(vehicle_id)}
    if record is not None:
        data.update(InventoryRecordSerializer(record).data)
    return envelope(data)


@api_view(['PUT'])
@permission_classes([IsEVMStaff])
def inventory_update(request, vehicle_id):
    """Set the available quantity of a vehicle"""
    record = ledger.set_quantity(vehicle_id, _quantity_from_request(request))
    create_audit_log(
        request=request,
        action='inventory_update',
        model_name='InventoryRecord',
        object_id=record.id,
        object_reference=str(vehicle_id),
        changes={'quantity': record.quantity},
    )
    return envelope(InventoryRecordSerializer(record).data, message='Inventory updated successfully')


@api_view(['POST'])
@permission_classes([IsEVMStaff])
def inventory_create(request, vehicle_id):
    """Create the inventory record of a vehicle"""
    record = ledger.create_record(vehicle_id, _quantity_from_request(request, default=0))
    create_audit_log(
        request=request,
        action='create',
        model_name='InventoryRecord',
        object_id=record.id,
        object_reference=str(vehicle_id),
        changes={'quantity': record.quantity},
    )
    return envelope(InventoryRecordSerializer(record).data, message='Inventory created successfully', status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'POST'])
@permission_classes([IsEVMStaff])
def inventory_dispatch(request):
    """Dispatch report (GET) or dispatch vehicles to a dealer (POST)"""
    if request.method == 'GET':
        filterset = DispatchFilter(request.query_params, queryset=InventoryDispatch.objects.all())
        if not filterset.is_valid():
            errors = {field: [e['message'] for e in errs] for field, errs in filterset.errors.get_json_data().items()}
            raise ValidationError('Invalid dispatch report filters.', errors=errors)
        bounds = filterset.form.cleaned_data
        if bounds.get('fromDate') and bounds.get('toDate') and bounds['fromDate'] > bounds['toDate']:
            raise ValidationError('fromDate must be on or before toDate.')
        return envelope(InventoryDispatchSerializer(filterset.qs, many=True).data)

    data = request_object(request)
    record, entry = ledger.dispatch(
        data.get('vehicleId'),
        data.get('quantity'),
        data.get('dealerId'),
        data.get('color'),
        user=request.user,
    )
    create_audit_log(
        request=request,
        action='inventory_dispatch',
        model_name='InventoryDispatch',
        object_id=entry.id,
        object_reference=str(entry.vehicle_id),
        changes={
            'dealerId': entry.dealer_id,
            'color': entry.color,
            'quantity': entry.quantity,
            'remaining': record.quantity,
        },
    )
    return envelope(
        {'dispatch': InventoryDispatchSerializer(entry).data, 'inventory': InventoryRecordSerializer(record).data},
        message='Inventory dispatched successfully',
        status_code=status.HTTP_201_CREATED,
    )
