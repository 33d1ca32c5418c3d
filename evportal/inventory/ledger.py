"""
Inventory ledger: per-vehicle available quantity.

Availability precedence:
  1. the vehicle's InventoryRecord: ``quantity > 0`` means available;
  2. no record: the vehicle's stored ``status`` (legacy fallback);
  3. no vehicle either: not available, quantity 0.

Reads never raise. Writes (dispatch, set, create) belong to EVM staff and run
under a row lock.
"""
import logging

from django.db import transaction

from evportal.catalog.models import Vehicle
from evportal.core.exceptions import ConflictError, NotFoundError, ValidationError
from .models import InventoryRecord, InventoryDispatch

logger = logging.getLogger(__name__)

SOURCE_INVENTORY = 'inventory'
SOURCE_VEHICLE_STATUS = 'vehicle_status'
SOURCE_DEFAULT = 'default'


def _snapshot(quantity, available, source):
    return {
        'quantity': quantity,
        'available': available,
        'status': 'available' if available else 'out_of_stock',
        'source': source,
    }


def availability_from_record(record):
    return _snapshot(record.quantity, record.quantity > 0, SOURCE_INVENTORY)


def availability(vehicle_id):
    """Return ``{quantity, available, status, source}`` for a vehicle"""
    record = InventoryRecord.objects.filter(vehicle_id=vehicle_id).first()
    if record is not None:
        return availability_from_record(record)

    vehicle = Vehicle.objects.filter(pk=vehicle_id).only('id', 'status').first()
    if vehicle is not None:
        logger.debug(f"No inventory record for vehicle {vehicle_id}, using stored status '{vehicle.status}'")
        return _snapshot(0, vehicle.status == Vehicle.STATUS_AVAILABLE, SOURCE_VEHICLE_STATUS)

    logger.warning(f"Availability requested for unknown vehicle {vehicle_id}")
    return _snapshot(0, False, SOURCE_DEFAULT)


def parse_quantity(value, allow_zero=True):
    """Coerce a request value to a non-negative int or raise ValidationError"""
    if isinstance(value, bool):
        raise ValidationError('Quantity must be a whole number.')
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Quantity must be a whole number.')
    if isinstance(value, float) and value != quantity:
        raise ValidationError('Quantity must be a whole number.')
    if quantity < 0:
        raise ValidationError('Quantity cannot be negative.')
    if quantity == 0 and not allow_zero:
        raise ValidationError('Quantity must be greater than 0.')
    return quantity


def parse_id(value, label):
    """Coerce a request value to a positive int id or raise ValidationError"""
    if isinstance(value, bool):
        raise ValidationError(f'{label} is invalid.')
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} is invalid.')
    if isinstance(value, float) and value != parsed:
        raise ValidationError(f'{label} is invalid.')
    if parsed <= 0:
        raise ValidationError(f'{label} is invalid.')
    return parsed


def create_record(vehicle_id, quantity=0):
    quantity = parse_quantity(quantity)
    if not Vehicle.objects.filter(pk=vehicle_id).exists():
        raise NotFoundError(f'Vehicle {vehicle_id} does not exist.')
    with transaction.atomic():
        if InventoryRecord.objects.filter(vehicle_id=vehicle_id).exists():
            raise ConflictError(f'Vehicle {vehicle_id} already has an inventory record.')
        record = InventoryRecord.objects.create(vehicle_id=vehicle_id, quantity=quantity)
    logger.info(f"Inventory record created for vehicle {vehicle_id} with quantity {quantity}")
    return record


def set_quantity(vehicle_id, quantity):
    quantity = parse_quantity(quantity)
    with transaction.atomic():
        record = InventoryRecord.objects.select_for_update().filter(vehicle_id=vehicle_id).first()
        if record is None:
            raise NotFoundError(f'No inventory record for vehicle {vehicle_id}.')
        previous = record.quantity
        record.quantity = quantity
        record.save()
    logger.info(f"Inventory for vehicle {vehicle_id} set from {previous} to {quantity}")
    return record


def dispatch(vehicle_id, quantity, dealer_id, color, user=None):
    """Move ``quantity`` vehicles from manufacturer stock to a dealer"""
    vehicle_id = parse_id(vehicle_id, 'Vehicle ID')
    quantity = parse_quantity(quantity, allow_zero=False)
    dealer_id = parse_id(dealer_id, 'Dealer ID')
    color = (color or '').strip()
    if not color:
        raise ValidationError('Vehicle color cannot be empty.')

    with transaction.atomic():
        record = InventoryRecord.objects.select_for_update().filter(vehicle_id=vehicle_id).first()
        if record is None:
            raise NotFoundError(f'No inventory record for vehicle {vehicle_id}.')
        if record.quantity < quantity:
            raise ConflictError(
                f'Insufficient inventory for vehicle {vehicle_id}: requested {quantity}, available {record.quantity}.'
            )
        record.quantity -= quantity
        record.save()
        entry = InventoryDispatch.objects.create(
            vehicle_id=vehicle_id,
            dealer_id=dealer_id,
            color=color,
            quantity=quantity,
            dispatched_by=user if user is not None and user.is_authenticated else None,
        )
    logger.info(f"Dispatched {quantity} x vehicle {vehicle_id} ({color}) to dealer {dealer_id}; {record.quantity} left")
    return record, entry
