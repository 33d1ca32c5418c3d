"""
Quotation lifecycle operations and the quotation -> order conversion.

Views stay thin: they deserialize, call one of these functions and render the
result. Every function raises ``evportal.core.exceptions`` errors, which the
DRF exception handler turns into the portal envelope.
"""
import logging
from collections import namedtuple
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError
from django.utils import timezone

from evportal.core.exceptions import (
    AlreadyConvertedError, ConflictError, InvalidTransitionError, NotFoundError, ValidationError,
    QUOTATION_IN_USE_MESSAGE,
)
from evportal.core.utils import create_audit_log
from evportal.inventory import ledger
from evportal.pricing.services import lookup_promotion, require_promotion
from evportal.pricing.validators import INVALID_PROMOTION_MESSAGE, normalize_code
from . import lifecycle
from .lifecycle import QuotationStatus
from .models import Quotation, Order

logger = logging.getLogger(__name__)

ConversionResult = namedtuple('ConversionResult', ['order', 'quotation', 'warnings'])


def get_quotation(quotation_id, lock=False):
    queryset = Quotation.objects.select_for_update() if lock else Quotation.objects.all()
    try:
        return queryset.get(pk=quotation_id)
    except Quotation.DoesNotExist:
        raise NotFoundError(f'Quotation {quotation_id} not found.')


def _apply_promotion(quotation, code, now):
    """Validate ``code`` and copy the canonical code/option name onto the quotation"""
    promotion = require_promotion(code, now)
    if promotion is None:
        quotation.promotion_code = ''
        quotation.promotion_option_name = ''
        return None
    quotation.promotion_code = promotion.promotion_code
    if not quotation.promotion_option_name:
        quotation.promotion_option_name = promotion.option_name
    return promotion


def create_quotation(data, user=None, request=None, now=None):
    """
    Create a quotation from validated serializer data.

    The status is always PENDING and ``final_price`` is always
    ``base_price - discount``, whatever the caller sent.
    """
    now = now or timezone.now()
    data = dict(data)
    data.pop('status', None)
    data.pop('version', None)
    data.pop('final_price', None)
    code = data.pop('promotion_code', '')

    quotation = Quotation(**data)
    quotation.discount = quotation.discount or Decimal('0.00')
    quotation.status = lifecycle.INITIAL_STATUS
    quotation.created_by = user if user is not None and user.is_authenticated else None
    _apply_promotion(quotation, code, now)
    quotation.final_price = quotation.compute_final_price()
    quotation.save()

    logger.info(f"Quotation {quotation.id} created for user {quotation.user_id}, vehicle {quotation.vehicle_id}, final price {quotation.final_price}")
    create_audit_log(
        request=request,
        user=user,
        action='create',
        model_name='Quotation',
        object_id=quotation.id,
        changes={
            'basePrice': str(quotation.base_price),
            'discount': str(quotation.discount),
            'finalPrice': str(quotation.final_price),
            'promotionCode': quotation.promotion_code,
            'status': quotation.status,
        },
    )
    return quotation


def update_quotation(quotation_id, data, user=None, request=None, now=None):
    """
    Apply a staff edit, including an optional status transition.

    A supplied ``version`` must match the stored one (optimistic concurrency).
    Terminal quotations cannot be edited and CONVERTED can never be set here.
    """
    now = now or timezone.now()
    data = dict(data)
    expected_version = data.pop('version', None)
    requested_status = data.pop('status', None)
    data.pop('final_price', None)

    with transaction.atomic():
        quotation = get_quotation(quotation_id, lock=True)
        lifecycle.ensure_editable(quotation.status)
        if quotation.has_order:
            raise ConflictError(
                f'Quotation {quotation.id} already has an order. Convert it to complete the conversion instead of editing it.'
            )

        if expected_version is not None and expected_version != quotation.version:
            raise ConflictError(
                'This quotation was changed by someone else. Reload it and try again.',
                errors={'version': [f'Expected {quotation.version}, got {expected_version}.']},
            )

        old_status = quotation.status
        new_status = old_status
        if requested_status not in (None, ''):
            new_status = lifecycle.check_staff_transition(old_status, requested_status)

        if 'promotion_code' in data:
            code = data.pop('promotion_code')
            if normalize_code(code) != normalize_code(quotation.promotion_code):
                if 'promotion_option_name' in data:
                    quotation.promotion_option_name = data.pop('promotion_option_name')
                else:
                    quotation.promotion_option_name = ''
                _apply_promotion(quotation, code, now)

        for field, value in data.items():
            setattr(quotation, field, value)

        if quotation.discount > quotation.base_price:
            raise ValidationError('Discount cannot exceed the base price.', errors={'discount': ['Discount cannot exceed the base price.']})
        quotation.final_price = quotation.compute_final_price()
        quotation.status = new_status
        quotation.version += 1
        quotation.save()

    if new_status != old_status:
        logger.info(f"Quotation {quotation.id} status {old_status} -> {new_status}")
    create_audit_log(
        request=request,
        user=user,
        action='status_change' if new_status != old_status else 'update',
        model_name='Quotation',
        object_id=quotation.id,
        changes={
            'status': {'from': old_status, 'to': new_status},
            'finalPrice': str(quotation.final_price),
            'version': quotation.version,
        },
    )
    return quotation


def change_status(quotation_id, status, user=None, request=None):
    """Status-only staff transition"""
    return update_quotation(quotation_id, {'status': status}, user=user, request=request)


def delete_quotation(quotation_id, user=None, request=None):
    """Delete a quotation unless an order references it"""
    with transaction.atomic():
        quotation = get_quotation(quotation_id, lock=True)
        if quotation.has_order:
            raise ConflictError(QUOTATION_IN_USE_MESSAGE)
        try:
            quotation.delete()
        except ProtectedError:
            raise ConflictError(QUOTATION_IN_USE_MESSAGE)

    logger.info(f"Quotation {quotation_id} deleted")
    create_audit_log(request=request, user=user, action='delete', model_name='Quotation', object_id=quotation_id)


def _mark_converted(quotation):
    quotation.status = QuotationStatus.CONVERTED
    quotation.version += 1
    quotation.save(update_fields=['status', 'version', 'updated_at'])


def _promotion_warnings(quotation, now):
    """Check the quotation's stored promotion is still usable"""
    if not normalize_code(quotation.promotion_code):
        return []
    if lookup_promotion(quotation.promotion_code, now) is not None:
        return []
    if getattr(settings, 'EVPORTAL_REVALIDATE_PROMOTION_ON_CONVERT', False):
        raise ValidationError(
            f"Promotion '{quotation.promotion_code}' is no longer active: {INVALID_PROMOTION_MESSAGE}",
            errors={'promotionCode': [INVALID_PROMOTION_MESSAGE]},
        )
    message = f"Promotion '{quotation.promotion_code}' is no longer active; the approved price is kept."
    logger.warning(f"Quotation {quotation.id}: {message}")
    return [message]


def _inventory_warnings(quotation):
    stock = ledger.availability(quotation.vehicle_id)
    if stock['available']:
        return []
    message = f"Vehicle {quotation.vehicle_id} is currently out of stock (quantity {stock['quantity']})."
    logger.warning(f"Converting quotation {quotation.id}: {message}")
    return [message]


def convert_quotation(quotation, user=None, delivery_address=None, attachment_image='', attachment_file='',
                      request=None, now=None):
    """
    Turn an APPROVED quotation into an Order and mark it CONVERTED.

    Both writes happen in one transaction with the quotation row locked, and
    ``orders.quotation_id`` is unique, so a quotation yields at most one order.
    A second call fails with AlreadyConvertedError. An order left behind by a
    partial conversion (quotation still APPROVED) is adopted: the quotation is
    advanced to CONVERTED and no new order is created.
    """
    now = now or timezone.now()
    quotation_id = getattr(quotation, 'pk', quotation)
    default_address = getattr(settings, 'EVPORTAL_DEFAULT_DELIVERY_ADDRESS', 'Not specified')

    with transaction.atomic():
        quotation = get_quotation(quotation_id, lock=True)
        existing = Order.objects.filter(quotation_id=quotation.pk).first()

        if existing is None:
            if quotation.status == QuotationStatus.CONVERTED:
                raise AlreadyConvertedError()
            lifecycle.check_conversion(quotation.status)

            warnings = _promotion_warnings(quotation, now) + _inventory_warnings(quotation)

            try:
                with transaction.atomic():
                    order = Order.objects.create(
                        quotation=quotation,
                        user_id=quotation.user_id,
                        vehicle_id=quotation.vehicle_id,
                        color=quotation.color,
                        order_date=now,
                        delivery_address=(delivery_address or '').strip() or default_address,
                        status=Order.Status.PENDING,
                        promotion_code=quotation.promotion_code,
                        promotion_option_name=quotation.promotion_option_name,
                        quotation_price=quotation.base_price,
                        final_price=quotation.final_price,
                        total_amount=quotation.final_price,
                        attachment_image=attachment_image or '',
                        attachment_file=attachment_file or '',
                        created_by=user if user is not None and user.is_authenticated else None,
                    )
            except IntegrityError:
                raise ConflictError('An order was created for this quotation by another request.')

            _mark_converted(quotation)

            logger.info(f"Quotation {quotation.id} converted to order {order.id} (total {order.total_amount})")
            create_audit_log(
                request=request,
                user=user,
                action='quotation_convert',
                model_name='Order',
                object_id=order.id,
                object_reference=str(quotation.id),
                changes={
                    'quotationPrice': str(order.quotation_price),
                    'finalPrice': str(order.final_price),
                    'totalAmount': str(order.total_amount),
                    'warnings': warnings,
                },
            )
            return ConversionResult(order=order, quotation=quotation, warnings=warnings)

        if quotation.status == QuotationStatus.APPROVED:
            logger.warning(f"Quotation {quotation.id} already has order {existing.id} but was still APPROVED; marking it converted")
            _mark_converted(quotation)

    raise AlreadyConvertedError(
        f'Quotation {quotation_id} has already been converted to order {existing.id}.',
        order_id=existing.id,
    )


def convert(quotation, **kwargs):
    """``convert(quotation) -> Order``"""
    return convert_quotation(quotation, **kwargs).order


ORDER_TRANSITIONS = {
    Order.Status.PENDING: frozenset({Order.Status.CONFIRMED, Order.Status.CANCELLED}),
    Order.Status.CONFIRMED: frozenset({Order.Status.DELIVERED, Order.Status.CANCELLED}),
    Order.Status.DELIVERED: frozenset(),
    Order.Status.CANCELLED: frozenset(),
}


def get_order(order_id, lock=False):
    queryset = Order.objects.select_for_update() if lock else Order.objects.all()
    try:
        return queryset.get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFoundError(f'Order {order_id} not found.')


def update_order(order_id, data, user=None, request=None):
    """
    Fulfilment edits: delivery address, attachments and the order status.

    Parties, vehicle and prices are fixed at conversion and are not editable.
    """
    with transaction.atomic():
        order = get_order(order_id, lock=True)
        old_status = order.status
        requested = (data.get('status') or '').strip().upper()
        if requested and requested != old_status:
            if requested not in Order.Status.values:
                allowed = ', '.join(Order.Status.values)
                raise ValidationError(
                    f"Unknown order status '{data.get('status')}'. Allowed values: {allowed}.",
                    errors={'status': [f'Must be one of: {allowed}.']},
                )
            if requested not in ORDER_TRANSITIONS[Order.Status(old_status)]:
                raise InvalidTransitionError(f'Cannot change order status from {old_status} to {requested}.')
            order.status = requested

        for field in ('delivery_address', 'attachment_image', 'attachment_file'):
            if field in data and data[field] is not None:
                setattr(order, field, data[field])
        order.save()

    create_audit_log(
        request=request,
        user=user,
        action='status_change' if order.status != old_status else 'update',
        model_name='Order',
        object_id=order.id,
        object_reference=str(order.quotation_id),
        changes={'status': {'from': old_status, 'to': order.status}, 'deliveryAddress': order.delivery_address},
    )
    return order


def delete_order(order_id, user=None, request=None):
    """
    Delete an order. The source quotation stays CONVERTED (terminal) but can
    be deleted afterwards.
    """
    with transaction.atomic():
        order = get_order(order_id, lock=True)
        quotation_id = order.quotation_id
        order.delete()

    logger.info(f"Order {order_id} (quotation {quotation_id}) deleted")
    create_audit_log(
        request=request,
        user=user,
        action='delete',
        model_name='Order',
        object_id=order_id,
        object_reference=str(quotation_id),
    )
