"""
Comprehensive test suite for the sales module
Tests: quotation lifecycle, quotation -> order conversion, deletion rules and the API
"""
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase, SimpleTestCase, override_settings
from django.utils import timezone
from rest_framework import status

from evportal.core.exceptions import (
    AlreadyConvertedError, ConflictError, InvalidTransitionError, NotFoundError, PreconditionError,
    ValidationError, QUOTATION_IN_USE_MESSAGE,
)
from evportal.core.models import AuditLog
from evportal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from evportal.pricing.validators import INVALID_PROMOTION_MESSAGE
from evportal.sales import lifecycle, services
from evportal.sales.lifecycle import QuotationStatus
from evportal.sales.models import Quotation, Order

S = QuotationStatus


class QuotationLifecycleTests(SimpleTestCase):
    """Transition table, no database"""

    def test_allowed_staff_transitions(self):
        allowed = [
            (S.DRAFT, S.PENDING),
            (S.PENDING, S.DRAFT), (S.PENDING, S.SENT), (S.PENDING, S.APPROVED), (S.PENDING, S.REJECTED),
            (S.SENT, S.PENDING), (S.SENT, S.APPROVED), (S.SENT, S.REJECTED),
            (S.APPROVED, S.PENDING), (S.APPROVED, S.SENT), (S.APPROVED, S.REJECTED),
        ]
        for current, target in allowed:
            with self.subTest(current=current, target=target):
                self.assertEqual(lifecycle.check_staff_transition(current, target), target)

    def test_rejected_staff_transitions(self):
        rejected = [(S.DRAFT, S.APPROVED), (S.DRAFT, S.SENT), (S.SENT, S.DRAFT)]
        for current, target in rejected:
            with self.subTest(current=current, target=target):
                with self.assertRaises(InvalidTransitionError):
                    lifecycle.check_staff_transition(current, target)

    def test_same_status_is_a_noop_when_not_terminal(self):
        self.assertTrue(lifecycle.can_transition(S.PENDING, S.PENDING))
        self.assertFalse(lifecycle.can_transition(S.REJECTED, S.REJECTED))

    def test_staff_cannot_set_converted(self):
        with self.assertRaises(InvalidTransitionError):
            lifecycle.check_staff_transition(S.APPROVED, S.CONVERTED)

    def test_terminal_states_are_frozen(self):
        for terminal in (S.REJECTED, S.CONVERTED):
            with self.subTest(status=terminal):
                self.assertTrue(lifecycle.is_terminal(terminal))
                with self.assertRaises(PreconditionError):
                    lifecycle.check_staff_transition(terminal, S.PENDING)

    def test_conversion_requires_approved(self):
        self.assertEqual(lifecycle.check_conversion('APPROVED'), S.CONVERTED)
        for current in (S.DRAFT, S.PENDING, S.SENT, S.REJECTED):
            with self.subTest(status=current):
                with self.assertRaises(PreconditionError):
                    lifecycle.check_conversion(current)

    def test_parse_status(self):
        self.assertEqual(lifecycle.parse_status(' approved '), S.APPROVED)
        with self.assertRaises(ValidationError):
            lifecycle.parse_status('SHIPPED')


class QuotationServiceTests(TestCase):
    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer()
        self.vehicle = TestDataFactory.create_vehicle(price=Decimal('800000000.00'))

    def _create(self, **overrides):
        data = {
            'user': self.customer,
            'vehicle': self.vehicle,
            'base_price': Decimal('800000000'),
            'discount': Decimal('0'),
            'promotion_code': '',
        }
        data.update(overrides)
        return services.create_quotation(data, user=self.staff)

    def test_create_starts_pending_with_computed_price(self):
        quotation = self._create()
        self.assertEqual(quotation.status, S.PENDING)
        self.assertEqual(quotation.final_price, Decimal('800000000'))
        self.assertEqual(quotation.version, 1)
        self.assertEqual(quotation.created_by, self.staff)

    def test_create_ignores_requested_status(self):
        quotation = self._create(status='APPROVED', final_price=Decimal('1'))
        self.assertEqual(quotation.status, S.PENDING)
        self.assertEqual(quotation.final_price, Decimal('800000000'))

    def test_final_price_is_base_minus_discount(self):
        quotation = self._create(discount=Decimal('50000000'))
        self.assertEqual(quotation.final_price, Decimal('750000000'))

    def test_create_with_active_promotion(self):
        TestDataFactory.create_promotion(code='SUMMER10', option_name='Free charger')
        quotation = self._create(promotion_code='summer10')
        self.assertEqual(quotation.promotion_code, 'SUMMER10')
        self.assertEqual(quotation.promotion_option_name, 'Free charger')

    def test_create_with_expired_promotion_is_rejected(self):
        today = timezone.localdate()
        TestDataFactory.create_promotion(
            code='SUMMER10', start_date=today - timedelta(days=40), end_date=today - timedelta(days=10),
        )
        with self.assertRaises(ValidationError) as ctx:
            self._create(promotion_code='SUMMER10')
        self.assertEqual(ctx.exception.message, INVALID_PROMOTION_MESSAGE)
        self.assertFalse(Quotation.objects.exists())

    def test_update_status_and_version(self):
        quotation = self._create()
        updated = services.update_quotation(quotation.id, {'status': 'APPROVED', 'version': 1}, user=self.staff)
        self.assertEqual(updated.status, S.APPROVED)
        self.assertEqual(updated.version, 2)
        self.assertTrue(AuditLog.objects.filter(action='status_change', object_id=str(quotation.id)).exists())

    def test_stale_version_conflicts(self):
        quotation = self._create()
        services.update_quotation(quotation.id, {'discount': Decimal('10')}, user=self.staff)
        with self.assertRaises(ConflictError):
            services.update_quotation(quotation.id, {'status': 'APPROVED', 'version': 1}, user=self.staff)
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.PENDING)

    def test_update_recomputes_final_price(self):
        quotation = self._create()
        updated = services.update_quotation(quotation.id, {'discount': Decimal('100000000')})
        self.assertEqual(updated.final_price, Decimal('700000000'))

    def test_update_rejects_discount_above_base(self):
        quotation = self._create()
        with self.assertRaises(ValidationError):
            services.update_quotation(quotation.id, {'discount': Decimal('900000000')})

    def test_cannot_edit_rejected_quotation(self):
        quotation = TestDataFactory.create_quotation(status=S.REJECTED)
        with self.assertRaises(PreconditionError):
            services.update_quotation(quotation.id, {'discount': Decimal('1')})

    def test_update_missing_quotation(self):
        with self.assertRaises(NotFoundError):
            services.update_quotation(999999, {'status': 'APPROVED'})

    def test_change_status_rejects_illegal_edge(self):
        quotation = TestDataFactory.create_quotation(status=S.DRAFT)
        with self.assertRaises(InvalidTransitionError):
            services.change_status(quotation.id, 'APPROVED')


class ConversionServiceTests(TestCase):
    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer()
        self.vehicle = TestDataFactory.create_vehicle()

    def _approved(self, **kwargs):
        return TestDataFactory.create_quotation(
            customer=self.customer, vehicle=self.vehicle, status=S.APPROVED, **kwargs
        )

    def test_create_approve_convert(self):
        quotation = services.create_quotation({
            'user': self.customer,
            'vehicle': self.vehicle,
            'base_price': Decimal('800000000'),
            'discount': Decimal('0'),
            'promotion_code': '',
            'color': 'Blue',
        }, user=self.staff)
        services.update_quotation(quotation.id, {'status': 'APPROVED'}, user=self.staff)

        result = services.convert_quotation(quotation, user=self.staff)
        order = result.order
        self.assertEqual(order.quotation_price, Decimal('800000000'))
        self.assertEqual(order.final_price, Decimal('800000000'))
        self.assertEqual(order.total_amount, Decimal('800000000'))
        self.assertEqual(order.color, 'Blue')
        self.assertEqual(order.user, self.customer)
        self.assertEqual(order.status, Order.Status.PENDING)
        self.assertEqual(order.delivery_address, 'Not specified')
        self.assertEqual(result.warnings, [])

        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.CONVERTED)
        self.assertTrue(quotation.has_order)
        self.assertTrue(AuditLog.objects.filter(action='quotation_convert', object_reference=str(quotation.id)).exists())

    def test_convert_returns_order(self):
        quotation = self._approved()
        order = services.convert(quotation, delivery_address='1 Le Loi, District 1')
        self.assertEqual(order.delivery_address, '1 Le Loi, District 1')

    def test_pending_quotation_cannot_be_converted(self):
        quotation = TestDataFactory.create_quotation(status=S.PENDING)
        with self.assertRaises(PreconditionError) as ctx:
            services.convert_quotation(quotation.id)
        self.assertEqual(ctx.exception.message, 'only approved quotations can be converted')
        self.assertFalse(Order.objects.exists())
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.PENDING)

    def test_second_conversion_is_rejected(self):
        quotation = self._approved()
        order = services.convert(quotation)
        with self.assertRaises(AlreadyConvertedError) as ctx:
            services.convert(quotation)
        self.assertEqual(ctx.exception.order_id, order.id)
        self.assertIsInstance(ctx.exception, ConflictError)
        self.assertIsInstance(ctx.exception, PreconditionError)
        self.assertEqual(Order.objects.filter(quotation=quotation).count(), 1)

    def test_converted_without_order_is_rejected(self):
        quotation = TestDataFactory.create_quotation(status=S.CONVERTED)
        with self.assertRaises(AlreadyConvertedError):
            services.convert(quotation)

    def test_existing_order_for_approved_quotation_is_adopted(self):
        quotation = self._approved()
        order = TestDataFactory.create_order(quotation)
        with self.assertRaises(AlreadyConvertedError) as ctx:
            services.convert(quotation)
        self.assertEqual(ctx.exception.order_id, order.id)
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.CONVERTED)
        self.assertEqual(Order.objects.count(), 1)

    def test_quotation_with_leftover_order_cannot_be_edited(self):
        quotation = self._approved()
        TestDataFactory.create_order(quotation)
        with self.assertRaises(ConflictError):
            services.change_status(quotation.id, 'REJECTED')
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.APPROVED)
        with self.assertRaises(AlreadyConvertedError):
            services.convert(quotation)
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.CONVERTED)

    def test_concurrent_insert_becomes_conflict(self):
        quotation = self._approved()
        TestDataFactory.create_order(quotation)
        no_existing = mock.Mock(first=mock.Mock(return_value=None))
        with mock.patch.object(Order.objects, 'filter', return_value=no_existing):
            with self.assertRaises(ConflictError):
                services.convert(quotation)
        self.assertEqual(Order.objects.count(), 1)

    def test_out_of_stock_vehicle_converts_with_warning(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=0)
        result = services.convert_quotation(self._approved())
        self.assertEqual(len(result.warnings), 1)
        self.assertIn('out of stock', result.warnings[0])

    def test_expired_promotion_is_kept_by_default(self):
        quotation = self._approved(promotion_code='GONE')
        result = services.convert_quotation(quotation)
        self.assertEqual(result.order.promotion_code, 'GONE')
        self.assertIn("Promotion 'GONE'", result.warnings[0])

    @override_settings(EVPORTAL_REVALIDATE_PROMOTION_ON_CONVERT=True)
    def test_expired_promotion_blocks_conversion_when_revalidating(self):
        quotation = self._approved(promotion_code='GONE')
        with self.assertRaises(ValidationError):
            services.convert(quotation)
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.APPROVED)
        self.assertFalse(Order.objects.exists())

    @override_settings(EVPORTAL_REVALIDATE_PROMOTION_ON_CONVERT=True)
    def test_active_promotion_passes_revalidation(self):
        TestDataFactory.create_promotion(code='LIVE')
        result = services.convert_quotation(self._approved(promotion_code='LIVE'))
        self.assertEqual(result.warnings, [])


class DeletionTests(TestCase):
    def test_delete_quotation_without_order(self):
        quotation = TestDataFactory.create_quotation(status=S.REJECTED)
        services.delete_quotation(quotation.id)
        self.assertFalse(Quotation.objects.exists())

    def test_delete_converted_quotation_conflicts(self):
        quotation = TestDataFactory.create_quotation(status=S.APPROVED)
        services.convert(quotation)
        with self.assertRaises(ConflictError) as ctx:
            services.delete_quotation(quotation.id)
        self.assertEqual(ctx.exception.message, QUOTATION_IN_USE_MESSAGE)
        self.assertTrue(Quotation.objects.filter(pk=quotation.pk).exists())

    def test_delete_order_then_quotation(self):
        quotation = TestDataFactory.create_quotation(status=S.APPROVED)
        order = services.convert(quotation)
        services.delete_order(order.id)
        quotation.refresh_from_db()
        self.assertEqual(quotation.status, S.CONVERTED)
        services.delete_quotation(quotation.id)
        self.assertFalse(Quotation.objects.exists())

    def test_update_order_status(self):
        order = services.convert(TestDataFactory.create_quotation(status=S.APPROVED))
        order = services.update_order(order.id, {'status': 'confirmed', 'delivery_address': 'Hanoi'})
        self.assertEqual(order.status, Order.Status.CONFIRMED)
        self.assertEqual(order.delivery_address, 'Hanoi')
        with self.assertRaises(InvalidTransitionError):
            services.update_order(order.id, {'status': 'PENDING'})


class SalesAPITests(TestCase):
    """Test quotation and order endpoints"""

    def setUp(self):
        self.staff = TestDataFactory.create_user()
        self.customer = TestDataFactory.create_customer()
        self.vehicle = TestDataFactory.create_vehicle()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)

    def _quotation_payload(self, **overrides):
        payload = {
            'quotationId': 0,
            'userId': self.customer.id,
            'vehicleId': self.vehicle.id,
            'color': 'Red',
            'basePrice': 800000000,
            'discount': 0,
            'finalPrice': 1,
            'promotionCode': '',
            'status': 'APPROVED',
        }
        payload.update(overrides)
        return payload

    def test_create_quotation(self):
        response = self.client.post('/api/SaleManagement/CreateQuotation', self._quotation_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['status'], 'PENDING')
        self.assertEqual(Decimal(str(data['finalPrice'])), Decimal('800000000'))
        self.assertFalse(data['hasOrder'])

    def test_create_then_get_round_trip(self):
        payload = self._quotation_payload(basePrice=1000, discount=100)
        response = self.client.post('/api/SaleManagement/CreateQuotation', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        created = response.data['data']
        self.assertEqual(Decimal(str(created['finalPrice'])), Decimal('900'))

        response = self.client.get(f"/api/Quotation/{created['quotationId']}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        fetched = response.data['data']
        self.assertEqual(Decimal(str(fetched['basePrice'])), Decimal('1000'))
        self.assertEqual(Decimal(str(fetched['discount'])), Decimal('100'))
        self.assertEqual(Decimal(str(fetched['finalPrice'])), Decimal('900'))
        self.assertEqual(fetched['promotionCode'], '')
        self.assertEqual(fetched['status'], 'PENDING')

    def test_create_quotation_invalid_promotion(self):
        response = self.client.post('/api/Quotation', self._quotation_payload(promotionCode='NOPE'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], INVALID_PROMOTION_MESSAGE)

    def test_create_quotation_discount_above_base(self):
        response = self.client.post('/api/Quotation', self._quotation_payload(discount=900000000), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('discount', response.data['errors'])

    def test_list_filters_by_status(self):
        TestDataFactory.create_quotation(customer=self.customer, status=S.PENDING)
        approved = TestDataFactory.create_quotation(customer=self.customer, status=S.APPROVED)
        response = self.client.get('/api/Quotation', {'status': 'approved'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([q['quotationId'] for q in response.data['data']], [approved.id])

    def test_patch_status_transition(self):
        quotation = TestDataFactory.create_quotation(status=S.PENDING)
        response = self.client.patch(f'/api/Quotation/{quotation.id}', {'status': 'APPROVED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'APPROVED')

    def test_put_converted_status_is_rejected(self):
        quotation = TestDataFactory.create_quotation(customer=self.customer, vehicle=self.vehicle, status=S.APPROVED)
        payload = self._quotation_payload(status='CONVERTED')
        response = self.client.put(f'/api/Quotation/{quotation.id}', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['code'], 'invalid_transition')

    def test_unknown_status_is_validation_error(self):
        quotation = TestDataFactory.create_quotation(status=S.PENDING)
        response = self.client.patch(f'/api/Quotation/{quotation.id}', {'status': 'SHIPPED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stale_version_is_conflict(self):
        quotation = TestDataFactory.create_quotation(status=S.PENDING)
        self.client.patch(f'/api/Quotation/{quotation.id}', {'discount': '10.00'}, format='json')
        response = self.client.patch(f'/api/Quotation/{quotation.id}', {'status': 'SENT', 'version': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_create_order_flow(self):
        quotation = TestDataFactory.create_quotation(customer=self.customer, vehicle=self.vehicle, status=S.APPROVED)
        response = self.client.post(
            '/api/SaleManagement/CreateOrder',
            {'quotationId': quotation.id, 'deliveryAddress': '5 Nguyen Hue'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['quotationId'], quotation.id)
        self.assertEqual(response.data['data']['deliveryAddress'], '5 Nguyen Hue')
        self.assertEqual(response.data['warnings'], [])

        response = self.client.post('/api/SaleManagement/CreateOrder', {'quotationId': quotation.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'already_converted')
        self.assertIn('orderId', response.data)

    def test_create_order_from_pending_quotation(self):
        quotation = TestDataFactory.create_quotation(status=S.PENDING)
        response = self.client.post('/api/SaleManagement/CreateOrder', {'quotationId': quotation.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data['code'], 'precondition_failed')
        self.assertFalse(Order.objects.exists())

    def test_create_order_for_missing_quotation(self):
        response = self.client.post('/api/SaleManagement/CreateOrder', {'quotationId': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_converted_quotation(self):
        quotation = TestDataFactory.create_quotation(status=S.APPROVED)
        services.convert(quotation)
        response = self.client.delete(f'/api/Quotation/{quotation.id}')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], QUOTATION_IN_USE_MESSAGE)

    def test_order_endpoints(self):
        order = services.convert(TestDataFactory.create_quotation(customer=self.customer, status=S.APPROVED))
        response = self.client.get('/api/Order')
        self.assertEqual(len(response.data['data']), 1)

        response = self.client.put(f'/api/Order/{order.id}', {'status': 'CONFIRMED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'CONFIRMED')

        response = self.client.delete(f'/api/Order/{order.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Order.objects.exists())

    def test_customer_sees_only_own_quotations(self):
        own = TestDataFactory.create_quotation(customer=self.customer)
        other = TestDataFactory.create_quotation()
        self.client.authenticate_user(self.customer)

        response = self.client.get('/api/Quotation')
        self.assertEqual([q['quotationId'] for q in response.data['data']], [own.id])

        response = self.client.get(f'/api/Quotation/{other.id}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_customer_cannot_write(self):
        quotation = TestDataFactory.create_quotation(customer=self.customer, status=S.APPROVED)
        self.client.authenticate_user(self.customer)
        response = self.client.post('/api/Quotation', self._quotation_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.post('/api/SaleManagement/CreateOrder', {'quotationId': quotation.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
