"""
Tests for the portal API client
Real views are exercised through DRF's RequestsClient; transport failures use
a mocked ``requests`` session
"""
from datetime import date
from decimal import Decimal
from unittest import mock

import requests
from django.core.cache import cache
from django.test import TestCase, SimpleTestCase

from evportal.client import PortalClient, PortalSession, PromotionRecord
from evportal.client.api import get_retry_session, unwrap, unwrap_list
from evportal.core.exceptions import (
    AlreadyConvertedError, AuthError, ConflictError, PortalError, PreconditionError, TransientError,
    ValidationError, QUOTATION_IN_USE_MESSAGE,
)
from evportal.core.test_utils import TestDataFactory, access_token_for, portal_requests_client
from evportal.sales.lifecycle import QuotationStatus
from evportal.sales.models import Quotation, Order


def fake_response(status_code, body=b'', reason=''):
    response = requests.Response()
    response.status_code = status_code
    response._content = body
    response.reason = reason
    return response


class ResponseShapeTests(SimpleTestCase):
    def test_unwrap_list_accepts_envelope_and_bare_array(self):
        self.assertEqual(unwrap_list({'success': True, 'data': [1, 2]}), [1, 2])
        self.assertEqual(unwrap_list([1, 2]), [1, 2])
        self.assertEqual(unwrap_list({'data': None}), [])

    def test_unwrap_list_rejects_objects(self):
        with self.assertRaises(PortalError):
            unwrap_list({'data': {'id': 1}})

    def test_unwrap_passes_plain_bodies_through(self):
        self.assertEqual(unwrap({'access': 'x'}), {'access': 'x'})

    def test_promotion_record_from_wire(self):
        record = PromotionRecord.from_wire({
            'promotionId': 3, 'promotionCode': 'SUMMER10', 'optionName': 'Gift',
            'optionValue': 10, 'startDate': '2025-01-01', 'endDate': '2025-01-31',
        })
        self.assertEqual(record.promotion_code, 'SUMMER10')
        self.assertEqual(record.end_date.isoformat(), '2025-01-31')

    def test_retry_session_only_retries_get(self):
        adapter = get_retry_session().get_adapter('http://portal.local')
        self.assertEqual(adapter.max_retries.allowed_methods, frozenset({'GET'}))


class TransportTests(SimpleTestCase):
    def setUp(self):
        self.logged_out = []
        self.session = PortalSession(
            base_url='http://portal.local', token='abc', timeout=2, on_logout=lambda: self.logged_out.append(True),
        )
        self.http = mock.Mock()
        self.client = PortalClient(self.session, http=self.http)

    def test_requests_carry_token_and_timeout(self):
        self.http.request.return_value = fake_response(200, b'{"success": true, "data": []}')
        self.assertEqual(self.client.list_quotations(status='APPROVED'), [])
        args, kwargs = self.http.request.call_args
        self.assertEqual(args, ('GET', 'http://portal.local/api/Quotation'))
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer abc')
        self.assertEqual(kwargs['timeout'], 2)
        self.assertEqual(kwargs['params'], {'status': 'APPROVED'})

    def test_unauthorized_clears_session(self):
        self.http.request.return_value = fake_response(401, b'{"success": false, "message": "expired", "code": "auth_error"}')
        with self.assertRaises(AuthError):
            self.client.get_quotation(1)
        self.assertIsNone(self.session.token)
        self.assertEqual(self.logged_out, [True])

    def test_forbidden_keeps_session(self):
        self.http.request.return_value = fake_response(403, b'{"success": false, "message": "no", "code": "auth_error"}')
        with self.assertRaises(AuthError) as ctx:
            self.client.list_promotions()
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(self.session.token, 'abc')

    def test_timeout_is_transient(self):
        self.http.request.side_effect = requests.exceptions.Timeout()
        with self.assertRaises(TransientError) as ctx:
            self.client.list_orders()
        self.assertTrue(ctx.exception.retryable)

    def test_server_error_is_transient(self):
        self.http.request.return_value = fake_response(503, b'', reason='Service Unavailable')
        with self.assertRaises(TransientError):
            self.client.list_orders()

    def test_legacy_reference_constraint_is_conflict(self):
        self.http.request.return_value = fake_response(
            500, b'The DELETE statement conflicted with the REFERENCE constraint "FK_Order_Quotation".',
            reason='Internal Server Error',
        )
        with self.assertRaises(ConflictError) as ctx:
            self.client.delete_quotation(5)
        self.assertEqual(ctx.exception.message, QUOTATION_IN_USE_MESSAGE)

    def test_unknown_code_falls_back_to_status(self):
        self.http.request.return_value = fake_response(409, b'{"message": "busy"}')
        with self.assertRaises(ConflictError):
            self.client.update_quotation(1, {})

    def test_convert_checks_status_before_sending(self):
        with self.assertRaises(PreconditionError):
            self.client.convert({'quotationId': 4, 'status': 'PENDING'})
        with self.assertRaises(AlreadyConvertedError):
            self.client.convert({'quotationId': 4, 'status': 'CONVERTED'})
        self.http.request.assert_not_called()

    def test_dispatch_report_sends_date_range(self):
        self.http.request.return_value = fake_response(200, b'[]')
        self.assertEqual(self.client.dispatch_report(date(2025, 1, 1), '2025-01-31', dealer_id=4), [])
        args, kwargs = self.http.request.call_args
        self.assertEqual(args, ('GET', 'http://portal.local/api/Inventory/dispatch'))
        self.assertEqual(kwargs['params'], {'fromDate': '2025-01-01', 'toDate': '2025-01-31', 'dealerId': 4})

    def test_availability_degrades_to_unavailable(self):
        self.http.request.return_value = fake_response(404, b'{"message": "nope", "code": "not_found"}')
        stock = self.client.availability(9)
        self.assertFalse(stock['available'])
        self.assertEqual(stock['quantity'], 0)


class PortalClientIntegrationTests(TestCase):
    """Client against the real views"""

    def setUp(self):
        self.staff = TestDataFactory.create_user(username='dealer', password='secret123')
        cache.clear()
        self.customer = TestDataFactory.create_customer()
        self.vehicle = TestDataFactory.create_vehicle()
        self.session = PortalSession(base_url='http://testserver', token=access_token_for(self.staff))
        self.client = PortalClient(self.session, http=portal_requests_client())

    def _payload(self, **overrides):
        payload = {
            'quotationId': 0,
            'userId': self.customer.id,
            'vehicleId': self.vehicle.id,
            'color': 'White',
            'basePrice': 800000000,
            'discount': 0,
            'promotionCode': '',
        }
        payload.update(overrides)
        return payload

    def test_login(self):
        session = PortalSession(base_url='http://testserver')
        client = PortalClient(session, http=portal_requests_client())
        user = client.login('dealer', 'secret123')
        self.assertEqual(user['username'], 'dealer')
        self.assertTrue(session.is_authenticated)
        self.assertEqual(client.list_quotations(), [])

    def test_invalid_token_logs_out(self):
        calls = []
        session = PortalSession(base_url='http://testserver', token='not-a-jwt', on_logout=lambda: calls.append(1))
        client = PortalClient(session, http=portal_requests_client())
        with self.assertRaises(AuthError):
            client.list_quotations()
        self.assertFalse(session.is_authenticated)
        self.assertEqual(calls, [1])

    def test_quotation_to_order(self):
        quotation = self.client.create_quotation(self._payload())
        self.assertEqual(quotation['status'], 'PENDING')

        quotation = self.client.change_status(quotation['quotationId'], 'APPROVED', version=quotation['version'])
        self.assertEqual(quotation['status'], 'APPROVED')

        order = self.client.convert(quotation, delivery_address='District 7')
        self.assertEqual(Decimal(str(order['quotationPrice'])), Decimal('800000000'))
        self.assertEqual(order['deliveryAddress'], 'District 7')
        self.assertEqual(self.client.get_quotation(quotation['quotationId'])['status'], 'CONVERTED')

        with self.assertRaises(AlreadyConvertedError) as ctx:
            self.client.convert(quotation['quotationId'])
        self.assertEqual(ctx.exception.order_id, order['orderId'])
        self.assertEqual(Order.objects.count(), 1)

    def test_convert_pending_by_id_is_rejected_by_server(self):
        quotation = TestDataFactory.create_quotation(status=QuotationStatus.PENDING)
        with self.assertRaises(PreconditionError):
            self.client.convert(quotation.id)

    def test_delete_converted_quotation_is_conflict(self):
        quotation = TestDataFactory.create_quotation(status=QuotationStatus.APPROVED)
        order, warnings = self.client.create_order(quotation.id)
        self.assertEqual(warnings, [])
        with self.assertRaises(ConflictError) as ctx:
            self.client.delete_quotation(quotation.id)
        self.assertEqual(ctx.exception.message, QUOTATION_IN_USE_MESSAGE)

        self.client.delete_order(order['orderId'])
        self.client.delete_quotation(quotation.id)
        self.assertFalse(Quotation.objects.exists())

    def test_invalid_promotion_fails_before_create(self):
        with self.assertRaises(ValidationError):
            self.client.create_quotation(self._payload(promotionCode='NOPE'))
        self.assertFalse(Quotation.objects.exists())

    def test_check_promotion_uses_active_list(self):
        TestDataFactory.create_promotion(code='EV2025')
        record = self.client.check_promotion('ev2025')
        self.assertEqual(record.promotion_code, 'EV2025')
        self.assertIsNone(self.client.check_promotion(''))
        self.assertEqual(self.client.validate_promotion('EV2025').promotion_code, 'EV2025')

    def test_out_of_stock_conversion_reports_warning(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=0)
        self.assertFalse(self.client.availability(self.vehicle.id)['available'])
        quotation = TestDataFactory.create_quotation(vehicle=self.vehicle, status=QuotationStatus.APPROVED)
        order, warnings = self.client.create_order(quotation.id)
        self.assertEqual(order['quotationId'], quotation.id)
        self.assertEqual(len(warnings), 1)
