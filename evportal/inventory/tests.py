"""
Test suite for the inventory ledger
Tests: availability precedence, quantity writes, dispatch and the API
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from evportal.catalog.models import Vehicle
from evportal.core.exceptions import ConflictError, NotFoundError, ValidationError
from evportal.core.models import AuditLog
from evportal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from evportal.inventory import ledger
from evportal.inventory.models import InventoryRecord, InventoryDispatch


class AvailabilityTests(TestCase):
    def test_record_quantity_decides(self):
        vehicle = TestDataFactory.create_vehicle(status=Vehicle.STATUS_OUT_OF_STOCK)
        TestDataFactory.create_inventory(vehicle, quantity=3)
        stock = ledger.availability(vehicle.id)
        self.assertEqual(stock['quantity'], 3)
        self.assertTrue(stock['available'])
        self.assertEqual(stock['source'], ledger.SOURCE_INVENTORY)

    def test_zero_quantity_overrides_available_vehicle_status(self):
        vehicle = TestDataFactory.create_vehicle(status=Vehicle.STATUS_AVAILABLE)
        TestDataFactory.create_inventory(vehicle, quantity=0)
        stock = ledger.availability(vehicle.id)
        self.assertFalse(stock['available'])
        self.assertEqual(stock['status'], 'out_of_stock')

    def test_vehicle_status_fallback_without_record(self):
        vehicle = TestDataFactory.create_vehicle(status=Vehicle.STATUS_AVAILABLE)
        stock = ledger.availability(vehicle.id)
        self.assertTrue(stock['available'])
        self.assertEqual(stock['quantity'], 0)
        self.assertEqual(stock['source'], ledger.SOURCE_VEHICLE_STATUS)

        discontinued = TestDataFactory.create_vehicle(status=Vehicle.STATUS_DISCONTINUED)
        self.assertFalse(ledger.availability(discontinued.id)['available'])

    def test_unknown_vehicle_defaults_to_unavailable(self):
        stock = ledger.availability(424242)
        self.assertEqual(stock, {'quantity': 0, 'available': False, 'status': 'out_of_stock', 'source': ledger.SOURCE_DEFAULT})

    def test_stored_status_follows_quantity(self):
        vehicle = TestDataFactory.create_vehicle()
        record = TestDataFactory.create_inventory(vehicle, quantity=0)
        self.assertEqual(record.status, 'out_of_stock')
        ledger.set_quantity(vehicle.id, 2)
        record.refresh_from_db()
        self.assertEqual(record.status, 'available')


class LedgerWriteTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_evm_staff()
        self.vehicle = TestDataFactory.create_vehicle()

    def test_create_record(self):
        record = ledger.create_record(self.vehicle.id, 4)
        self.assertEqual(record.quantity, 4)

    def test_create_record_twice_conflicts(self):
        ledger.create_record(self.vehicle.id)
        with self.assertRaises(ConflictError):
            ledger.create_record(self.vehicle.id, 1)

    def test_create_record_for_unknown_vehicle(self):
        with self.assertRaises(NotFoundError):
            ledger.create_record(999999, 1)

    def test_set_quantity_rejects_negative(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=1)
        with self.assertRaises(ValidationError):
            ledger.set_quantity(self.vehicle.id, -1)

    def test_set_quantity_without_record(self):
        with self.assertRaises(NotFoundError):
            ledger.set_quantity(self.vehicle.id, 3)

    def test_parse_quantity(self):
        self.assertEqual(ledger.parse_quantity('5'), 5)
        for bad in ('abc', None, 1.5, True):
            with self.assertRaises(ValidationError):
                ledger.parse_quantity(bad)
        with self.assertRaises(ValidationError):
            ledger.parse_quantity(0, allow_zero=False)

    def test_dispatch_decrements_and_records(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=5)
        record, entry = ledger.dispatch(self.vehicle.id, 2, dealer_id=7, color='Blue', user=self.user)
        self.assertEqual(record.quantity, 3)
        self.assertEqual(entry.dealer_id, 7)
        self.assertEqual(entry.dispatched_by, self.user)
        self.assertEqual(InventoryDispatch.objects.count(), 1)

    def test_dispatch_more_than_available(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=1)
        with self.assertRaises(ConflictError):
            ledger.dispatch(self.vehicle.id, 2, dealer_id=7, color='Blue')
        self.assertEqual(InventoryRecord.objects.get(vehicle=self.vehicle).quantity, 1)
        self.assertFalse(InventoryDispatch.objects.exists())

    def test_dispatch_validation(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=5)
        with self.assertRaises(ValidationError):
            ledger.dispatch(self.vehicle.id, 0, dealer_id=7, color='Blue')
        with self.assertRaises(ValidationError):
            ledger.dispatch(self.vehicle.id, 1, dealer_id=None, color='Blue')
        with self.assertRaises(ValidationError):
            ledger.dispatch(self.vehicle.id, 1, dealer_id=7, color='  ')

    def test_dispatch_rejects_malformed_vehicle_id(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=5)
        for bad in ('abc', None, 0, -3, True):
            with self.assertRaises(ValidationError):
                ledger.dispatch(bad, 1, dealer_id=7, color='Blue')
        record, _ = ledger.dispatch(str(self.vehicle.id), 1, dealer_id='7', color='Blue')
        self.assertEqual(record.quantity, 4)

    def test_dispatch_without_record(self):
        with self.assertRaises(NotFoundError):
            ledger.dispatch(self.vehicle.id, 1, dealer_id=7, color='Blue')


class InventoryAPITests(TestCase):
    """Test Inventory API endpoints"""

    def setUp(self):
        self.evm = TestDataFactory.create_evm_staff()
        self.dealer = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.evm)
        self.vehicle = TestDataFactory.create_vehicle()

    def test_list_available_only(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=2)
        TestDataFactory.create_inventory(TestDataFactory.create_vehicle(), quantity=0)
        response = self.client.get('/api/Inventory', {'available': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['vehicleId'] for r in response.data['data']], [self.vehicle.id])

    def test_detail_without_record_uses_fallback(self):
        response = self.client.get(f'/api/Inventory/{self.vehicle.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['source'], ledger.SOURCE_VEHICLE_STATUS)

    def test_update_with_bare_number_body(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=1)
        response = self.client.put(f'/api/Inventory/{self.vehicle.id}/update', 7, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['quantity'], 7)
        self.assertTrue(AuditLog.objects.filter(action='inventory_update').exists())

    def test_create_record(self):
        response = self.client.post(f'/api/Inventory/{self.vehicle.id}/create', {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(f'/api/Inventory/{self.vehicle.id}/create', {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_dispatch(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=4)
        payload = {'vehicleId': self.vehicle.id, 'quantity': 3, 'dealerId': 12, 'color': 'Red'}
        response = self.client.post('/api/Inventory/dispatch', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['inventory']['quantity'], 1)

        response = self.client.post('/api/Inventory/dispatch', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'conflict')

        response = self.client.get('/api/Inventory/dispatch', {'dealerId': 12})
        self.assertEqual(len(response.data['data']), 1)

    def test_dispatch_with_malformed_body(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=4)
        payload = {'vehicleId': 'abc', 'quantity': 1, 'dealerId': 1, 'color': 'Red'}
        response = self.client.post('/api/Inventory/dispatch', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')

        response = self.client.post('/api/Inventory/dispatch', [payload], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(InventoryRecord.objects.get(vehicle=self.vehicle).quantity, 4)
        self.assertFalse(InventoryDispatch.objects.exists())

    def test_dispatch_report_date_range(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=10)
        _, old = ledger.dispatch(self.vehicle.id, 1, dealer_id=3, color='Red')
        _, recent = ledger.dispatch(self.vehicle.id, 2, dealer_id=3, color='Red')
        today = timezone.localdate()
        InventoryDispatch.objects.filter(pk=old.pk).update(created_at=timezone.now() - timedelta(days=10))

        response = self.client.get('/api/Inventory/dispatch', {'fromDate': (today - timedelta(days=1)).isoformat(), 'toDate': today.isoformat()})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['dispatchId'] for d in response.data['data']], [recent.id])

        response = self.client.get('/api/Inventory/dispatch', {'toDate': (today - timedelta(days=5)).isoformat()})
        self.assertEqual([d['dispatchId'] for d in response.data['data']], [old.id])

        response = self.client.get('/api/Inventory/dispatch', {'fromDate': today.isoformat(), 'toDate': (today - timedelta(days=1)).isoformat()})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get('/api/Inventory/dispatch', {'fromDate': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('fromDate', response.data['errors'])

    def test_dealer_staff_cannot_write(self):
        TestDataFactory.create_inventory(self.vehicle, quantity=1)
        self.client.authenticate_user(self.dealer)
        response = self.client.put(f'/api/Inventory/{self.vehicle.id}/update', {'quantity': 9}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get(f'/api/Inventory/{self.vehicle.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
