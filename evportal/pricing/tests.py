"""
Test suite for promotions: code validation rules, promotion API and the
active-promotions cache
"""
from collections import namedtuple
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from rest_framework import status

from evportal.core.cache_utils import active_promotions_cache_key, get_cached_active_promotions
from evportal.core.exceptions import ValidationError
from evportal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from evportal.pricing import validators
from evportal.pricing.models import Promotion
from evportal.pricing.services import lookup_promotion, require_promotion

Promo = namedtuple('Promo', ['promotion_code', 'start_date', 'end_date'])

SUMMER10 = Promo('SUMMER10', date(2025, 1, 1), date(2025, 1, 31))


class PromotionValidatorTests(SimpleTestCase):
    """Pure validation rules, no database"""

    def test_expired_code_is_rejected(self):
        self.assertIsNone(validators.validate('SUMMER10', [SUMMER10], date(2025, 2, 1)))

    def test_window_bounds_are_inclusive(self):
        self.assertIs(validators.validate('SUMMER10', [SUMMER10], date(2025, 1, 1)), SUMMER10)
        self.assertIs(validators.validate('SUMMER10', [SUMMER10], date(2025, 1, 31)), SUMMER10)
        self.assertIsNone(validators.validate('SUMMER10', [SUMMER10], date(2024, 12, 31)))

    def test_datetime_now_uses_calendar_day(self):
        late_evening = datetime(2025, 1, 31, 23, 59, 59)
        self.assertIs(validators.validate('SUMMER10', [SUMMER10], late_evening), SUMMER10)

    def test_match_is_case_insensitive_and_trimmed(self):
        self.assertIs(validators.validate('  summer10 ', [SUMMER10], date(2025, 1, 15)), SUMMER10)

    def test_empty_code_is_not_an_error(self):
        self.assertIsNone(validators.validate('', [SUMMER10], date(2025, 1, 15)))
        self.assertIsNone(validators.validate(None, [SUMMER10], date(2025, 1, 15)))
        self.assertIsNone(validators.require_valid_promotion('   ', [SUMMER10], date(2025, 1, 15)))

    def test_inactive_entries_in_active_list_are_ignored(self):
        # Callers may pass a stale "active" list; activity is re-checked at now
        self.assertIsNone(validators.validate('SUMMER10', [SUMMER10], date(2025, 3, 1)))

    def test_first_active_match_wins(self):
        first = Promo('DUP', date(2025, 1, 1), date(2025, 1, 31))
        second = Promo('dup', date(2025, 1, 10), date(2025, 2, 10))
        self.assertIs(validators.validate('DUP', [first, second], date(2025, 1, 15)), first)
        self.assertIs(validators.validate('DUP', [first, second], date(2025, 2, 5)), second)

    def test_active_promotions_filters_by_window(self):
        other = Promo('WINTER', date(2025, 2, 1), date(2025, 2, 28))
        self.assertEqual(validators.active_promotions([SUMMER10, other], date(2025, 2, 14)), [other])

    def test_require_valid_promotion_raises_for_unknown_code(self):
        with self.assertRaises(ValidationError) as ctx:
            validators.require_valid_promotion('NOPE', [SUMMER10], date(2025, 1, 15))
        self.assertEqual(ctx.exception.message, validators.INVALID_PROMOTION_MESSAGE)
        self.assertIn('promotionCode', ctx.exception.errors)

    def test_as_date_accepts_iso_strings(self):
        self.assertEqual(validators.as_date('2025-01-31'), date(2025, 1, 31))
        self.assertEqual(validators.as_date('2025-01-31T10:00:00'), date(2025, 1, 31))


class PromotionServiceTests(TestCase):
    def setUp(self):
        self.today = timezone.localdate()

    def test_lookup_active_promotion(self):
        promotion = TestDataFactory.create_promotion(code='SPRING5')
        self.assertEqual(lookup_promotion('spring5'), promotion)

    def test_lookup_expired_promotion(self):
        TestDataFactory.create_promotion(
            code='OLD', start_date=self.today - timedelta(days=30), end_date=self.today - timedelta(days=1),
        )
        self.assertIsNone(lookup_promotion('OLD'))
        with self.assertRaises(ValidationError):
            require_promotion('OLD')

    def test_lookup_future_promotion(self):
        TestDataFactory.create_promotion(
            code='SOON', start_date=self.today + timedelta(days=1), end_date=self.today + timedelta(days=10),
        )
        self.assertIsNone(lookup_promotion('SOON'))

    def test_promotion_ending_today_is_active(self):
        TestDataFactory.create_promotion(code='LASTDAY', start_date=self.today - timedelta(days=5), end_date=self.today)
        self.assertIsNotNone(lookup_promotion('LASTDAY'))


class PromotionAPITests(TestCase):
    """Test Promotion API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.today = timezone.localdate()
        cache.clear()

    def _payload(self, code='NEWYEAR', start=None, end=None):
        return {
            'promotionCode': code,
            'optionName': 'New year gift',
            'optionValue': '5000000.00',
            'startDate': (start or self.today).isoformat(),
            'endDate': (end or self.today + timedelta(days=10)).isoformat(),
        }

    def test_create_promotion(self):
        response = self.client.post('/api/Promotion', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['data']['promotionCode'], 'NEWYEAR')
        self.assertTrue(response.data['data']['isActive'])
        self.assertEqual(Promotion.objects.get().user, self.user)

    def test_create_rejects_inverted_window(self):
        payload = self._payload(start=self.today, end=self.today - timedelta(days=1))
        response = self.client.post('/api/Promotion', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertIn('endDate', response.data['errors'])

    def test_create_rejects_overlapping_window_for_same_code(self):
        TestDataFactory.create_promotion(code='NEWYEAR')
        response = self.client.post('/api/Promotion', self._payload(code='newyear'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('promotionCode', response.data['errors'])

    def test_same_code_in_disjoint_window_is_allowed(self):
        TestDataFactory.create_promotion(
            code='NEWYEAR', start_date=self.today - timedelta(days=60), end_date=self.today - timedelta(days=30),
        )
        response = self.client.post('/api/Promotion', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_update_keeps_own_window(self):
        promotion = TestDataFactory.create_promotion(code='KEEP')
        payload = self._payload(code='KEEP')
        response = self.client.put(f'/api/Promotion/{promotion.id}', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        promotion.refresh_from_db()
        self.assertEqual(promotion.option_value, Decimal('5000000.00'))

    def test_delete_promotion(self):
        promotion = TestDataFactory.create_promotion()
        response = self.client.delete(f'/api/Promotion/{promotion.id}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Promotion.objects.exists())

    def test_unknown_promotion_is_404(self):
        response = self.client.get('/api/Promotion/9999')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

    def test_validate_endpoint(self):
        TestDataFactory.create_promotion(code='VALID1')
        response = self.client.post('/api/Promotion/validate', {'promotionCode': 'valid1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['promotionCode'], 'VALID1')

        response = self.client.post('/api/Promotion/validate', {'promotionCode': 'MISSING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], validators.INVALID_PROMOTION_MESSAGE)

    def test_validate_empty_code(self):
        response = self.client.post('/api/Promotion/validate', {'promotionCode': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['data'])

    def test_validate_rejects_non_object_body(self):
        response = self.client.post('/api/Promotion/validate', ['VALID1'], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')

    def test_customer_cannot_manage_promotions(self):
        self.client.authenticate_user(TestDataFactory.create_customer())
        response = self.client.get('/api/Promotion')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'auth_error')

    def test_active_promotions_are_cached_and_invalidated(self):
        TestDataFactory.create_promotion(code='CACHED')
        response = self.client.get('/api/Promotion/active')
        self.assertEqual([p['promotionCode'] for p in response.data['data']], ['CACHED'])
        cached, _ = get_cached_active_promotions(self.today)
        self.assertIsNotNone(cached)

        with self.captureOnCommitCallbacks(execute=True):
            TestDataFactory.create_promotion(code='FRESH')
        self.assertIsNone(cache.get(active_promotions_cache_key(self.today)))

        response = self.client.get('/api/Promotion/active')
        self.assertEqual(sorted(p['promotionCode'] for p in response.data['data']), ['CACHED', 'FRESH'])
