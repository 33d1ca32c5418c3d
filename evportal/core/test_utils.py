"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient, RequestsClient
from rest_framework_simplejwt.tokens import RefreshToken
from evportal.catalog.models import Vehicle
from evportal.inventory.models import InventoryRecord
from evportal.pricing.models import Promotion
from evportal.sales.lifecycle import QuotationStatus
from evportal.sales.models import Quotation, Order
from datetime import timedelta
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role=User.ROLE_DEALER_STAFF,
                    is_staff=False, is_superuser=False):
        """Create a test user (dealer staff unless told otherwise)"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            is_staff=is_staff,
            is_superuser=is_superuser,
        )

    @staticmethod
    def create_customer(username=None):
        return TestDataFactory.create_user(username=username, role=User.ROLE_CUSTOMER)

    @staticmethod
    def create_evm_staff(username=None):
        return TestDataFactory.create_user(username=username, role=User.ROLE_EVM_STAFF)

    @staticmethod
    def create_vehicle(model=None, version='Standard', color='White', price=None, status=Vehicle.STATUS_AVAILABLE):
        """Create a test vehicle"""
        if not model:
            model = f'VF_{TestDataFactory.random_string(4)}'
        return Vehicle.objects.create(
            model=model,
            version=version,
            color=color,
            price=price if price is not None else Decimal('100.00'),
            status=status,
        )

    @staticmethod
    def create_inventory(vehicle, quantity=5):
        """Create an inventory record for ``vehicle``"""
        return InventoryRecord.objects.create(vehicle=vehicle, quantity=quantity)

    @staticmethod
    def create_promotion(code=None, option_name='Spring discount', option_value=None,
                         start_date=None, end_date=None, user=None):
        """Create a promotion active today unless dates are given"""
        today = timezone.localdate()
        if not code:
            code = f'PROMO{TestDataFactory.random_string(5).upper()}'
        return Promotion.objects.create(
            user=user,
            promotion_code=code,
            option_name=option_name,
            option_value=option_value if option_value is not None else Decimal('10.00'),
            start_date=start_date or today - timedelta(days=1),
            end_date=end_date or today + timedelta(days=30),
        )

    @staticmethod
    def create_quotation(customer=None, vehicle=None, base_price=None, discount=None,
                         status=QuotationStatus.PENDING, promotion_code='', color='Red', created_by=None):
        """Create a quotation directly (bypasses the lifecycle rules)"""
        if customer is None:
            customer = TestDataFactory.create_customer()
        if vehicle is None:
            vehicle = TestDataFactory.create_vehicle()
        base_price = base_price if base_price is not None else Decimal('100.00')
        discount = discount if discount is not None else Decimal('0.00')
        return Quotation.objects.create(
            user=customer,
            vehicle=vehicle,
            color=color,
            base_price=base_price,
            discount=discount,
            final_price=base_price - discount,
            promotion_code=promotion_code,
            status=status,
            created_by=created_by,
        )

    @staticmethod
    def create_order(quotation, delivery_address='12 Test Street'):
        """Create an order for ``quotation`` without touching its status"""
        return Order.objects.create(
            quotation=quotation,
            user=quotation.user,
            vehicle=quotation.vehicle,
            color=quotation.color,
            delivery_address=delivery_address,
            promotion_code=quotation.promotion_code,
            promotion_option_name=quotation.promotion_option_name,
            quotation_price=quotation.base_price,
            final_price=quotation.final_price,
            total_amount=quotation.final_price,
        )


def access_token_for(user):
    return str(RefreshToken.for_user(user).access_token)


class AuthenticatedAPIClient(APIClient):
    """API client with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a JWT token"""
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {access_token_for(user)}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()


def portal_requests_client():
    """``requests``-compatible session that dispatches to the Django test server"""
    return RequestsClient()
