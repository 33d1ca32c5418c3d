"""
Tests for auth endpoints, the error envelope and audit logging
"""
from django.test import TestCase
from rest_framework import status
from evportal.core.exceptions import (
    AlreadyConvertedError, ConflictError, PreconditionError, ValidationError, ERRORS_BY_CODE,
)
from evportal.core.models import AuditLog, User
from evportal.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from evportal.core.utils import create_audit_log


class ErrorTaxonomyTests(TestCase):
    def test_already_converted_is_conflict_and_precondition(self):
        error = AlreadyConvertedError(order_id=7)
        self.assertIsInstance(error, ConflictError)
        self.assertIsInstance(error, PreconditionError)
        self.assertEqual(error.status_code, 409)
        self.assertEqual(error.to_dict()['orderId'], 7)

    def test_to_dict_includes_field_errors(self):
        payload = ValidationError('Bad', errors={'discount': ['too big']}).to_dict()
        self.assertEqual(payload, {
            'success': False, 'message': 'Bad', 'code': 'validation_error', 'errors': {'discount': ['too big']},
        })

    def test_errors_are_registered_by_code(self):
        self.assertIs(ERRORS_BY_CODE['already_converted'], AlreadyConvertedError)
        self.assertIs(ERRORS_BY_CODE['conflict'], ConflictError)


class AuthAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user(username='dealer1', password='secret123')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/Auth/login', {'username': 'dealer1', 'password': 'secret123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], User.ROLE_DEALER_STAFF)

    def test_login_with_wrong_password_is_auth_error(self):
        response = self.client.post('/api/Auth/login', {'username': 'dealer1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['code'], 'auth_error')

    def test_unauthenticated_request_uses_envelope(self):
        response = self.client.get('/api/Quotation')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['code'], 'auth_error')

    def test_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/Auth/me')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['username'], 'dealer1')


class AuditLogTests(TestCase):
    def test_create_audit_log_with_user(self):
        user = TestDataFactory.create_user()
        log = create_audit_log(user=user, action='create', model_name='Quotation', object_id=5, changes={'status': 'PENDING'})
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '5')
        self.assertEqual(log.user, user)

    def test_missing_fields_are_skipped(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Quotation'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_list_is_admin_only(self):
        client = AuthenticatedAPIClient()
        client.authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/AuditLog')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        client.authenticate_user(TestDataFactory.create_user(role=User.ROLE_ADMIN, is_staff=True))
        response = client.get('/api/AuditLog')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
