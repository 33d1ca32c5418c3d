"""
Error taxonomy shared by the backend services and the API client.

The classes carry no framework imports so the client can use them without a
configured Django project. ``portal_exception_handler`` is the DRF
``EXCEPTION_HANDLER`` that renders them (and DRF's own exceptions) into the
portal's ``{success, message, code}`` envelope.
"""
import logging

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for every failure surfaced to a portal caller"""
    status_code = 500
    code = 'error'
    retryable = False
    default_message = 'Unexpected error'

    def __init__(self, message=None, errors=None, status_code=None):
        self.message = message or self.default_message
        self.errors = errors or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self):
        payload = {'success': False, 'message': self.message, 'code': self.code}
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(PortalError):
    """Bad input detected before any state change"""
    status_code = 400
    code = 'validation_error'
    default_message = 'Invalid data'


class NotFoundError(PortalError):
    status_code = 404
    code = 'not_found'
    default_message = 'Resource not found'


class PreconditionError(PortalError):
    """State machine violation; nothing was changed"""
    status_code = 422
    code = 'precondition_failed'
    default_message = 'Operation not allowed in the current state'


class InvalidTransitionError(PreconditionError):
    code = 'invalid_transition'
    default_message = 'Status transition not allowed'


class ConflictError(PortalError):
    """Write rejected because of a referential constraint or a concurrent change"""
    status_code = 409
    code = 'conflict'
    default_message = 'The resource was changed or is referenced elsewhere'


class AlreadyConvertedError(ConflictError, PreconditionError):
    """Quotation already produced its order"""
    status_code = 409
    code = 'already_converted'
    default_message = 'This quotation has already been converted to an order'

    def __init__(self, message=None, order_id=None, **kwargs):
        self.order_id = order_id
        super().__init__(message, **kwargs)

    def to_dict(self):
        payload = super().to_dict()
        if self.order_id is not None:
            payload['orderId'] = self.order_id
        return payload


class AuthError(PortalError):
    """Session invalid (401) or privilege missing (403); never retried"""
    status_code = 401
    code = 'auth_error'
    default_message = 'Your session has expired. Please log in again.'


class TransientError(PortalError):
    """Server-side or network failure"""
    status_code = 503
    code = 'transient_error'
    retryable = True
    default_message = 'The server is temporarily unavailable. Please try again.'


QUOTATION_IN_USE_MESSAGE = (
    'Cannot delete this quotation because it was used to create an order. '
    'Delete the related order first.'
)

ERRORS_BY_CODE = {
    cls.code: cls for cls in (
        PortalError, ValidationError, NotFoundError, PreconditionError,
        InvalidTransitionError, ConflictError, AlreadyConvertedError,
        AuthError, TransientError,
    )
}


def portal_exception_handler(exc, context):
    """Render portal and DRF exceptions as the portal response envelope"""
    from django.db.models import ProtectedError
    from django.http import Http404
    from rest_framework import exceptions as drf_exceptions, status
    from rest_framework.response import Response
    from rest_framework.views import exception_handler

    if isinstance(exc, PortalError):
        if exc.status_code >= 500:
            logger.error(f"Portal error in {context.get('view').__class__.__name__}: {exc.message}")
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, ProtectedError):
        error = ConflictError('The record is referenced by other records and cannot be deleted.')
        return Response(error.to_dict(), status=error.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        payload = ValidationError(errors=response.data).to_dict()
    elif isinstance(exc, Http404) or response.status_code == status.HTTP_404_NOT_FOUND:
        payload = NotFoundError().to_dict()
    elif isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        payload = AuthError(message=_detail_message(response.data, AuthError.default_message)).to_dict()
    elif isinstance(exc, drf_exceptions.PermissionDenied):
        payload = AuthError(message=_detail_message(response.data, 'You do not have permission to perform this action.')).to_dict()
    else:
        payload = {
            'success': False,
            'message': _detail_message(response.data, PortalError.default_message),
            'code': 'error',
        }
    response.data = payload
    return response


def _detail_message(data, fallback):
    if isinstance(data, dict) and data.get('detail'):
        return str(data['detail'])
    return fallback
