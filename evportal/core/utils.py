"""Audit logging and response envelope helpers"""
import logging

from django.db import transaction
from rest_framework import status
from rest_framework.response import Response

from .exceptions import ValidationError
from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: DRF/Django request (for user and IP) - optional if user is provided
        action: Action type (create, update, status_change, quotation_convert, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object (as string)
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user if request provided)
        object_reference: Related identifier (e.g., source quotation of an order)
    """
    audit_user = user
    if audit_user is None and request is not None and hasattr(request, 'user'):
        audit_user = request.user

    if not action or not model_name or object_id is None:
        logger.warning(f"Audit log creation skipped: missing required fields (action={action}, model_name={model_name}, object_id={object_id})")
        return None

    try:
        # Savepoint so a failed insert does not poison an enclosing transaction
        with transaction.atomic():
            return AuditLog.objects.create(
                user=audit_user if audit_user and audit_user.is_authenticated else None,
                action=action,
                model_name=model_name,
                object_id=str(object_id),
                object_reference=object_reference,
                changes=changes or {},
                ip_address=get_client_ip(request) if request else None,
            )
    except Exception as e:
        # Auditing must not fail the main operation
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def envelope(data=None, message='', status_code=status.HTTP_200_OK, **extra):
    """Build the portal's ``{success, message, data}`` response"""
    payload = {'success': True, 'message': message, 'data': data}
    payload.update(extra)
    return Response(payload, status=status_code)


def request_object(request):
    """The request body as a mapping; a JSON array or scalar body is a ValidationError"""
    data = request.data
    if not hasattr(data, 'get'):
        raise ValidationError('Request body must be a JSON object.')
    return data
