"""
Domain error taxonomy and the DRF exception handler that renders it.

Service code raises these; views let them propagate and
``api_exception_handler`` turns them into JSON responses.
"""
import logging

from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ClinicError(Exception):
    """Base class for booking domain errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = 'Internal error'

    def __init__(self, message=None):
        self.message = message or self.error
        super().__init__(self.message)


class ValidationError(ClinicError):
    """Malformed input. Carries per-field messages."""
    status_code = status.HTTP_400_BAD_REQUEST
    error = 'Invalid input'

    def __init__(self, message=None, field_errors=None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class BookingTransitionError(ValidationError):
    """Illegal booking status transition (e.g. cancelled -> confirmed)."""
    status_code = status.HTTP_409_CONFLICT
    error = 'Invalid status transition'

    def __init__(self, from_status, to_status):
        super().__init__(
            f'Cannot transition booking from {from_status} to {to_status}',
            field_errors={'status': [f'{from_status} -> {to_status} not allowed']},
        )
        self.from_status = from_status
        self.to_status = to_status


class NotFoundError(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    error = 'Not found'

    def __init__(self, resource, resource_id=None):
        message = f'{resource} not found' if resource_id is None else f'{resource} {resource_id} not found'
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class IntegrationError(ClinicError):
    """An external scheduling or notification system failed."""
    status_code = status.HTTP_502_BAD_GATEWAY
    error = 'Integration failure'

    def __init__(self, adapter, message=None):
        super().__init__(f'{adapter}: {message}' if message else adapter)
        self.adapter = adapter


class AuditWriteError(ClinicError):
    """The audit trail could not be persisted. Never surfaced to callers."""
    error = 'Audit write failed'


class AuthError(drf_exceptions.AuthenticationFailed):
    """Missing, invalid or expired credentials."""
    default_detail = 'Invalid email or password'


class AuthorizationError(drf_exceptions.PermissionDenied):
    """Role check failed. Response lists required and current roles."""
    default_detail = 'Insufficient permissions'

    def __init__(self, required=(), current=()):
        super().__init__(self.default_detail)
        self.required = sorted(required)
        self.current = sorted(current)


def api_exception_handler(exc, context):
    """
    DRF exception handler.

    Response shapes:
        ValidationError  -> 400 {"error": "Invalid input", "details": {...}}
        BookingTransitionError -> 409
        NotFoundError    -> 404 {"error": "Not found", "message": "..."}
        AuthorizationError -> 403 {"error": "Forbidden", "required": [...], "current": [...]}
    """
    if isinstance(exc, ValidationError):
        return Response(
            {'error': exc.error, 'message': exc.message, 'details': exc.field_errors},
            status=exc.status_code,
        )

    if isinstance(exc, ClinicError):
        if exc.status_code >= 500:
            logger.error(
                'Unhandled domain error',
                extra={'event': 'domain_error', 'error_type': exc.__class__.__name__},
            )
        return Response({'error': exc.error, 'message': exc.message}, status=exc.status_code)

    if isinstance(exc, AuthorizationError):
        return Response(
            {
                'error': 'Forbidden',
                'message': str(exc.detail),
                'required': exc.required,
                'current': exc.current,
            },
            status=status.HTTP_403_FORBIDDEN,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {'error': 'Invalid input', 'details': response.data}
    elif isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        response.data = {'error': 'Unauthorized', 'message': _detail_text(response.data)}
    elif isinstance(exc, drf_exceptions.PermissionDenied):
        response.data = {'error': 'Forbidden', 'message': _detail_text(response.data)}
    elif isinstance(exc, (drf_exceptions.NotFound, Http404)):
        response.data = {'error': 'Not found', 'message': _detail_text(response.data)}
    elif isinstance(exc, drf_exceptions.Throttled):
        response.data = {'error': 'Too many requests', 'message': _detail_text(response.data)}
    elif isinstance(response.data, dict) and 'error' not in response.data:
        response.data = {'error': _detail_text(response.data)}

    return response


def _detail_text(data):
    if isinstance(data, dict) and 'detail' in data:
        return str(data['detail'])
    return str(data)
