"""
Request correlation middleware.

Generates/propagates X-Request-ID and injects it into logs. Context is kept
in contextvars so it follows requests into ``async_to_sync`` service calls.
"""
import contextvars
import logging
import time
import uuid

from django.utils.deprecation import MiddlewareMixin

_request_id = contextvars.ContextVar('request_id', default=None)
_trace_id = contextvars.ContextVar('trace_id', default=None)
_user_id = contextvars.ContextVar('user_id', default=None)
_user_roles = contextvars.ContextVar('user_roles', default=())

logger = logging.getLogger(__name__)


def get_request_id():
    return _request_id.get()


def get_trace_id():
    return _trace_id.get()


def get_user_id():
    return _user_id.get()


def get_user_roles():
    return list(_user_roles.get())


def bind_user(user):
    """Record the authenticated user for log correlation (called after DRF auth)."""
    if user is None or not getattr(user, 'is_authenticated', False):
        return
    _user_id.set(str(user.id))
    _user_roles.set(tuple(user.user_roles.values_list('role__name', flat=True)))


class RequestCorrelationMiddleware(MiddlewareMixin):
    """
    Middleware to handle request correlation.

    - Generates/propagates X-Request-ID
    - Stores context in contextvars for logging
    - Adds correlation headers to response
    - Logs request duration
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    TRACE_ID_HEADER = 'HTTP_X_TRACE_ID'

    def process_request(self, request):
        request_id = request.META.get(self.REQUEST_ID_HEADER) or str(uuid.uuid4())
        trace_id = request.META.get(self.TRACE_ID_HEADER)

        request.request_id = request_id
        request.trace_id = trace_id
        request.start_time = time.time()

        _request_id.set(request_id)
        _trace_id.set(trace_id)
        _user_id.set(None)
        _user_roles.set(())

        # Session-authenticated users are known here; JWT users are bound by the views.
        user = getattr(request, 'user', None)
        if user is not None and user.is_authenticated:
            bind_user(user)

    def process_response(self, request, response):
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id

        if getattr(request, 'trace_id', None):
            response['X-Trace-ID'] = request.trace_id

        if hasattr(request, 'start_time'):
            duration_ms = (time.time() - request.start_time) * 1000
            logger.info(
                'Request completed',
                extra={
                    'event': 'http_request_completed',
                    'path': request.path,
                    'method': request.method,
                    'status_code': response.status_code,
                    'duration_ms': round(duration_ms, 2),
                }
            )

        return response

    def process_exception(self, request, exception):
        duration_ms = 0
        if hasattr(request, 'start_time'):
            duration_ms = (time.time() - request.start_time) * 1000

        logger.error(
            f'Request failed: {exception.__class__.__name__}',
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'path': request.path,
                'method': request.method,
                'exception_type': exception.__class__.__name__,
                'duration_ms': round(duration_ms, 2),
            }
        )


def clear_request_context():
    """Reset correlation context (useful for testing)."""
    _request_id.set(None)
    _trace_id.set(None)
    _user_id.set(None)
    _user_roles.set(())
