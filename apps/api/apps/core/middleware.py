"""
PHI guard middleware.

Until the deployment is declared PHIPA-ready (``PHI_STORAGE_ENABLED``),
the API only accepts synthetic patient data. Any JSON request that flags
its patient payload as real is rejected before it reaches a view.
"""
import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from apps.core.observability.metrics import metrics

logger = logging.getLogger(__name__)

PHI_BLOCKED_BODY = {
    'error': 'PHI storage not enabled',
    'message': 'Real patient data cannot be stored until CANADA_PHIPA_READY=true',
    'details': 'This deployment accepts synthetic test data only.',
}

WRITE_METHODS = ('POST', 'PUT', 'PATCH')


def _flagged_real(obj):
    return isinstance(obj, dict) and (obj.get('is_real') is True or obj.get('isReal') is True)


def is_real_patient_payload(data):
    """True when ``data`` or ``data['patient']`` is flagged as a real (non-synthetic) person."""
    if not isinstance(data, dict):
        return False
    return _flagged_real(data) or _flagged_real(data.get('patient'))


class PhiGuardMiddleware(MiddlewareMixin):
    """Block real-PHI writes while PHI storage is disabled."""

    def process_request(self, request):
        if getattr(settings, 'PHI_STORAGE_ENABLED', False):
            return None

        if '/patient' in request.path:
            logger.info(
                'PHI operation in safe mode',
                extra={
                    'event': 'phi_safe_mode',
                    'path': request.path,
                    'method': request.method,
                },
            )

        if request.method not in WRITE_METHODS:
            return None
        if not request.content_type or 'json' not in request.content_type:
            return None

        try:
            data = json.loads(request.body or b'{}')
        except (ValueError, UnicodeDecodeError):
            # Malformed bodies are rejected later by the parser.
            return None

        if is_real_patient_payload(data):
            logger.warning(
                'Rejected real patient data while PHI storage is disabled',
                extra={'event': 'phi_blocked', 'path': request.path},
            )
            metrics.phi_requests_blocked_total.inc()
            return JsonResponse(PHI_BLOCKED_BODY, status=403)

        return None
