"""
Audit log writer.

``AuditService.log`` never raises: an audit failure must not fail the
operation being audited. Failures are logged and counted instead.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from asgiref.sync import sync_to_async

from apps.core.exceptions import AuditWriteError
from apps.core.observability.metrics import metrics
from apps.core.redaction import redact_object
from apps.ops.models import AuditLog

logger = logging.getLogger(__name__)

MAX_QUERY_LIMIT = 500


@dataclass
class AuditPage:
    total: int
    entries: List[AuditLog]


def request_metadata(request) -> Dict[str, Any]:
    """Client IP and user agent (truncated to 200 chars) from a Django/DRF request."""
    if request is None:
        return {'ip_address': None, 'user_agent': ''}
    return {
        'ip_address': request.META.get('REMOTE_ADDR') or None,
        'user_agent': request.META.get('HTTP_USER_AGENT', '')[:200],
    }


class AuditService:

    async def log(
        self,
        action: str,
        resource: str,
        resource_id: Optional[str] = None,
        user=None,
        user_role: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
        request=None,
    ) -> Optional[AuditLog]:
        """
        Append a redacted audit entry.

        Returns the entry, or None when the write failed.
        """
        try:
            if user is not None and not getattr(user, 'is_authenticated', False):
                user = None
            if user is not None and user_role is None:
                user_role = await self._resolve_role(user)

            entry = await AuditLog.objects.acreate(
                user=user,
                user_role=user_role,
                action=action,
                resource=resource,
                resource_id=str(resource_id) if resource_id is not None else None,
                payload=redact_object(payload or {}, preserve_structure=True),
                **request_metadata(request),
            )
        except Exception as exc:
            error = AuditWriteError(f'{action} on {resource}: {exc.__class__.__name__}')
            logger.warning(
                'Audit write failed',
                extra={
                    'event': 'audit_write_failed',
                    'action': action,
                    'resource': resource,
                    'resource_id': str(resource_id) if resource_id is not None else None,
                    'error': str(error),
                },
            )
            metrics.audit_write_failures_total.inc()
            return None

        metrics.audit_entries_total.labels(action=action).inc()
        return entry

    async def query(
        self,
        user_id=None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        start=None,
        end=None,
        limit: int = 100,
        offset: int = 0,
    ) -> AuditPage:
        """
        Filtered audit entries, newest first.

        ``start``/``end`` bound the timestamp inclusively.
        """
        queryset = AuditLog.objects.select_related('user')
        if user_id:
            queryset = queryset.filter(user_id=user_id)
        if resource:
            queryset = queryset.filter(resource=resource)
        if resource_id:
            queryset = queryset.filter(resource_id=str(resource_id))
        if start:
            queryset = queryset.filter(timestamp__gte=start)
        if end:
            queryset = queryset.filter(timestamp__lte=end)

        limit = max(1, min(int(limit), MAX_QUERY_LIMIT))
        offset = max(0, int(offset))

        total = await queryset.acount()
        entries = [
            entry async for entry in queryset.order_by('-timestamp')[offset:offset + limit]
        ]
        return AuditPage(total=total, entries=entries)

    async def _resolve_role(self, user):
        return await sync_to_async(user.primary_role)()
