"""
Audit log query endpoint (Admin only).
"""
from asgiref.sync import async_to_sync
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.permissions import IsAdmin
from apps.ops.audit import AuditService
from apps.ops.serializers import AuditLogQuerySerializer, AuditLogSerializer


class AuditLogListView(APIView):
    """
    GET /api/v1/admin/audit-logs/

    Query: user_id, resource, resource_id, start_date, end_date, limit, offset
    Response: {"total": int, "limit": int, "offset": int, "logs": [...]}
    """
    permission_classes = [IsAdmin]

    def get(self, request):
        params = AuditLogQuerySerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        data = params.validated_data

        page = async_to_sync(AuditService().query)(
            user_id=data.get('user_id'),
            resource=data.get('resource'),
            resource_id=data.get('resource_id'),
            start=data.get('start_date'),
            end=data.get('end_date'),
            limit=data['limit'],
            offset=data['offset'],
        )

        return Response({
            'total': page.total,
            'limit': data['limit'],
            'offset': data['offset'],
            'logs': AuditLogSerializer(page.entries, many=True).data,
        })
