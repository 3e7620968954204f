"""
Ops serializers: audit log read model and query parameters.
"""
from rest_framework import serializers

from apps.ops.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'timestamp',
            'user',
            'user_email',
            'user_role',
            'action',
            'resource',
            'resource_id',
            'payload',
            'ip_address',
            'user_agent',
        ]
        read_only_fields = fields


class AuditLogQuerySerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    resource = serializers.CharField(required=False, max_length=50)
    resource_id = serializers.CharField(required=False, max_length=64)
    start_date = serializers.DateTimeField(required=False)
    end_date = serializers.DateTimeField(required=False)
    limit = serializers.IntegerField(required=False, default=100, min_value=1, max_value=500)
    offset = serializers.IntegerField(required=False, default=0, min_value=0)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError({'end_date': 'Must be after start_date'})
        return attrs
