from django.contrib import admin
from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['timestamp', 'action', 'resource', 'resource_id', 'user', 'user_role']
    list_filter = ['action', 'resource', 'timestamp']
    search_fields = ['resource_id', 'user__email']
    readonly_fields = [
        'id', 'timestamp', 'user', 'user_role', 'action', 'resource',
        'resource_id', 'payload', 'ip_address', 'user_agent',
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
