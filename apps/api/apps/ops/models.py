"""
Ops models: audit_log
"""
import uuid
from django.conf import settings
from django.db import models
from django.utils import timezone


class ImmutableAuditLogError(Exception):
    """Raised on any attempt to modify or delete an audit entry."""


class AuditActionChoices(models.TextChoices):
    LOGIN = 'login', 'Login'
    CREATE_BOOKING = 'create_booking', 'Create Booking'
    CANCEL_BOOKING = 'cancel_booking', 'Cancel Booking'
    APPROVE_BOOKING = 'approve_booking', 'Approve Booking'
    CREATE_PATIENT = 'create_patient', 'Create Patient'


class AuditLog(models.Model):
    """
    Append-only audit trail of sensitive actions.

    - user: nullable (anonymous public bookings and system actions)
    - payload: already redacted by AuditService before it gets here
    - Rows are never updated or deleted
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='audit_entries',
        help_text='User who performed the action (null for anonymous/system actions)'
    )
    user_role = models.CharField(max_length=50, blank=True, null=True)

    action = models.CharField(max_length=50, choices=AuditActionChoices.choices)
    resource = models.CharField(max_length=50, help_text='Resource type, e.g. booking')
    resource_id = models.CharField(max_length=64, blank=True, null=True)

    payload = models.JSONField(default=dict, blank=True)

    ip_address = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=200, blank=True, default='')

    class Meta:
        db_table = 'audit_log'
        verbose_name = 'Audit Log'
        verbose_name_plural = 'Audit Logs'
        indexes = [
            models.Index(fields=['user'], name='idx_audit_log_user'),
            models.Index(fields=['resource', 'resource_id'], name='idx_audit_log_resource'),
            models.Index(fields=['action'], name='idx_audit_log_action'),
        ]
        ordering = ['-timestamp']

    def __str__(self):
        actor = self.user_id or 'anonymous'
        return f"{self.action} on {self.resource}[{self.resource_id}] by {actor}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableAuditLogError('Audit log entries cannot be modified')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableAuditLogError('Audit log entries cannot be deleted')
