# Generated migration for ops app

import uuid
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('user_role', models.CharField(blank=True, max_length=50, null=True)),
                ('action', models.CharField(choices=[('login', 'Login'), ('create_booking', 'Create Booking'), ('cancel_booking', 'Cancel Booking'), ('approve_booking', 'Approve Booking'), ('create_patient', 'Create Patient')], max_length=50)),
                ('resource', models.CharField(help_text='Resource type, e.g. booking', max_length=50)),
                ('resource_id', models.CharField(blank=True, max_length=64, null=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.CharField(blank=True, default='', max_length=200)),
                ('user', models.ForeignKey(blank=True, help_text='User who performed the action (null for anonymous/system actions)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Audit Log',
                'verbose_name_plural': 'Audit Logs',
                'db_table': 'audit_log',
                'ordering': ['-timestamp'],
                'indexes': [
                    models.Index(fields=['user'], name='idx_audit_log_user'),
                    models.Index(fields=['resource', 'resource_id'], name='idx_audit_log_resource'),
                    models.Index(fields=['action'], name='idx_audit_log_action'),
                ],
            },
        ),
    ]
