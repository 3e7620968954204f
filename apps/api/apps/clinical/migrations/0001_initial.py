# Generated migration for clinical app

import uuid
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Provider',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150)),
                ('display_name', models.CharField(help_text='Name with credentials, e.g. "Dr. Sarah Chen, MD"', max_length=200)),
                ('specialty', models.CharField(default='Family Medicine', max_length=100)),
                ('team', models.CharField(blank=True, default='', max_length=100)),
                ('bio', models.TextField(blank=True, default='')),
                ('accepts_new_patients', models.BooleanField(default=True)),
                ('is_active', models.BooleanField(default=True)),
                ('working_hours', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Provider',
                'verbose_name_plural': 'Providers',
                'db_table': 'provider',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_active'], name='idx_provider_active')],
            },
        ),
        migrations.CreateModel(
            name='AppointmentType',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=150)),
                ('duration_minutes', models.PositiveIntegerField(default=15)),
                ('description', models.TextField(blank=True, default='')),
                ('is_common', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Appointment Type',
                'verbose_name_plural': 'Appointment Types',
                'db_table': 'appointment_type',
                'ordering': ['-is_common', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, default='', max_length=30)),
                ('email', models.EmailField(max_length=255)),
                ('sms_number', models.CharField(blank=True, max_length=30, null=True)),
                ('postal_code', models.CharField(blank=True, default='', max_length=12)),
                ('fake_mrn', models.CharField(blank=True, max_length=20, null=True, unique=True)),
                ('notification_channel', models.CharField(choices=[('email', 'Email'), ('sms', 'SMS'), ('voice', 'Voice')], default='email', max_length=10)),
                ('can_receive_sms', models.BooleanField(default=False)),
                ('consent_notifications', models.BooleanField(default=True)),
                ('is_synthetic', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patient',
                'ordering': ['last_name', 'first_name'],
                'indexes': [
                    models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
                    models.Index(fields=['email'], name='idx_patient_email'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BookingWindow',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('day_of_week', models.CharField(choices=[('monday', 'Monday'), ('tuesday', 'Tuesday'), ('wednesday', 'Wednesday'), ('thursday', 'Thursday'), ('friday', 'Friday'), ('saturday', 'Saturday'), ('sunday', 'Sunday')], max_length=10)),
                ('start_time', models.TimeField()),
                ('end_time', models.TimeField()),
                ('is_active', models.BooleanField(default=True)),
                ('provider', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='booking_windows', to='clinical.provider')),
            ],
            options={
                'verbose_name': 'Booking Window',
                'verbose_name_plural': 'Booking Windows',
                'db_table': 'booking_window',
                'ordering': ['provider', 'day_of_week', 'start_time'],
                'indexes': [models.Index(fields=['provider', 'day_of_week'], name='idx_window_provider_day')],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('time', models.CharField(help_text='Local time HH:MM', max_length=5)),
                ('modality', models.CharField(choices=[('in-person', 'In person'), ('video', 'Video'), ('phone', 'Phone')], default='in-person', max_length=10)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled')], default='pending', max_length=10)),
                ('reason', models.TextField(blank=True, null=True)),
                ('cancellation_reason', models.TextField(blank=True, null=True)),
                ('external_id', models.CharField(blank=True, max_length=100, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment_type', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='clinical.appointmenttype')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='clinical.patient')),
                ('provider', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='clinical.provider')),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'db_table': 'booking',
                'ordering': ['-date', '-time'],
                'indexes': [
                    models.Index(fields=['provider', 'date', 'status'], name='idx_booking_provider_date'),
                    models.Index(fields=['patient'], name='idx_booking_patient'),
                    models.Index(fields=['status'], name='idx_booking_status'),
                ],
            },
        ),
    ]
