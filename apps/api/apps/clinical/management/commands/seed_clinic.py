"""
Seed a development database with synthetic clinic data.

Usage:
    python manage.py seed_clinic [--reset] [--password <pw>]

Creates:
    - providers with weekday morning booking windows
    - appointment types
    - synthetic patients (fake MRNs TEST-0001..)
    - admin@clinic.test (admin) and staff@clinic.test (clinic_staff)

Every patient is synthetic. Safe to run repeatedly.
"""
from datetime import date, time

from django.conf import settings
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.authz.models import Role, RoleChoices, User, UserRole
from apps.clinical.models import (
    AppointmentType,
    Booking,
    BookingWindow,
    DayOfWeekChoices,
    NotificationChannelChoices,
    Patient,
    Provider,
)

WEEKDAYS = [
    DayOfWeekChoices.MONDAY,
    DayOfWeekChoices.TUESDAY,
    DayOfWeekChoices.WEDNESDAY,
    DayOfWeekChoices.THURSDAY,
    DayOfWeekChoices.FRIDAY,
]

PROVIDERS = [
    {
        'name': 'Sarah Chen',
        'display_name': 'Dr. Sarah Chen, MD',
        'specialty': 'Family Medicine',
        'team': 'Blue Team',
        'bio': 'Family physician with an interest in preventive care.',
        'days_off': [],
    },
    {
        'name': 'Michael Okafor',
        'display_name': 'Dr. Michael Okafor, MD',
        'specialty': 'Family Medicine',
        'team': 'Blue Team',
        'bio': 'Chronic disease management and men\'s health.',
        'days_off': [DayOfWeekChoices.WEDNESDAY],
    },
    {
        'name': 'Priya Sharma',
        'display_name': 'Priya Sharma, NP',
        'specialty': 'Nurse Practitioner',
        'team': 'Green Team',
        'bio': 'Same-day care, prescription renewals and women\'s health.',
        'days_off': [DayOfWeekChoices.FRIDAY],
    },
]

APPOINTMENT_TYPES = [
    ('General Consultation', 15, 'New or ongoing health concern', True),
    ('Prescription Renewal', 10, 'Renewal of an existing prescription', True),
    ('Annual Physical', 30, 'Periodic health review', False),
    ('Follow-up', 15, 'Follow-up on a previous visit or test result', True),
]

PATIENTS = [
    ('Alex', 'Taylor', '1985-03-14', NotificationChannelChoices.EMAIL, False),
    ('Jordan', 'Lee', '1992-07-02', NotificationChannelChoices.SMS, True),
    ('Sam', 'Rivera', '1978-11-23', NotificationChannelChoices.EMAIL, False),
    ('Morgan', 'Patel', '2001-01-30', NotificationChannelChoices.SMS, False),
    ('Casey', 'Nguyen', '1966-05-09', NotificationChannelChoices.VOICE, False),
    ('Riley', 'Brown', '1999-09-17', NotificationChannelChoices.EMAIL, False),
]

USERS = [
    ('admin@clinic.test', 'Clinic', 'Admin', RoleChoices.ADMIN, True),
    ('staff@clinic.test', 'Front', 'Desk', RoleChoices.CLINIC_STAFF, False),
]


class Command(BaseCommand):
    help = 'Seed providers, appointment types, synthetic patients and staff users'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete existing bookings, windows, patients, providers and appointment types first',
        )
        parser.add_argument(
            '--password',
            default='ChangeMe123!',
            help='Password for the seeded staff users',
        )

    def handle(self, *args, **options):
        if settings.PHI_STORAGE_ENABLED:
            self.stdout.write(self.style.WARNING(
                'PHI storage is enabled (CANADA_PHIPA_READY=true). '
                'Seeded patients are still synthetic; make sure the compliance checklist is complete.'
            ))
        else:
            self.stdout.write('PHI storage disabled: synthetic data only (safe mode).')

        with transaction.atomic():
            if options['reset']:
                self._reset()
            providers = self._seed_providers()
            appointment_types = self._seed_appointment_types()
            patients = self._seed_patients()
            self._seed_users(options['password'])

        self.stdout.write(self.style.SUCCESS('Seed completed'))
        self.stdout.write(f'  Providers:         {len(providers)}')
        self.stdout.write(f'  Appointment types: {len(appointment_types)}')
        self.stdout.write(f'  Patients:          {len(patients)}')
        self.stdout.write(f'  Users:             {", ".join(email for email, *_ in USERS)}')

    def _reset(self):
        Booking.objects.all().delete()
        BookingWindow.objects.all().delete()
        Patient.objects.all().delete()
        Provider.objects.all().delete()
        AppointmentType.objects.all().delete()
        self.stdout.write(self.style.WARNING('Cleared existing clinic data'))

    def _seed_providers(self):
        providers = []
        for data in PROVIDERS:
            days_off = set(data['days_off'])
            working_hours = {
                str(day): 'off' if day in days_off else '09:00-17:00' for day in WEEKDAYS
            }
            provider, _ = Provider.objects.update_or_create(
                name=data['name'],
                defaults={
                    'display_name': data['display_name'],
                    'specialty': data['specialty'],
                    'team': data['team'],
                    'bio': data['bio'],
                    'working_hours': working_hours,
                },
            )
            for day in WEEKDAYS:
                if day in days_off:
                    continue
                BookingWindow.objects.get_or_create(
                    provider=provider,
                    day_of_week=day,
                    start_time=time(9, 0),
                    defaults={'end_time': time(12, 0)},
                )
            providers.append(provider)
        return providers

    def _seed_appointment_types(self):
        types = []
        for name, duration, description, is_common in APPOINTMENT_TYPES:
            appointment_type, _ = AppointmentType.objects.update_or_create(
                name=name,
                defaults={
                    'duration_minutes': duration,
                    'description': description,
                    'is_common': is_common,
                },
            )
            types.append(appointment_type)
        return types

    def _seed_patients(self):
        patients = []
        for index, (first, last, dob, channel, can_sms) in enumerate(PATIENTS, start=1):
            has_number = channel != NotificationChannelChoices.EMAIL
            patient, _ = Patient.objects.update_or_create(
                fake_mrn=f'TEST-{index:04d}',
                defaults={
                    'first_name': first,
                    'last_name': last,
                    'date_of_birth': date.fromisoformat(dob),
                    'email': f'{first.lower()}.{last.lower()}@example.test',
                    'sms_number': f'+1-555-010-{index:04d}' if has_number else None,
                    'postal_code': 'M5V 0A1',
                    'notification_channel': channel,
                    'can_receive_sms': can_sms,
                    'is_synthetic': True,
                },
            )
            patients.append(patient)
        return patients

    def _seed_users(self, password):
        for email, first_name, last_name, role_name, is_superuser in USERS:
            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(
                    email=email,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                    is_staff=True,
                    is_superuser=is_superuser,
                )
                self.stdout.write(self.style.SUCCESS(f'Created user "{email}"'))
            else:
                self.stdout.write(f'User "{email}" already exists')

            role, _ = Role.objects.get_or_create(name=role_name)
            UserRole.objects.get_or_create(user=user, role=role)
