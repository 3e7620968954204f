"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Authenticated API clients by role
- Model instances (Provider, AppointmentType, Patient, Booking)
- In-test adapter fakes for the booking service
"""
from datetime import date, time, timedelta

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.authz.models import Role, RoleChoices, User, UserRole
from apps.clinical.models import (
    AppointmentType,
    Booking,
    BookingWindow,
    NotificationChannelChoices,
    Patient,
    Provider,
)
from apps.clinical.services import BookingService, get_booking_service
from apps.core.observability.correlation import clear_request_context
from apps.integrations.scheduling import LocalSchedulingSimulator
from .fakes import RecordingNotifications


@pytest.fixture(autouse=True)
def _isolate_process_state():
    """Fresh service singleton, throttle cache and log context per test."""
    get_booking_service.cache_clear()
    cache.clear()
    clear_request_context()
    yield
    get_booking_service.cache_clear()
    cache.clear()


# ============================================================================
# API Clients
# ============================================================================

def _user_with_role(email, role_name, **extra):
    user = User.objects.create_user(
        email=email,
        password='testpass123',
        is_active=True,
        **extra
    )
    role, _ = Role.objects.get_or_create(name=role_name)
    UserRole.objects.create(user=user, role=role)
    return user


@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    return _user_with_role('admin@test.com', RoleChoices.ADMIN, first_name='Ada', last_name='Admin', is_staff=True)


@pytest.fixture
def staff_user(db):
    return _user_with_role('staff@test.com', RoleChoices.CLINIC_STAFF, first_name='Sam', last_name='Staff')


@pytest.fixture
def admin_client(admin_user):
    """
    Authenticated API client with Admin role.
    Admin can see audit logs in addition to everything staff can do.
    """
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def staff_client(staff_user):
    """
    Authenticated API client with Clinic Staff role.
    Staff manage bookings and patients but cannot read audit logs.
    """
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def no_role_client(db):
    """Authenticated API client without any role."""
    user = User.objects.create_user(email='norole@test.com', password='testpass123')
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ============================================================================
# Model instances
# ============================================================================

@pytest.fixture
def provider(db):
    return Provider.objects.create(
        name='Sarah Chen',
        display_name='Dr. Sarah Chen, MD',
        specialty='Family Medicine',
    )


@pytest.fixture
def appointment_type(db):
    return AppointmentType.objects.create(
        name='General Consultation',
        duration_minutes=15,
        is_common=True,
    )


@pytest.fixture
def patient(db):
    """Synthetic patient that prefers email."""
    return Patient.objects.create(
        first_name='Alex',
        last_name='Taylor',
        date_of_birth=date(1985, 3, 14),
        email='alex.taylor@example.com',
        sms_number='+1-519-555-1234',
        fake_mrn='TEST-0001',
        notification_channel=NotificationChannelChoices.EMAIL,
    )


@pytest.fixture
def next_monday():
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) or 7)


@pytest.fixture
def monday_window(provider):
    """09:00-10:00 on Mondays: four 15-minute slots."""
    return BookingWindow.objects.create(
        provider=provider,
        day_of_week='monday',
        start_time=time(9, 0),
        end_time=time(10, 0),
    )


@pytest.fixture
def booking(provider, patient, appointment_type, next_monday):
    return Booking.objects.create(
        provider=provider,
        patient=patient,
        appointment_type=appointment_type,
        date=next_monday,
        time='09:00',
    )


# ============================================================================
# Adapter fakes
# ============================================================================

@pytest.fixture
def notifications():
    return RecordingNotifications()


@pytest.fixture
def simulator():
    return LocalSchedulingSimulator()


@pytest.fixture
def service(simulator, notifications):
    """BookingService wired to the simulator and a recording notifier."""
    return BookingService(scheduling=simulator, notifications=notifications, adapter_timeout=5)
