"""
Clinical models: provider, appointment_type, booking_window, patient, booking
"""
import uuid
from django.db import models

from apps.core.exceptions import BookingTransitionError


# ============================================================================
# Enums
# ============================================================================

class ModalityChoices(models.TextChoices):
    IN_PERSON = 'in-person', 'In person'
    VIDEO = 'video', 'Video'
    PHONE = 'phone', 'Phone'


class BookingStatusChoices(models.TextChoices):
    PENDING = 'pending', 'Pending'
    CONFIRMED = 'confirmed', 'Confirmed'
    CANCELLED = 'cancelled', 'Cancelled'


class NotificationChannelChoices(models.TextChoices):
    EMAIL = 'email', 'Email'
    SMS = 'sms', 'SMS'
    VOICE = 'voice', 'Voice'


class DayOfWeekChoices(models.TextChoices):
    MONDAY = 'monday', 'Monday'
    TUESDAY = 'tuesday', 'Tuesday'
    WEDNESDAY = 'wednesday', 'Wednesday'
    THURSDAY = 'thursday', 'Thursday'
    FRIDAY = 'friday', 'Friday'
    SATURDAY = 'saturday', 'Saturday'
    SUNDAY = 'sunday', 'Sunday'


# ============================================================================
# Providers & Appointment Types
# ============================================================================

class Provider(models.Model):
    """
    Clinician that patients can book with.

    working_hours is display-only text per weekday; bookable time comes
    from BookingWindow rows.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    display_name = models.CharField(max_length=200, help_text='Name with credentials, e.g. "Dr. Sarah Chen, MD"')
    specialty = models.CharField(max_length=100, default='Family Medicine')
    team = models.CharField(max_length=100, blank=True, default='')
    bio = models.TextField(blank=True, default='')
    accepts_new_patients = models.BooleanField(default=True)
    is_active = models.BooleanField(default=True)
    working_hours = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'provider'
        verbose_name = 'Provider'
        verbose_name_plural = 'Providers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active'], name='idx_provider_active'),
        ]

    def __str__(self):
        return self.display_name or self.name


class AppointmentType(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    duration_minutes = models.PositiveIntegerField(default=15)
    description = models.TextField(blank=True, default='')
    is_common = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'appointment_type'
        verbose_name = 'Appointment Type'
        verbose_name_plural = 'Appointment Types'
        ordering = ['-is_common', 'name']

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"


class BookingWindow(models.Model):
    """
    Online-booking window for a provider on one weekday.

    The local scheduling simulator generates slots inside active windows.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name='booking_windows'
    )
    day_of_week = models.CharField(max_length=10, choices=DayOfWeekChoices.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'booking_window'
        verbose_name = 'Booking Window'
        verbose_name_plural = 'Booking Windows'
        ordering = ['provider', 'day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['provider', 'day_of_week'], name='idx_window_provider_day'),
        ]

    def __str__(self):
        return f"{self.provider} {self.day_of_week} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def clean(self):
        from django.core.exceptions import ValidationError as DjangoValidationError
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise DjangoValidationError({'end_time': 'end_time must be after start_time'})


# ============================================================================
# Patients
# ============================================================================

class Patient(models.Model):
    """
    Patient record. PHI-bearing.

    BUSINESS RULE: while PHI storage is disabled every record is synthetic
    (is_synthetic=True, fake_mrn in TEST-#### format).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    date_of_birth = models.DateField(blank=True, null=True)
    gender = models.CharField(max_length=30, blank=True, default='')
    email = models.EmailField(max_length=255)
    sms_number = models.CharField(max_length=30, blank=True, null=True)
    postal_code = models.CharField(max_length=12, blank=True, default='')
    fake_mrn = models.CharField(max_length=20, blank=True, null=True, unique=True)
    notification_channel = models.CharField(
        max_length=10,
        choices=NotificationChannelChoices.choices,
        default=NotificationChannelChoices.EMAIL
    )
    can_receive_sms = models.BooleanField(default=False)
    consent_notifications = models.BooleanField(default=True)
    is_synthetic = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
            models.Index(fields=['email'], name='idx_patient_email'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# ============================================================================
# Bookings
# ============================================================================

class Booking(models.Model):
    """
    A patient's request for a provider's time slot.

    - time is the slot's local "HH:MM" string, matched verbatim against
      scheduling-source slots
    - external_id is the system-of-record id once synced
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    provider = models.ForeignKey(
        Provider,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    patient = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    appointment_type = models.ForeignKey(
        AppointmentType,
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    date = models.DateField()
    time = models.CharField(max_length=5, help_text='Local time HH:MM')
    modality = models.CharField(
        max_length=10,
        choices=ModalityChoices.choices,
        default=ModalityChoices.IN_PERSON
    )
    status = models.CharField(
        max_length=10,
        choices=BookingStatusChoices.choices,
        default=BookingStatusChoices.PENDING
    )
    reason = models.TextField(blank=True, null=True)
    cancellation_reason = models.TextField(blank=True, null=True)
    external_id = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # BUSINESS RULE: Valid status transitions
    ALLOWED_TRANSITIONS = {
        'pending': ['confirmed', 'cancelled'],
        'confirmed': ['cancelled'],
        'cancelled': [],  # Terminal state
    }

    # BUSINESS RULE: Statuses that occupy a slot
    ACTIVE_STATUSES = ['pending', 'confirmed']

    class Meta:
        db_table = 'booking'
        verbose_name = 'Booking'
        verbose_name_plural = 'Bookings'
        ordering = ['-date', '-time']
        indexes = [
            models.Index(fields=['provider', 'date', 'status'], name='idx_booking_provider_date'),
            models.Index(fields=['patient'], name='idx_booking_patient'),
            models.Index(fields=['status'], name='idx_booking_status'),
        ]

    def __str__(self):
        return f"Booking {self.date} {self.time} ({self.status})"

    def can_transition_to(self, new_status):
        return str(new_status) in self.ALLOWED_TRANSITIONS.get(str(self.status), [])

    def transition_to(self, new_status, reason=None):
        """
        Move to ``new_status`` in memory; the caller persists.

        Raises:
            BookingTransitionError: if the transition is not allowed
        """
        if not self.can_transition_to(new_status):
            raise BookingTransitionError(str(self.status), str(new_status))

        if new_status == BookingStatusChoices.CANCELLED:
            self.cancellation_reason = reason

        old_status = str(self.status)
        self.status = str(new_status)
        return old_status
