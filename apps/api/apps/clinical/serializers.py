"""
Clinical serializers for providers, appointment types, patients and bookings.
"""
import re

from django.conf import settings
from rest_framework import serializers

from apps.clinical.models import (
    AppointmentType,
    Booking,
    ModalityChoices,
    NotificationChannelChoices,
    Patient,
    Provider,
)

FAKE_MRN_RE = re.compile(r'^TEST-\d{4}$')
TIME_RE = r'^([01]\d|2[0-3]):[0-5]\d$'


# ============================================================================
# Providers & Appointment Types (public)
# ============================================================================

class ProviderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Provider
        fields = [
            'id',
            'name',
            'display_name',
            'specialty',
            'team',
            'bio',
            'accepts_new_patients',
            'working_hours',
        ]
        read_only_fields = fields


class AppointmentTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentType
        fields = ['id', 'name', 'duration_minutes', 'description', 'is_common']
        read_only_fields = fields


class AvailabilityQuerySerializer(serializers.Serializer):
    provider_id = serializers.UUIDField()
    date = serializers.DateField(input_formats=['%Y-%m-%d'])


class SlotSerializer(serializers.Serializer):
    provider_id = serializers.CharField()
    date = serializers.CharField()
    time = serializers.CharField()
    duration = serializers.IntegerField()
    available = serializers.BooleanField()


# ============================================================================
# Patients
# ============================================================================

class PatientSerializer(serializers.ModelSerializer):
    """
    Staff-facing patient serializer.

    is_real is write-only: a record is only stored as real when PHI storage
    is enabled (the PHI guard middleware rejects it otherwise).
    """
    is_real = serializers.BooleanField(write_only=True, required=False, default=False)

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'date_of_birth',
            'gender',
            'email',
            'sms_number',
            'postal_code',
            'fake_mrn',
            'notification_channel',
            'can_receive_sms',
            'consent_notifications',
            'is_synthetic',
            'is_real',
            'created_at',
        ]
        read_only_fields = ['id', 'is_synthetic', 'created_at']

    def validate_fake_mrn(self, value):
        if value and not FAKE_MRN_RE.match(value):
            raise serializers.ValidationError('Synthetic MRN must match TEST-####')
        return value or None

    def validate(self, attrs):
        channel = attrs.get('notification_channel', NotificationChannelChoices.EMAIL)
        if channel in (NotificationChannelChoices.SMS, NotificationChannelChoices.VOICE) and not attrs.get('sms_number'):
            raise serializers.ValidationError({'sms_number': 'Required for SMS or voice notifications'})
        return attrs

    def create(self, validated_data):
        is_real = validated_data.pop('is_real', False)
        validated_data['is_synthetic'] = not (is_real and settings.PHI_STORAGE_ENABLED)
        return super().create(validated_data)


class PatientSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='full_name', read_only=True)

    class Meta:
        model = Patient
        fields = ['id', 'name', 'fake_mrn']
        read_only_fields = fields


# ============================================================================
# Bookings
# ============================================================================

class BookingCreateSerializer(serializers.Serializer):
    """
    Public booking request. Takes either an existing ``patient_id`` or an
    inline ``patient`` object for first-time patients.
    """
    provider_id = serializers.UUIDField()
    appointment_type_id = serializers.UUIDField()
    patient_id = serializers.UUIDField(required=False)
    patient = PatientSerializer(required=False)
    date = serializers.DateField(input_formats=['%Y-%m-%d'])
    time = serializers.RegexField(TIME_RE, error_messages={'invalid': 'Expected HH:MM (24h)'})
    modality = serializers.ChoiceField(choices=ModalityChoices.choices, default=ModalityChoices.IN_PERSON)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)

    def validate(self, attrs):
        has_id = attrs.get('patient_id') is not None
        has_inline = attrs.get('patient') is not None
        if has_id == has_inline:
            raise serializers.ValidationError(
                {'patient': 'Provide exactly one of patient_id or patient'}
            )
        return attrs


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500)


class _ProviderRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Provider
        fields = ['id', 'display_name', 'specialty']


class _AppointmentTypeRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = AppointmentType
        fields = ['id', 'name', 'duration_minutes']


class BookingSerializer(serializers.ModelSerializer):
    """Public booking view. No patient identifiers beyond the id."""
    provider = _ProviderRefSerializer(read_only=True)
    appointment_type = _AppointmentTypeRefSerializer(read_only=True)
    patient_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'provider',
            'appointment_type',
            'patient_id',
            'date',
            'time',
            'modality',
            'status',
            'reason',
            'cancellation_reason',
            'created_at',
        ]
        read_only_fields = fields


class AdminBookingSerializer(BookingSerializer):
    """Staff booking list: adds patient name and synthetic MRN."""
    patient = PatientSummarySerializer(read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + ['patient', 'external_id', 'updated_at']
        read_only_fields = fields


class AdminBookingQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking._meta.get_field('status').choices, required=False)
    provider_id = serializers.UUIDField(required=False)
    patient_id = serializers.UUIDField(required=False)
    start_date = serializers.DateField(required=False, input_formats=['%Y-%m-%d'])
    end_date = serializers.DateField(required=False, input_formats=['%Y-%m-%d'])


class ReportQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False, input_formats=['%Y-%m-%d'])
    end_date = serializers.DateField(required=False, input_formats=['%Y-%m-%d'])
