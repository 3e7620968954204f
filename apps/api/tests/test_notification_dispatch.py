"""
Tests for channel routing in NotificationDispatcher and message templates.
"""
import pytest
from asgiref.sync import async_to_sync

from apps.clinical.models import NotificationChannelChoices
from apps.clinical.services import NotificationDispatcher
from apps.integrations.notifications import (
    BOOKING_CANCELLATION,
    BOOKING_CONFIRMATION,
    render_message,
)
from .fakes import RecordingNotifications

DATA = {
    'patient_name': 'Alex',
    'provider_name': 'Dr. Sarah Chen, MD',
    'date': '2030-01-07',
    'time': '09:00',
    'booking_id': 'b-1',
}


def _dispatch(adapter, patient, template=BOOKING_CONFIRMATION):
    return async_to_sync(NotificationDispatcher(adapter).dispatch)(patient, template, DATA)


@pytest.mark.django_db
class TestChannelRouting:

    def test_email_preference_sends_email(self, patient):
        adapter = RecordingNotifications()

        assert _dispatch(adapter, patient) == 'sent'

        channel, to, body = adapter.sent[0]
        assert channel == 'email'
        assert to == 'alex.taylor@example.com'
        assert body['subject'] == 'Your appointment request has been received'

    def test_sms_when_patient_can_receive_sms(self, patient):
        patient.notification_channel = NotificationChannelChoices.SMS
        patient.can_receive_sms = True
        adapter = RecordingNotifications()

        assert _dispatch(adapter, patient) == 'sent'

        channel, to, message = adapter.sent[0]
        assert channel == 'sms'
        assert to == '+1-519-555-1234'
        assert '09:00' in message

    def test_no_sms_attempt_when_patient_cannot_receive_sms(self, patient):
        """
        GIVEN a patient who prefers SMS but cannot receive it
        WHEN a notification is dispatched
        THEN no SMS is attempted and nothing falls back to email
        """
        patient.notification_channel = NotificationChannelChoices.SMS
        patient.can_receive_sms = False
        adapter = RecordingNotifications()

        assert _dispatch(adapter, patient) == 'skipped'
        assert adapter.sent == []

    def test_no_sms_without_number(self, patient):
        patient.notification_channel = NotificationChannelChoices.SMS
        patient.can_receive_sms = True
        patient.sms_number = None
        adapter = RecordingNotifications()

        assert _dispatch(adapter, patient) == 'skipped'
        assert adapter.sent == []

    def test_voice_uses_sms_number(self, patient):
        patient.notification_channel = NotificationChannelChoices.VOICE
        adapter = RecordingNotifications()

        assert _dispatch(adapter, patient, BOOKING_CANCELLATION) == 'sent'

        channel, to, script = adapter.sent[0]
        assert channel == 'voice'
        assert to == '+1-519-555-1234'
        assert 'cancelled' in script

    def test_voice_skipped_without_number(self, patient):
        patient.notification_channel = NotificationChannelChoices.VOICE
        patient.sms_number = ''
        adapter = RecordingNotifications()

        assert _dispatch(adapter, patient) == 'skipped'

    def test_adapter_errors_propagate_to_caller(self, patient):
        adapter = RecordingNotifications(error=RuntimeError('smtp down'))

        with pytest.raises(RuntimeError):
            _dispatch(adapter, patient)


class TestTemplates:

    @pytest.mark.parametrize('template', [BOOKING_CONFIRMATION, BOOKING_CANCELLATION])
    @pytest.mark.parametrize('channel', ['email', 'sms', 'voice'])
    def test_every_template_renders(self, template, channel):
        text = render_message(template, channel, DATA)

        assert 'Dr. Sarah Chen, MD' in text
        assert '&' not in text

    def test_confirmation_email_content(self):
        text = render_message(BOOKING_CONFIRMATION, 'email', DATA)

        assert 'Alex' in text
        assert '2030-01-07' in text
        assert 'b-1' in text
