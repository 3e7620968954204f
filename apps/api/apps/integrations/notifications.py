"""
Notification adapters.

Adapters receive a template name plus minimal rendering data (patient
first name, provider, date, time, booking id) and never free-text
clinical content such as the booking reason.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict

from django.template.loader import render_to_string

from apps.core.exceptions import IntegrationError
from apps.core.redaction import mask_email, mask_phone

logger = logging.getLogger(__name__)

BOOKING_CONFIRMATION = 'booking_confirmation'
BOOKING_CANCELLATION = 'booking_cancellation'

SUBJECTS = {
    BOOKING_CONFIRMATION: 'Your appointment request has been received',
    BOOKING_CANCELLATION: 'Your appointment has been cancelled',
}


def render_message(template: str, channel: str, data: Dict[str, Any]) -> str:
    """Render ``notifications/<template>.<channel>.txt`` with ``data``."""
    return render_to_string(f'notifications/{template}.{channel}.txt', data).strip()


class NotificationAdapter(ABC):
    """Contract for outbound patient notifications. All methods are coroutines."""

    name = 'notifications'

    @abstractmethod
    async def send_email(self, to: str, subject: str, template: str, data: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def send_sms(self, to: str, message: str) -> None:
        ...

    @abstractmethod
    async def send_voice(self, to: str, script: str) -> None:
        ...

    def unsupported(self, channel):
        raise IntegrationError(self.name, f'{channel} is not supported by this adapter')


class ConsoleNotificationAdapter(NotificationAdapter):
    """Logs notifications instead of sending them. Recipients are masked."""

    name = 'console'

    async def send_email(self, to, subject, template, data):
        logger.info(
            'Email notification (console)',
            extra={
                'event': 'notification_email',
                'recipient': mask_email(to),
                'subject': subject,
                'template': template,
                'booking_id': data.get('booking_id'),
            },
        )

    async def send_sms(self, to, message):
        logger.info(
            'SMS notification (console)',
            extra={
                'event': 'notification_sms',
                'recipient': mask_phone(to),
                'message_length': len(message),
            },
        )

    async def send_voice(self, to, script):
        logger.info(
            'Voice notification (console)',
            extra={
                'event': 'notification_voice',
                'recipient': mask_phone(to),
                'script_length': len(script),
            },
        )
