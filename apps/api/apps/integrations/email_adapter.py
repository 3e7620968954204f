"""
Email notifications through Django's configured email backend.
"""
import logging

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.mail import send_mail

from apps.core.exceptions import IntegrationError
from apps.core.redaction import mask_email
from .notifications import NotificationAdapter, render_message

logger = logging.getLogger(__name__)


class EmailBackendNotificationAdapter(NotificationAdapter):
    """Email only; SMS and voice raise IntegrationError."""

    name = 'email'

    def __init__(self, from_email=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    async def send_email(self, to, subject, template, data):
        body = render_message(template, 'email', data)
        try:
            await sync_to_async(send_mail)(
                subject, body, self.from_email, [to], fail_silently=False
            )
        except Exception as exc:
            raise IntegrationError(self.name, f'send_mail failed: {exc.__class__.__name__}') from exc
        logger.info(
            'Email notification sent',
            extra={'event': 'notification_email', 'recipient': mask_email(to), 'template': template},
        )

    async def send_sms(self, to, message):
        self.unsupported('sms')

    async def send_voice(self, to, script):
        self.unsupported('voice')
