"""
SendGrid email notifications over the v3 Mail Send API.
"""
import logging

import httpx

from apps.core.exceptions import IntegrationError
from apps.core.observability.metrics import metrics
from apps.core.redaction import mask_email
from .notifications import NotificationAdapter, render_message

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = 'https://api.sendgrid.com/v3/mail/send'


class SendGridNotificationAdapter(NotificationAdapter):
    """Email only; SMS and voice raise IntegrationError."""

    name = 'sendgrid'

    def __init__(self, api_key, from_email, timeout=10.0, transport=None):
        self.api_key = api_key
        self.from_email = from_email
        self.timeout = timeout
        self._transport = transport

    async def send_email(self, to, subject, template, data):
        payload = {
            'personalizations': [{'to': [{'email': to}]}],
            'from': {'email': self.from_email},
            'subject': subject,
            'content': [{'type': 'text/plain', 'value': render_message(template, 'email', data)}],
        }
        result = 'error'
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    SENDGRID_SEND_URL,
                    json=payload,
                    headers={'Authorization': f'Bearer {self.api_key}'},
                )
                response.raise_for_status()
            result = 'ok'
        except httpx.HTTPStatusError as exc:
            raise IntegrationError(self.name, f'mail/send returned {exc.response.status_code}') from exc
        except httpx.HTTPError as exc:
            raise IntegrationError(self.name, f'mail/send failed: {exc.__class__.__name__}') from exc
        finally:
            metrics.integration_calls_total.labels(
                adapter=self.name, operation='mail_send', result=result
            ).inc()

        logger.info(
            'Email notification sent',
            extra={'event': 'notification_email', 'recipient': mask_email(to), 'template': template},
        )

    async def send_sms(self, to, message):
        self.unsupported('sms')

    async def send_voice(self, to, script):
        self.unsupported('voice')
