"""
Twilio SMS and voice notifications over the Twilio REST API.
"""
import logging

import httpx
from twilio.twiml.voice_response import VoiceResponse

from apps.core.exceptions import IntegrationError
from apps.core.observability.metrics import metrics
from apps.core.redaction import mask_phone
from .notifications import NotificationAdapter

logger = logging.getLogger(__name__)

TWILIO_API_BASE = 'https://api.twilio.com/2010-04-01'


class TwilioNotificationAdapter(NotificationAdapter):
    """SMS and voice only; email raises IntegrationError."""

    name = 'twilio'

    def __init__(self, account_sid, auth_token, from_number, timeout=10.0, transport=None):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout
        self._transport = transport

    async def _post(self, resource, form):
        url = f'{TWILIO_API_BASE}/Accounts/{self.account_sid}/{resource}.json'
        result = 'error'
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, data=form, auth=(self.account_sid, self.auth_token))
                response.raise_for_status()
            result = 'ok'
        except httpx.HTTPStatusError as exc:
            raise IntegrationError(self.name, f'{resource} returned {exc.response.status_code}') from exc
        except httpx.HTTPError as exc:
            raise IntegrationError(self.name, f'{resource} failed: {exc.__class__.__name__}') from exc
        finally:
            metrics.integration_calls_total.labels(
                adapter=self.name, operation=resource.lower(), result=result
            ).inc()
        return response.json()

    async def send_email(self, to, subject, template, data):
        self.unsupported('email')

    async def send_sms(self, to, message):
        result = await self._post('Messages', {'To': to, 'From': self.from_number, 'Body': message})
        logger.info(
            'SMS notification sent',
            extra={'event': 'notification_sms', 'recipient': mask_phone(to), 'provider_message_id': result.get('sid')},
        )

    async def send_voice(self, to, script):
        response = VoiceResponse()
        response.say(script)
        twiml = str(response)
        result = await self._post('Calls', {'To': to, 'From': self.from_number, 'Twiml': twiml})
        logger.info(
            'Voice notification placed',
            extra={'event': 'notification_voice', 'recipient': mask_phone(to), 'provider_call_id': result.get('sid')},
        )
