"""
Adapter factory: builds scheduling and notification adapters from config.
"""
import logging

from apps.core.config import IntegrationConfig
from .email_adapter import EmailBackendNotificationAdapter
from .fhir import FhirSchedulingAdapter
from .notifications import ConsoleNotificationAdapter
from .scheduling import LocalSchedulingSimulator
from .sendgrid_adapter import SendGridNotificationAdapter
from .twilio_adapter import TwilioNotificationAdapter

logger = logging.getLogger(__name__)


def build_scheduling_adapter(config: IntegrationConfig):
    if config.scheduling_adapter == 'fhir':
        return FhirSchedulingAdapter(
            base_url=config.fhir_base_url,
            access_token=config.fhir_access_token,
            timeout=config.adapter_timeout_seconds,
        )
    return LocalSchedulingSimulator(
        slot_minutes=config.slot_minutes,
        default_day_start=config.default_day_start,
        default_day_end=config.default_day_end,
    )


def build_notification_adapter(config: IntegrationConfig):
    kind = config.notification_adapter
    if kind == 'email':
        return EmailBackendNotificationAdapter()
    if kind == 'twilio':
        return TwilioNotificationAdapter(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_from_number,
            timeout=config.adapter_timeout_seconds,
        )
    if kind == 'sendgrid':
        return SendGridNotificationAdapter(
            api_key=config.sendgrid_api_key,
            from_email=config.sendgrid_from_email,
            timeout=config.adapter_timeout_seconds,
        )
    return ConsoleNotificationAdapter()


def build_adapters(config: IntegrationConfig):
    """Return ``(scheduling, notifications)`` for ``config``."""
    scheduling = build_scheduling_adapter(config)
    notifications = build_notification_adapter(config)
    logger.info(
        'Integration adapters initialised',
        extra={
            'event': 'adapters_initialised',
            'scheduling_adapter': scheduling.name,
            'notification_adapter': notifications.name,
        },
    )
    return scheduling, notifications
