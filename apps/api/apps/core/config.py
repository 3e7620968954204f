"""
Typed integration configuration.

Built from ``settings.CLINIC_INTEGRATIONS`` and validated once at startup
(see ``CoreConfig.ready``) so a misconfigured adapter fails the boot
instead of the first booking.
"""
from dataclasses import dataclass
from datetime import datetime

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

SCHEDULING_ADAPTERS = ('simulator', 'fhir')
NOTIFICATION_ADAPTERS = ('console', 'email', 'twilio', 'sendgrid')


@dataclass(frozen=True)
class IntegrationConfig:
    scheduling_adapter: str = 'simulator'
    notification_adapter: str = 'console'
    adapter_timeout_seconds: float = 10.0
    slot_minutes: int = 15
    default_day_start: str = '09:00'
    default_day_end: str = '16:00'
    fhir_base_url: str = ''
    fhir_access_token: str = ''
    twilio_account_sid: str = ''
    twilio_auth_token: str = ''
    twilio_from_number: str = ''
    sendgrid_api_key: str = ''
    sendgrid_from_email: str = ''

    @classmethod
    def from_settings(cls, raw=None):
        """Build from a CLINIC_INTEGRATIONS-style dict (upper-case keys)."""
        if raw is None:
            raw = getattr(settings, 'CLINIC_INTEGRATIONS', {})
        values = {}
        for field_name in cls.__dataclass_fields__:
            key = field_name.upper()
            if key in raw and raw[key] is not None:
                values[field_name] = raw[key]
        config = cls(**values)
        config.validate()
        return config

    def errors(self):
        """Return a list of human-readable configuration problems."""
        problems = []

        if self.scheduling_adapter not in SCHEDULING_ADAPTERS:
            problems.append(
                f'SCHEDULING_ADAPTER must be one of {", ".join(SCHEDULING_ADAPTERS)} '
                f'(got {self.scheduling_adapter!r})'
            )
        if self.notification_adapter not in NOTIFICATION_ADAPTERS:
            problems.append(
                f'NOTIFICATION_ADAPTER must be one of {", ".join(NOTIFICATION_ADAPTERS)} '
                f'(got {self.notification_adapter!r})'
            )

        if self.scheduling_adapter == 'fhir' and not self.fhir_base_url:
            problems.append('FHIR_BASE_URL is required when SCHEDULING_ADAPTER=fhir')

        if self.notification_adapter == 'twilio':
            for name in ('twilio_account_sid', 'twilio_auth_token', 'twilio_from_number'):
                if not getattr(self, name):
                    problems.append(f'{name.upper()} is required when NOTIFICATION_ADAPTER=twilio')

        if self.notification_adapter == 'sendgrid':
            for name in ('sendgrid_api_key', 'sendgrid_from_email'):
                if not getattr(self, name):
                    problems.append(f'{name.upper()} is required when NOTIFICATION_ADAPTER=sendgrid')

        try:
            if float(self.adapter_timeout_seconds) <= 0:
                problems.append('ADAPTER_TIMEOUT_SECONDS must be greater than 0')
        except (TypeError, ValueError):
            problems.append('ADAPTER_TIMEOUT_SECONDS must be a number')

        try:
            if int(self.slot_minutes) <= 0:
                problems.append('SLOT_MINUTES must be greater than 0')
        except (TypeError, ValueError):
            problems.append('SLOT_MINUTES must be an integer')

        try:
            start = datetime.strptime(self.default_day_start, '%H:%M')
            end = datetime.strptime(self.default_day_end, '%H:%M')
            if start >= end:
                problems.append('DEFAULT_DAY_START must be before DEFAULT_DAY_END')
        except (TypeError, ValueError):
            problems.append('DEFAULT_DAY_START and DEFAULT_DAY_END must be HH:MM')

        return problems

    def validate(self):
        problems = self.errors()
        if problems:
            raise ImproperlyConfigured(
                'Invalid CLINIC_INTEGRATIONS: ' + '; '.join(problems)
            )
        return self


def get_integration_config():
    return IntegrationConfig.from_settings()
