"""
Tests for integration configuration validation and the adapter factory.
"""
import pytest
from django.core.exceptions import ImproperlyConfigured
from django.test import override_settings

from apps.core.config import IntegrationConfig, get_integration_config
from apps.integrations.email_adapter import EmailBackendNotificationAdapter
from apps.integrations.factory import build_adapters, build_notification_adapter, build_scheduling_adapter
from apps.integrations.fhir import FhirSchedulingAdapter
from apps.integrations.notifications import ConsoleNotificationAdapter
from apps.integrations.scheduling import LocalSchedulingSimulator
from apps.integrations.sendgrid_adapter import SendGridNotificationAdapter
from apps.integrations.twilio_adapter import TwilioNotificationAdapter


class TestValidation:

    def test_defaults_are_valid(self):
        assert IntegrationConfig().errors() == []

    def test_unknown_adapters(self):
        problems = IntegrationConfig(scheduling_adapter='epic', notification_adapter='pager').errors()

        assert len(problems) == 2
        assert 'SCHEDULING_ADAPTER' in problems[0]
        assert 'NOTIFICATION_ADAPTER' in problems[1]

    def test_fhir_requires_base_url(self):
        problems = IntegrationConfig(scheduling_adapter='fhir').errors()

        assert problems == ['FHIR_BASE_URL is required when SCHEDULING_ADAPTER=fhir']

    def test_twilio_requires_credentials(self):
        problems = IntegrationConfig(notification_adapter='twilio', twilio_account_sid='AC1').errors()

        assert problems == [
            'TWILIO_AUTH_TOKEN is required when NOTIFICATION_ADAPTER=twilio',
            'TWILIO_FROM_NUMBER is required when NOTIFICATION_ADAPTER=twilio',
        ]

    def test_sendgrid_requires_key_and_sender(self):
        problems = IntegrationConfig(notification_adapter='sendgrid').errors()

        assert len(problems) == 2

    @pytest.mark.parametrize('timeout', [0, -1, 'soon'])
    def test_timeout_must_be_positive_number(self, timeout):
        problems = IntegrationConfig(adapter_timeout_seconds=timeout).errors()

        assert len(problems) == 1
        assert 'ADAPTER_TIMEOUT_SECONDS' in problems[0]

    def test_day_bounds(self):
        assert IntegrationConfig(default_day_start='17:00', default_day_end='09:00').errors()
        assert IntegrationConfig(default_day_start='9am').errors()

    def test_validate_raises_improperly_configured(self):
        with pytest.raises(ImproperlyConfigured) as exc_info:
            IntegrationConfig(scheduling_adapter='fhir').validate()

        assert 'FHIR_BASE_URL' in str(exc_info.value)


class TestFromSettings:

    def test_maps_upper_case_keys(self):
        config = IntegrationConfig.from_settings({
            'SCHEDULING_ADAPTER': 'fhir',
            'FHIR_BASE_URL': 'https://fhir.example.test/r4',
            'ADAPTER_TIMEOUT_SECONDS': 3.5,
            'SLOT_MINUTES': 20,
            'FHIR_ACCESS_TOKEN': None,
        })

        assert config.scheduling_adapter == 'fhir'
        assert config.fhir_base_url == 'https://fhir.example.test/r4'
        assert config.adapter_timeout_seconds == 3.5
        assert config.slot_minutes == 20
        assert config.fhir_access_token == ''

    def test_invalid_settings_raise(self):
        with pytest.raises(ImproperlyConfigured):
            IntegrationConfig.from_settings({'NOTIFICATION_ADAPTER': 'twilio'})

    def test_reads_django_settings(self):
        config = get_integration_config()

        assert config.scheduling_adapter == 'simulator'
        assert config.adapter_timeout_seconds == 5.0

    @override_settings(CLINIC_INTEGRATIONS={'NOTIFICATION_ADAPTER': 'email'})
    def test_reads_overridden_settings(self):
        assert get_integration_config().notification_adapter == 'email'


class TestFactory:

    def test_simulator_and_console_by_default(self):
        scheduling, notifications = build_adapters(IntegrationConfig())

        assert isinstance(scheduling, LocalSchedulingSimulator)
        assert isinstance(notifications, ConsoleNotificationAdapter)

    def test_fhir_adapter_carries_settings(self):
        adapter = build_scheduling_adapter(IntegrationConfig(
            scheduling_adapter='fhir',
            fhir_base_url='https://fhir.example.test/r4/',
            fhir_access_token='tok',
            adapter_timeout_seconds=2.0,
        ))

        assert isinstance(adapter, FhirSchedulingAdapter)
        assert adapter.base_url == 'https://fhir.example.test/r4'
        assert adapter.timeout == 2.0

    @pytest.mark.parametrize('kind,expected', [
        ('email', EmailBackendNotificationAdapter),
        ('twilio', TwilioNotificationAdapter),
        ('sendgrid', SendGridNotificationAdapter),
        ('console', ConsoleNotificationAdapter),
    ])
    def test_notification_adapters(self, kind, expected):
        config = IntegrationConfig(
            notification_adapter=kind,
            twilio_account_sid='AC1',
            twilio_auth_token='secret',
            twilio_from_number='+15550100000',
            sendgrid_api_key='SG.key',
            sendgrid_from_email='clinic@example.com',
        )

        assert isinstance(build_notification_adapter(config), expected)
