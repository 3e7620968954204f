"""
Tests for observability layer.

Validates request correlation, the sanitized JSON log format, domain
events, the PHI guard helper and the health/metrics endpoints.
"""
import json
import logging
import sys
from unittest.mock import Mock, patch

import pytest
from django.test import override_settings

from apps.core.middleware import is_real_patient_payload
from apps.core.observability.correlation import (
    RequestCorrelationMiddleware,
    clear_request_context,
    get_request_id,
)
from apps.core.observability.events import log_domain_event
from apps.core.observability.logging import (
    CorrelationFilter,
    SanitizedJSONFormatter,
    get_sanitized_logger,
)
from apps.core.observability.metrics import metrics


def _record(msg, **extra):
    record = logging.LogRecord('apps.test', logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestCorrelation:
    """Test request correlation middleware."""

    def test_generates_request_id_if_missing(self):
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(META={}, path='/api/v1/bookings/', method='GET')
        request.user = Mock(is_authenticated=False)

        middleware.process_request(request)

        assert request.request_id
        assert get_request_id() == request.request_id

    def test_propagates_existing_request_id(self):
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(META={'HTTP_X_REQUEST_ID': 'req-123'}, path='/api/v1/bookings/', method='GET')
        request.user = Mock(is_authenticated=False)

        middleware.process_request(request)

        assert request.request_id == 'req-123'

    def test_clear_request_context(self):
        middleware = RequestCorrelationMiddleware(lambda r: Mock(status_code=200))
        request = Mock(META={'HTTP_X_REQUEST_ID': 'req-123'}, path='/', method='GET')
        request.user = Mock(is_authenticated=False)
        middleware.process_request(request)

        clear_request_context()

        assert get_request_id() is None

    @pytest.mark.django_db
    def test_response_carries_request_id(self, client):
        response = client.get('/healthz', HTTP_X_REQUEST_ID='req-abc')

        assert response['X-Request-ID'] == 'req-abc'

    @pytest.mark.django_db
    def test_response_gets_generated_request_id(self, client):
        response = client.get('/healthz')

        assert response['X-Request-ID']


class TestSanitizedLogging:

    def test_correlation_filter_fills_defaults(self):
        record = _record('hello')

        assert CorrelationFilter().filter(record) is True
        assert record.request_id == '-'
        assert record.user_roles == '-'

    def test_message_is_redacted(self):
        record = _record('Lookup for jane.doe@example.com failed')

        output = json.loads(SanitizedJSONFormatter().format(record))

        assert 'jane.doe@example.com' not in output['message']
        assert '[REDACTED_EMAIL]' in output['message']
        assert output['level'] == 'INFO'
        assert output['logger'] == 'apps.test'

    def test_sensitive_extras_are_redacted(self):
        record = _record('Booking created', event='booking_created', booking_id='b-1', email='a@example.com', phone='+1-519-555-1234')

        output = json.loads(SanitizedJSONFormatter().format(record))

        assert output['event'] == 'booking_created'
        assert output['booking_id'] == 'b-1'
        assert 'a@example.com' not in json.dumps(output)
        assert '555-1234' not in json.dumps(output)

    @override_settings(LOG_REDACTION_ENABLED=False)
    def test_redaction_can_be_disabled(self):
        record = _record('Lookup for jane.doe@example.com failed')

        output = json.loads(SanitizedJSONFormatter().format(record))

        assert 'jane.doe@example.com' in output['message']

    def test_exception_text_is_redacted(self):
        try:
            raise ValueError('bad SSN 123-45-6789')
        except ValueError:
            record = logging.LogRecord('apps.test', logging.ERROR, __file__, 1, 'failed', None, sys.exc_info())

        output = json.loads(SanitizedJSONFormatter().format(record))

        assert '123-45-6789' not in output['exception']

    def test_get_sanitized_logger_adds_filter_once(self):
        logger = get_sanitized_logger('apps.test.sanitized')
        get_sanitized_logger('apps.test.sanitized')

        assert sum(isinstance(f, CorrelationFilter) for f in logger.filters) == 1


class TestDomainEvents:

    @patch('apps.core.observability.events.logger')
    def test_success_logs_info_with_redacted_extras(self, mock_logger):
        log_domain_event(
            'booking_created',
            entity_type='Booking',
            entity_id='b-1',
            entity_ids={'provider_id': 'p-1'},
            email='alex@example.com',
        )

        mock_logger.info.assert_called_once()
        extra = mock_logger.info.call_args.kwargs['extra']
        assert extra['event'] == 'booking_created'
        assert extra['entity_id'] == 'b-1'
        assert extra['provider_id'] == 'p-1'
        assert extra['email'] != 'alex@example.com'

    @patch('apps.core.observability.events.logger')
    def test_warning_and_failure_levels(self, mock_logger):
        log_domain_event('booking_effect_failed', result='warning')
        log_domain_event('booking_effect_failed', result='failure')

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_called_once()


class TestPhiGuardHelper:

    @pytest.mark.parametrize('data,expected', [
        ({'patient': {'is_real': True}}, True),
        ({'patient': {'isReal': True}}, True),
        ({'is_real': True, 'first_name': 'A'}, True),
        ({'patient': {'is_real': False}}, False),
        ({'patient': {'is_real': 'true'}}, False),
        ({'patient': 'p-1'}, False),
        (['is_real'], False),
    ])
    def test_detection(self, data, expected):
        assert is_real_patient_payload(data) is expected


@pytest.mark.django_db
class TestHealthEndpoints:

    def test_healthz(self, client):
        response = client.get('/healthz')

        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    def test_readyz_reports_adapters_and_phi_flag(self, client):
        response = client.get('/readyz')

        assert response.status_code == 200
        body = response.json()
        assert body['status'] == 'ready'
        assert body['checks'] == {'database': True}
        assert body['phi_storage_enabled'] is False
        assert body['adapters'] == {'scheduling': 'simulator', 'notifications': 'console'}

    def test_metrics_endpoint(self, client):
        metrics.phi_requests_blocked_total.inc()

        response = client.get('/metrics')

        assert response.status_code == 200
        text = response.content.decode()
        assert 'bookings_created_total' in text
        assert 'phi_requests_blocked_total' in text
        assert 'integration_call_duration_seconds' in text
