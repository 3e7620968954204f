"""
Structured logging with PHI/PII protection.

Every record emitted through the JSON formatter passes through the
redaction utility: the message for PHI-shaped substrings, the extras for
sensitive field names as well.
"""
import json
import logging
from datetime import datetime, timezone

from django.conf import settings

from apps.core.redaction import redact_string, safe_log_payload
from .correlation import get_request_id, get_trace_id, get_user_id, get_user_roles

# Attributes every LogRecord carries; anything else came from extra={}.
_STANDARD_ATTRS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message', 'asctime',
})


class CorrelationFilter(logging.Filter):
    """
    Logging filter that injects correlation context into log records.
    """

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        record.trace_id = get_trace_id() or '-'
        record.user_id = get_user_id() or '-'
        record.user_roles = ','.join(get_user_roles()) or '-'
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """
    JSON formatter that redacts PHI from the message and extra fields.
    """

    def format(self, record):
        redaction_on = getattr(settings, 'LOG_REDACTION_ENABLED', True)

        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': redact_string(record.getMessage(), enabled=redaction_on),
            'request_id': getattr(record, 'request_id', '-'),
            'trace_id': getattr(record, 'trace_id', '-'),
            'user_id': getattr(record, 'user_id', '-'),
            'user_roles': getattr(record, 'user_roles', '-'),
        }

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in log_data and key not in _STANDARD_ATTRS and not key.startswith('_')
        }
        if extras:
            log_data.update(safe_log_payload(extras, enabled=redaction_on))

        if record.exc_info:
            log_data['exception'] = redact_string(
                self.formatException(record.exc_info), enabled=redaction_on
            )

        return json.dumps(log_data, default=str)


def get_sanitized_logger(name):
    """
    Get a logger with correlation filter applied.

    Usage:
        logger = get_sanitized_logger(__name__)
        logger.info('Booking created', extra={'event': 'booking_created', 'booking_id': str(booking.id)})
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationFilter) for f in logger.filters):
        logger.addFilter(CorrelationFilter())

    return logger
