"""
PHI/PII redaction utilities.

Everything that leaves the process as a log line or lands in the audit
trail goes through these helpers first. All functions are pure: they
return new values and never mutate their input.
"""
import re
from typing import Any, Iterable, Optional

from django.conf import settings


# Applied in order; each match becomes [REDACTED_<LABEL>].
PATTERNS = (
    ('SSN', re.compile(r'\b\d{3}-\d{2}-\d{4}\b')),
    ('MRN', re.compile(r'\bTEST-\d{4}\b')),
    ('PHONE', re.compile(r'\+1-\d{3}-\d{3}-\d{4}')),
    ('EMAIL', re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')),
    ('DOB', re.compile(r'\b\d{4}-\d{2}-\d{2}\b')),
)

# Field names compared after camelCase -> snake_case normalisation.
SENSITIVE_FIELDS = frozenset({
    'password',
    'ssn',
    'sin',
    'mrn',
    'fake_mrn',
    'dob',
    'date_of_birth',
    'birth_date',
    'email',
    'sms_number',
    'phone',
    'phone_number',
    'address',
    'postal_code',
})

REDACTED = '[REDACTED]'

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])')


def normalize_field_name(name: str) -> str:
    """Return ``name`` lower-cased in snake_case (``fakeMrn`` -> ``fake_mrn``)."""
    return _CAMEL_BOUNDARY.sub('_', str(name)).lower()


def redact_string(text: Any, enabled: bool = True) -> Any:
    """
    Replace PHI-shaped substrings with ``[REDACTED_<TYPE>]`` placeholders.

    Non-string input is returned unchanged.

    Example:
        >>> redact_string('SSN 123-45-6789, email a@b.co')
        'SSN [REDACTED_SSN], email [REDACTED_EMAIL]'
    """
    if not enabled or not isinstance(text, str):
        return text

    for label, pattern in PATTERNS:
        text = pattern.sub(f'[REDACTED_{label}]', text)
    return text


def redact_object(
    value: Any,
    enabled: bool = True,
    preserve_structure: bool = False,
    custom_fields: Iterable[str] = (),
) -> Any:
    """
    Recursively redact a structure of dicts, lists and scalars.

    - Keys listed in SENSITIVE_FIELDS (or ``custom_fields``) have their
      value replaced wholesale: ``[REDACTED]``, or ``[REDACTED_<KEY>]``
      when ``preserve_structure`` is set.
    - Other string values are scanned with ``redact_string``.
    - Numbers, booleans and ``None`` pass through.

    Args:
        value: Arbitrary JSON-like data
        enabled: When False the input is returned as-is
        preserve_structure: Keep the field name visible in the placeholder
        custom_fields: Extra field names to treat as sensitive

    Returns:
        A redacted copy of ``value``
    """
    if not enabled:
        return value

    sensitive = SENSITIVE_FIELDS | {normalize_field_name(f) for f in custom_fields}
    return _redact(value, sensitive, preserve_structure)


def _redact(value, sensitive, preserve_structure):
    if isinstance(value, str):
        return redact_string(value)

    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if normalize_field_name(key) in sensitive:
                result[key] = f'[REDACTED_{str(key).upper()}]' if preserve_structure else REDACTED
            else:
                result[key] = _redact(item, sensitive, preserve_structure)
        return result

    if isinstance(value, list):
        return [_redact(item, sensitive, preserve_structure) for item in value]

    if isinstance(value, tuple):
        return tuple(_redact(item, sensitive, preserve_structure) for item in value)

    return value


def mask_email(email: Any) -> str:
    """
    Mask an email address for display in logs.

    ``john.doe@example.com`` -> ``jo***@example.com``; local parts of two
    characters or fewer collapse to ``***``.
    """
    if not isinstance(email, str) or email.count('@') != 1:
        return '[INVALID_EMAIL]'

    local, domain = email.split('@')
    if len(local) > 2:
        return f'{local[:2]}***@{domain}'
    return f'***@{domain}'


def mask_phone(phone: Any) -> str:
    """Mask a phone number keeping only the last four digits."""
    if not isinstance(phone, str):
        return '[REDACTED_PHONE]'

    digits = re.sub(r'\D', '', phone)
    if len(digits) < 4:
        return '[REDACTED_PHONE]'
    return f'***-***-{digits[-4:]}'


def safe_log_payload(obj: Any, enabled: Optional[bool] = None) -> Any:
    """
    Redact ``obj`` for logging, honouring the LOG_REDACTION_ENABLED setting.
    """
    if enabled is None:
        enabled = getattr(settings, 'LOG_REDACTION_ENABLED', True)
    return redact_object(obj, enabled=enabled, preserve_structure=True)
