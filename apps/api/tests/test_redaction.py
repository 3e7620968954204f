"""
Tests for PHI/PII redaction helpers.
"""
import copy

import pytest
from django.test import override_settings

from apps.core.redaction import (
    mask_email,
    mask_phone,
    normalize_field_name,
    redact_object,
    redact_string,
    safe_log_payload,
)


class TestRedactString:

    @pytest.mark.parametrize('text,expected', [
        ('SSN 123-45-6789', 'SSN [REDACTED_SSN]'),
        ('Chart TEST-0042 updated', 'Chart [REDACTED_MRN] updated'),
        ('Call +1-519-555-1234 today', 'Call [REDACTED_PHONE] today'),
        ('Mail patient@example.com', 'Mail [REDACTED_EMAIL]'),
        ('Born 1985-03-14', 'Born [REDACTED_DOB]'),
    ])
    def test_each_pattern_class(self, text, expected):
        assert redact_string(text) == expected

    def test_multiple_matches_in_one_string(self):
        result = redact_string('a@b.co and c@d.org, SSN 123-45-6789')

        assert result == '[REDACTED_EMAIL] and [REDACTED_EMAIL], SSN [REDACTED_SSN]'

    def test_clean_text_is_unchanged(self):
        assert redact_string('Booking confirmed for 09:00') == 'Booking confirmed for 09:00'

    def test_disabled_is_identity(self):
        text = 'patient@example.com 123-45-6789'
        assert redact_string(text, enabled=False) == text

    @pytest.mark.parametrize('value', [None, 42, 3.5, True, ['a@b.com']])
    def test_non_string_passes_through(self, value):
        assert redact_string(value) is value


class TestRedactObject:

    def test_sensitive_key_generic_placeholder(self):
        assert redact_object({'email': 'a@b.com'}) == {'email': '[REDACTED]'}

    def test_sensitive_key_preserve_structure(self):
        result = redact_object({'email': 'a@b.com'}, preserve_structure=True)

        assert result == {'email': '[REDACTED_EMAIL]'}

    def test_camel_case_keys_are_normalised(self):
        result = redact_object({'fakeMrn': 'TEST-0001', 'smsNumber': '+1-519-555-1234'}, preserve_structure=True)

        assert result == {'fakeMrn': '[REDACTED_FAKEMRN]', 'smsNumber': '[REDACTED_SMSNUMBER]'}

    def test_non_sensitive_strings_are_scanned(self):
        result = redact_object({'note': 'reach me at patient@example.com'})

        assert result == {'note': 'reach me at [REDACTED_EMAIL]'}

    def test_nested_containers_and_lists_of_dicts(self):
        value = {
            'booking': {
                'time': '09:00',
                'patients': [
                    {'name': 'Alex', 'dob': '1985-03-14'},
                    {'name': 'Sam', 'phone': '+1-519-555-0000'},
                ],
            },
            'count': 2,
            'confirmed': False,
            'reason': None,
        }

        result = redact_object(value)

        assert result == {
            'booking': {
                'time': '09:00',
                'patients': [
                    {'name': 'Alex', 'dob': '[REDACTED]'},
                    {'name': 'Sam', 'phone': '[REDACTED]'},
                ],
            },
            'count': 2,
            'confirmed': False,
            'reason': None,
        }

    def test_custom_fields(self):
        result = redact_object({'insuranceId': 'X1', 'ok': 'yes'}, custom_fields=['insurance_id'])

        assert result == {'insuranceId': '[REDACTED]', 'ok': 'yes'}

    def test_disabled_is_deep_equal_identity(self):
        value = {'email': 'a@b.com', 'items': [{'ssn': '123-45-6789'}]}

        assert redact_object(value, enabled=False) == value

    def test_input_is_not_mutated(self):
        value = {'email': 'a@b.com', 'items': [{'note': 'x@y.com'}]}
        before = copy.deepcopy(value)

        redact_object(value, preserve_structure=True)

        assert value == before

    def test_none_and_scalars(self):
        assert redact_object(None) is None
        assert redact_object(7) == 7


class TestMasks:

    def test_mask_email(self):
        assert mask_email('patient@example.com') == 'pa***@example.com'

    def test_mask_email_short_local_part(self):
        assert mask_email('a@example.com') == '***@example.com'

    @pytest.mark.parametrize('value', [None, 'not-an-email', 'a@b@c'])
    def test_mask_email_malformed(self, value):
        assert mask_email(value) == '[INVALID_EMAIL]'

    def test_mask_phone(self):
        assert mask_phone('+1-519-555-1234') == '***-***-1234'

    @pytest.mark.parametrize('value', [None, '12', 5195551234])
    def test_mask_phone_malformed(self, value):
        assert mask_phone(value) == '[REDACTED_PHONE]'


class TestHelpers:

    @pytest.mark.parametrize('name,expected', [
        ('fakeMrn', 'fake_mrn'),
        ('dateOfBirth', 'date_of_birth'),
        ('email', 'email'),
        ('SMS', 'sms'),
    ])
    def test_normalize_field_name(self, name, expected):
        assert normalize_field_name(name) == expected

    def test_safe_log_payload_uses_field_placeholders(self):
        assert safe_log_payload({'email': 'a@b.com'}) == {'email': '[REDACTED_EMAIL]'}

    @override_settings(LOG_REDACTION_ENABLED=False)
    def test_safe_log_payload_honours_setting(self):
        assert safe_log_payload({'email': 'a@b.com'}) == {'email': 'a@b.com'}
