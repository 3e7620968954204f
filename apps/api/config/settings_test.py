"""
Test settings: in-memory SQLite, local adapters, fast hashing.
"""
from .settings import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

PHI_STORAGE_ENABLED = False
LOG_REDACTION_ENABLED = True

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_RATES': {
        'anon': '10000/hour',
        'user': '10000/hour',
        'login': '10000/hour',
        'booking_submissions': '10000/hour',
    },
}

CLINIC_INTEGRATIONS = {
    **CLINIC_INTEGRATIONS,  # noqa: F405
    'SCHEDULING_ADAPTER': 'simulator',
    'NOTIFICATION_ADAPTER': 'console',
    'ADAPTER_TIMEOUT_SECONDS': 5.0,
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}
