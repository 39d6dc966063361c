"""Test settings for HostBook project.

SQLite on disk (threads in the concurrency tests need a shared database),
eager Celery, fast password hashing and a sandboxed payment gateway.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
        'TEST': {
            'NAME': BASE_DIR / 'test-db.sqlite3',  # noqa: F405
        },
        'OPTIONS': {
            'timeout': 20,
            'transaction_mode': 'IMMEDIATE',
        },
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

BOOKING_LOCK_TIMEOUT = 5
BOOKING_DEFAULT_CURRENCY = 'USD'

PAYMENT_GATEWAY_URL = ''
PAYMENT_GATEWAY_API_KEY = ''
PAYMENT_WEBHOOK_SECRET = ''
PAYMENT_GATEWAY_SANDBOX = True

LOGGING["root"]["level"] = "CRITICAL"  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405
