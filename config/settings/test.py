"""
Test settings for CompuCar Platform
Fast, isolated testing environment.
"""

import tempfile
from pathlib import Path

from .base import *  # noqa: F403

# ===============================================================================
# TEST FLAGS
# ===============================================================================

DEBUG = False

# ===============================================================================
# TEST DATABASE (In-memory for speed)
# ===============================================================================

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "OPTIONS": {
            "timeout": 20,
        },
    }
}

# ===============================================================================
# TEST CACHE
# ===============================================================================

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "test-cache",
    }
}

# ===============================================================================
# TEST EMAIL BACKEND
# ===============================================================================

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

# ===============================================================================
# PASSWORD HASHER (Fast for tests)
# ===============================================================================

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",  # Fast but insecure (test only)
]

# ===============================================================================
# MEDIA (Throwaway directory for uploaded tuning files)
# ===============================================================================

MEDIA_ROOT = Path(tempfile.mkdtemp(prefix="compucar-test-media-"))
TUNING_MAX_UPLOAD_SIZE = 1024 * 1024

# ===============================================================================
# LOGGING (Minimal for tests)
# ===============================================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "root": {
        "handlers": ["null"],
        "level": "WARNING",
    },
    "loggers": {
        "apps": {
            "handlers": ["null"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}

# ===============================================================================
# LOCALIZATION (English for tests)
# ===============================================================================

LANGUAGE_CODE = "en-us"

# ===============================================================================
# SECURITY (Relaxed for tests)
# ===============================================================================

SECRET_KEY = "django-test-key-not-secure"  # noqa: S105
ALLOWED_HOSTS = ["testserver", "localhost", "127.0.0.1"]

TESTING = True

# ===============================================================================
# EXTERNAL SERVICES (Disabled in tests)
# ===============================================================================

API_TIMEOUTS = {
    "REQUEST_TIMEOUT": 5,
    "MAX_RETRIES": 1,
    "YALIDINE_TIMEOUT": 5,
    "TELEGRAM_TIMEOUT": 5,
}

YALIDINE_API_BASE = "https://yalidine.test/v1/"
YALIDINE_API_ID = "test-api-id"
YALIDINE_API_TOKEN = "test-api-token"  # noqa: S105
YALIDINE_FROM_WILAYA_ID = 16
YALIDINE_WEBHOOK_SECRET = "test-yalidine-secret"  # noqa: S105

TELEGRAM_SUPER_ADMIN_BOT_TOKEN = ""
TELEGRAM_SUPER_ADMIN_CHAT_ID = ""
TELEGRAM_SUPER_ADMIN_ENABLED = False
TELEGRAM_FILE_ADMIN_BOT_TOKEN = ""
TELEGRAM_FILE_ADMIN_CHAT_ID = ""
TELEGRAM_FILE_ADMIN_ENABLED = False
TELEGRAM_CUSTOMER_BOT_TOKEN = ""
TELEGRAM_CUSTOMER_CHAT_ID = ""
TELEGRAM_CUSTOMER_ENABLED = False
TELEGRAM_WEBHOOK_SECRET = "test-telegram-secret"  # noqa: S105

SHIPPING_PRICE_TOLERANCE_DZD = 0
SITE_URL = "http://testserver"
REALTIME_KEEPALIVE_SECONDS = 1

# ===============================================================================
# TASK QUEUE (Synchronous for tests)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    "workers": 1,
    "sync": True,
}

# ===============================================================================
# RATE LIMITING (Off for tests, throttling tested explicitly)
# ===============================================================================

RATELIMIT_ENABLE = False
