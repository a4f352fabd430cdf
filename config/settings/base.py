"""
Django settings for CompuCar Platform - Base Configuration
Algerian auto parts shop with COD checkout and an ECU tuning file service.
"""

import os
from pathlib import Path
from typing import Any

# ===============================================================================
# CORE DJANGO SETTINGS
# ===============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Application definition
DJANGO_APPS: list[str] = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
]

THIRD_PARTY_APPS: list[str] = [
    'rest_framework',
    'django_q',
]

LOCAL_APPS: list[str] = [
    'apps.common',
    'apps.users',
    'apps.products',
    'apps.shipping',       # 🚚 Parcel packing & Yalidine quotes
    'apps.tuning',         # 🔧 ECU tuning file workflow
    'apps.notifications',
    'apps.integrations',   # 🔌 Telegram bots & carrier webhooks
    'apps.orders',
]

INSTALLED_APPS: list[str] = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE: list[str] = [
    'apps.common.middleware.RequestIDMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.locale.LocaleMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'config.wsgi.application'
ASGI_APPLICATION = 'config.asgi.application'

# ===============================================================================
# DATABASE CONFIGURATION
# ===============================================================================

DATABASES: dict[str, dict[str, Any]] = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.environ.get('DB_NAME', 'compucar'),
        'USER': os.environ.get('DB_USER', 'compucar'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'development_password'),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
        'CONN_MAX_AGE': 60,  # Database connection pooling
        'OPTIONS': {
            'application_name': 'compucar_platform',
        },
    }
}

# ===============================================================================
# AUTHENTICATION & AUTHORIZATION
# ===============================================================================

AUTH_USER_MODEL = 'users.User'

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 10,
        }
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.Argon2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2PasswordHasher',
    'django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher',
]

# ===============================================================================
# INTERNATIONALIZATION & LOCALIZATION
# ===============================================================================

LANGUAGE_CODE = 'fr'  # Storefront and back office are French first
TIME_ZONE = 'Africa/Algiers'
USE_I18N = True
USE_TZ = True

LANGUAGES = [
    ('fr', 'Français'),
    ('ar', 'العربية'),
    ('en', 'English'),
]

LOCALE_PATHS = [
    BASE_DIR / 'locale',
]

# ===============================================================================
# STATIC FILES & MEDIA
# ===============================================================================

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

MEDIA_URL = '/media/'
MEDIA_ROOT = Path(os.environ.get('MEDIA_ROOT', BASE_DIR / 'media'))

# ===============================================================================
# CACHE CONFIGURATION
# ===============================================================================

# Database cache by default; rate limits and carrier quote caching live here
REDIS_URL = os.environ.get('REDIS_URL', '')

if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
            'KEY_PREFIX': 'compucar',
            'TIMEOUT': 300,
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.db.DatabaseCache',
            'LOCATION': 'django_cache_table',
            'KEY_PREFIX': 'compucar',
            'TIMEOUT': 300,
            'VERSION': 1,
            'OPTIONS': {
                'MAX_ENTRIES': 10000,
                'CULL_FREQUENCY': 3,
            },
        }
    }

# ===============================================================================
# SESSION & COOKIE SETTINGS
# ===============================================================================

SESSION_ENGINE = 'django.contrib.sessions.backends.db'
SESSION_COOKIE_AGE = 86400  # 24 hours
SESSION_COOKIE_HTTPONLY = True
# Note: SESSION_COOKIE_SECURE = True set in prod.py

CSRF_COOKIE_HTTPONLY = True
CSRF_TRUSTED_ORIGINS: list[str] = [
    origin.strip() for origin in os.environ.get('CSRF_TRUSTED_ORIGINS', '').split(',') if origin.strip()
]

# ===============================================================================
# ADDITIONAL SECURITY SETTINGS
# ===============================================================================

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# Tuning files are ECU dumps, a few MB each
TUNING_MAX_UPLOAD_SIZE = int(os.environ.get('TUNING_MAX_UPLOAD_SIZE', str(20 * 1024 * 1024)))
FILE_UPLOAD_MAX_MEMORY_SIZE = 10485760  # 10MB, larger uploads spool to disk
DATA_UPLOAD_MAX_MEMORY_SIZE = TUNING_MAX_UPLOAD_SIZE + 1048576
FILE_UPLOAD_PERMISSIONS = 0o644

EMAIL_USE_TLS = True
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'noreply@compucar.dz')

# ===============================================================================
# DJANGO REST FRAMEWORK
# ===============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'apps.common.pagination.StandardResultsSetPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_THROTTLE_RATES': {
        'shipping_lookup': '120/min',
        'shipping_calculate': '30/min',
        'checkout': '10/min',
        'tuning_upload': '20/hour',
    },
}

# ===============================================================================
# RATE LIMITING (webhook endpoints) ⏱️
# ===============================================================================

RATELIMIT_USE_CACHE = 'default'
RATELIMIT_ENABLE = True

# ===============================================================================
# DJANGO-Q2 TASK QUEUE CONFIGURATION
# ===============================================================================

Q_CLUSTER_BASE = {
    'name': 'compucar-tasks',
    'timeout': 120,            # Telegram and carrier calls are short
    'retry': 300,              # Must be larger than timeout
    'save_limit': 1000,
    'catch_up': False,
    'orm': 'default',          # Use Django ORM as broker
    'bulk': 10,
    'queue_limit': 100,
}

Q_CLUSTER = {
    **Q_CLUSTER_BASE,
    'workers': 2,
    'recycle': 500,
    'sync': False,
}

# ===============================================================================
# EXTERNAL API TIMEOUTS
# ===============================================================================

API_TIMEOUTS = {
    'REQUEST_TIMEOUT': int(os.environ.get('API_REQUEST_TIMEOUT', '30')),
    'MAX_RETRIES': int(os.environ.get('API_MAX_RETRIES', '3')),
    'YALIDINE_TIMEOUT': int(os.environ.get('YALIDINE_TIMEOUT', '15')),
    'TELEGRAM_TIMEOUT': int(os.environ.get('TELEGRAM_TIMEOUT', '10')),
}

# ===============================================================================
# YALIDINE SHIPPING 🚚
# ===============================================================================

YALIDINE_API_BASE = os.environ.get('YALIDINE_API_BASE', 'https://api.yalidine.app/v1/')
YALIDINE_API_ID = os.environ.get('YALIDINE_API_ID', '')
YALIDINE_API_TOKEN = os.environ.get('YALIDINE_API_TOKEN', '')
YALIDINE_FROM_WILAYA_ID = int(os.environ.get('YALIDINE_FROM_WILAYA_ID', '16'))  # Alger
YALIDINE_WEBHOOK_SECRET = os.environ.get('YALIDINE_WEBHOOK_SECRET', '')

# Difference tolerated between the price shown at checkout and the server quote
SHIPPING_PRICE_TOLERANCE_DZD = int(os.environ.get('SHIPPING_PRICE_TOLERANCE_DZD', '0'))

# ===============================================================================
# TELEGRAM BOTS 🤖
# ===============================================================================

TELEGRAM_SUPER_ADMIN_BOT_TOKEN = os.environ.get('TELEGRAM_SUPER_ADMIN_BOT_TOKEN', '')
TELEGRAM_SUPER_ADMIN_CHAT_ID = os.environ.get('TELEGRAM_SUPER_ADMIN_CHAT_ID', '')
TELEGRAM_SUPER_ADMIN_ENABLED = os.environ.get('TELEGRAM_SUPER_ADMIN_ENABLED', 'false').lower() == 'true'

TELEGRAM_FILE_ADMIN_BOT_TOKEN = os.environ.get('TELEGRAM_FILE_ADMIN_BOT_TOKEN', '')
TELEGRAM_FILE_ADMIN_CHAT_ID = os.environ.get('TELEGRAM_FILE_ADMIN_CHAT_ID', '')
TELEGRAM_FILE_ADMIN_ENABLED = os.environ.get('TELEGRAM_FILE_ADMIN_ENABLED', 'false').lower() == 'true'

TELEGRAM_CUSTOMER_BOT_TOKEN = os.environ.get('TELEGRAM_CUSTOMER_BOT_TOKEN', '')
TELEGRAM_CUSTOMER_CHAT_ID = os.environ.get('TELEGRAM_CUSTOMER_CHAT_ID', '')
TELEGRAM_CUSTOMER_ENABLED = os.environ.get('TELEGRAM_CUSTOMER_ENABLED', 'false').lower() == 'true'

# Compared with the X-Telegram-Bot-Api-Secret-Token header set via setWebhook
TELEGRAM_WEBHOOK_SECRET = os.environ.get('TELEGRAM_WEBHOOK_SECRET', '')

# ===============================================================================
# NOTIFICATIONS & SITE
# ===============================================================================

SITE_URL = os.environ.get('SITE_URL', 'http://localhost:8000')
REALTIME_KEEPALIVE_SECONDS = int(os.environ.get('REALTIME_KEEPALIVE_SECONDS', '30'))

# ===============================================================================
# LOGGING CONFIGURATION
# ===============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname:<8} {name:<40} {message}',
            'datefmt': '%Y-%m-%d %H:%M:%S',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}

# ===============================================================================
# DEFAULT AUTO FIELD
# ===============================================================================

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ===============================================================================
# SECURITY SETTINGS (Base - override in prod.py)
# ===============================================================================

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY')
if not SECRET_KEY:
    # Development fallback - never use this in production
    import warnings
    warnings.warn(
        "🚨 SECURITY WARNING: Using default SECRET_KEY. "
        "Set DJANGO_SECRET_KEY environment variable for production!",
        UserWarning,
        stacklevel=2
    )
    SECRET_KEY = 'django-insecure-dev-key-only-change-in-production-or-tests'  # noqa: S105


def validate_production_secret_key() -> None:
    """Validate SECRET_KEY meets production security requirements"""
    if SECRET_KEY and SECRET_KEY.startswith('django-insecure-'):
        raise ValueError(
            "🔥 CRITICAL SECURITY ERROR: Cannot use insecure SECRET_KEY in production! "
            "Generate a secure key: python -c 'from django.core.management.utils import get_random_secret_key; print(get_random_secret_key())'"
        )
