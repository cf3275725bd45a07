"""
Django settings for the firewood storefront - Base Configuration
French firewood and heating supplies shop: catalog, cart, bank-transfer orders.
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
    'django_filters',
    'django_extensions',
]

LOCAL_APPS: list[str] = [
    'apps.settings',       # ⚙️ Site settings singleton (label: site_settings)
    'apps.products',
    'apps.cart',
    'apps.orders',
    'apps.newsletter',
    'apps.tickets',
    'apps.notifications',  # 📧 Transactional e-mail + templates
    'apps.api',
]

INSTALLED_APPS: list[str] = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE: list[str] = [
    'apps.common.middleware.RequestIDMiddleware',
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
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
        'NAME': os.environ.get('DB_NAME', 'boisdechauffage'),
        'USER': os.environ.get('DB_USER', 'boisdechauffage'),
        'PASSWORD': os.environ.get('DB_PASSWORD', 'development_password'),
        'HOST': os.environ.get('DB_HOST', 'localhost'),
        'PORT': os.environ.get('DB_PORT', '5432'),
        'CONN_MAX_AGE': 60,
        'OPTIONS': {
            'application_name': 'boisdechauffage_shop',
        },
    }
}

# ===============================================================================
# AUTHENTICATION (staff only, customers check out as guests)
# ===============================================================================

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 12,
        }
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# ===============================================================================
# INTERNATIONALIZATION & LOCALIZATION
# ===============================================================================

LANGUAGE_CODE = 'fr'
TIME_ZONE = 'Europe/Paris'
USE_I18N = True
USE_TZ = True

# ===============================================================================
# STATIC FILES & MEDIA
# ===============================================================================

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

STORAGES: dict[str, dict[str, Any]] = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.ManifestStaticFilesStorage',
    },
}

# Product images and payment receipts
MEDIA_URL = '/media/'
MEDIA_ROOT = Path(os.environ.get('MEDIA_ROOT', BASE_DIR / 'media'))

# ===============================================================================
# CACHE CONFIGURATION (Redis)
# ===============================================================================

REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

CACHES = {
    'default': {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
        'KEY_PREFIX': 'boisdechauffage',
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
        }
    }
}

# ===============================================================================
# SESSION & COOKIE SETTINGS
# ===============================================================================

# The shopping cart lives in the session
SESSION_ENGINE = 'django.contrib.sessions.backends.cache'
SESSION_CACHE_ALIAS = 'default'
SESSION_COOKIE_AGE = 60 * 60 * 24 * 14  # 2 weeks, carts survive a weekend
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_NAME = 'boisdechauffage_sessionid'
# Note: SESSION_COOKIE_SECURE = True set in prod.py

CSRF_COOKIE_HTTPONLY = True
CSRF_TRUSTED_ORIGINS: list[str] = [
    origin for origin in os.environ.get('CSRF_TRUSTED_ORIGINS', '').split(',') if origin
]

# ===============================================================================
# ADDITIONAL SECURITY SETTINGS
# ===============================================================================

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = 'DENY'

# File upload security
FILE_UPLOAD_MAX_MEMORY_SIZE = 10485760  # 10MB
DATA_UPLOAD_MAX_MEMORY_SIZE = 10485760  # 10MB
FILE_UPLOAD_PERMISSIONS = 0o644

# Client IP detection: REMOTE_ADDR unless the request came through one of these
IPWARE_TRUSTED_PROXY_LIST: list[str] = [
    proxy for proxy in os.environ.get('IPWARE_TRUSTED_PROXY_LIST', '').split(',') if proxy
]

# ===============================================================================
# DJANGO REST FRAMEWORK
# ===============================================================================

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    # Public storefront endpoints; admin views declare IsStaffUser themselves
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_PAGINATION_CLASS': 'apps.api.core.pagination.AdminResultsSetPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'EXCEPTION_HANDLER': 'apps.api.core.responses.api_exception_handler',
    'DEFAULT_THROTTLE_CLASSES': [
        'rest_framework.throttling.AnonRateThrottle',
        'rest_framework.throttling.UserRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'anon': '1000/hour',
        'user': '5000/hour',
        'catalog': '600/hour',
        'order_create': '10/hour',
        'contact': '10/hour',
        'newsletter': '20/hour',
    },
}

# ===============================================================================
# EMAIL CONFIGURATION
# ===============================================================================

EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_USE_TLS = True
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'contact@boisdechauffage.fr')

# Public site and back-office base URLs, used in e-mail links
SITE_URL = os.environ.get('SITE_URL', 'http://localhost:3000').rstrip('/')
ADMIN_URL = os.environ.get('ADMIN_URL', 'http://localhost:8000/admin').rstrip('/')

# ===============================================================================
# SHOP BUSINESS CONFIGURATION 🪵
# ===============================================================================

# Cart summary: French VAT 20%, flat delivery below the minimum order
CART_TAX_RATE = '0.20'
CART_STANDARD_SHIPPING_CENTS = 5000
CART_MIN_ORDER_CENTS = 5000

# Checkout shipping when no zone matches
ORDER_STANDARD_SHIPPING_CENTS = 1500

# Payment receipts uploaded by customers after a bank transfer
RECEIPT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
RECEIPT_ALLOWED_CONTENT_TYPES: list[str] = [
    'image/*',
    'application/pdf',
]

# Contact form
CONTACT_ANTISPAM_WINDOW_MINUTES = 10
CONTACT_MAIN_EMAIL = os.environ.get('CONTACT_MAIN_EMAIL', 'contact@boisdechauffage.fr')
CONTACT_TEAM_EMAILS: dict[str, Any] = {
    'main': CONTACT_MAIN_EMAIL,
    'devis': [os.environ.get('CONTACT_SALES_EMAIL', 'commercial@boisdechauffage.fr')],
    'livraison': [os.environ.get('CONTACT_DELIVERY_EMAIL', 'livraison@boisdechauffage.fr')],
    'commande': [os.environ.get('CONTACT_SALES_EMAIL', 'commercial@boisdechauffage.fr')],
    'support': [os.environ.get('CONTACT_SUPPORT_EMAIL', 'support@boisdechauffage.fr')],
}

# Newsletter double opt-in
NEWSLETTER_CONFIRMATION_MAX_AGE_DAYS = 7

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

# Signs newsletter confirmation and unsubscribe tokens
NEWSLETTER_SECRET = os.environ.get('NEWSLETTER_SECRET') or SECRET_KEY


def validate_production_secret_key() -> None:
    """Validate SECRET_KEY meets production security requirements"""
    if SECRET_KEY and SECRET_KEY.startswith('django-insecure-'):
        raise ValueError(
            "🔥 CRITICAL SECURITY ERROR: Cannot use insecure SECRET_KEY in production! "
            "Generate a secure key: python -c 'from django.core.management.utils import get_random_secret_key; print(get_random_secret_key())'"
        )

# ===============================================================================
# LOGGING (overridden per environment)
# ===============================================================================

LOGGING: dict[str, Any] = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}
