"""
==============================================================================
STOREFRONT - DJANGO SETTINGS
==============================================================================
Django settings for the Storefront back-office and checkout API.

Configuration Overview:
    - Database: SQLite by default, MySQL when DB_ENGINE points at it
    - Auth: Custom User Model (accounts.CustomUser), email login
    - Payments: PayTR iframe API (merchant credentials from environment)
    - Apps: accounts, core, checkout, analytics, reports

All secrets are read from environment variables. A local `.env` file is
loaded first so development machines do not need exported variables.

Author: Storefront Development Team
==============================================================================
"""

from decimal import Decimal
from pathlib import Path
import os

from dotenv import load_dotenv


# ==============================================================================
# PATH CONFIGURATION
# ==============================================================================
# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    """Read a boolean flag such as DJANGO_DEBUG=1 / true / yes."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# ==============================================================================
# SECURITY SETTINGS
# ==============================================================================
# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    'DJANGO_SECRET_KEY',
    'django-insecure-storefront-development-key-change-in-production'
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env_bool('DJANGO_DEBUG', True)

ALLOWED_HOSTS = os.environ.get(
    'DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,0.0.0.0,testserver'
).split(',')

# Public URL of the shop, used for payment return URLs and email links
SITE_URL = os.environ.get('SITE_URL', 'http://localhost:8000').rstrip('/')


# ==============================================================================
# APPLICATION DEFINITION
# ==============================================================================
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # ==========================================================================
    # STOREFRONT APPS
    # ==========================================================================
    'accounts.apps.AccountsConfig',    # Customers, admins, addresses
    'core.apps.CoreConfig',            # Catalog, cart, orders, coupons, inventory
    'checkout.apps.CheckoutConfig',    # Checkout wizard, PayTR, payment polling
    'analytics.apps.AnalyticsConfig',  # Sales analytics for the dashboard
    'reports.apps.ReportsConfig',      # PDF invoices
]

# Middleware - runs on every request/response cycle
MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'storefront.urls'

# Only the Django admin renders templates; the shop itself is a JSON API
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

WSGI_APPLICATION = 'storefront.wsgi.application'


# ==============================================================================
# DATABASE CONFIGURATION
# ==============================================================================
# SQLite is used unless DB_ENGINE says otherwise. For MySQL install the
# `mysql` extra and set:
#   DB_ENGINE=django.db.backends.mysql DB_NAME=storefront_db DB_USER=... etc.
DB_ENGINE = os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3')

if DB_ENGINE.endswith('sqlite3'):
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': os.environ.get('DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': os.environ.get('DB_NAME', 'storefront_db'),
            'USER': os.environ.get('DB_USER', 'root'),
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '3306'),
            'OPTIONS': {
                'charset': 'utf8mb4',
                'init_command': "SET sql_mode='STRICT_TRANS_TABLES'",
            },
        }
    }


# ==============================================================================
# CUSTOM USER MODEL
# ==============================================================================
# This MUST be set before running the first migration!
AUTH_USER_MODEL = 'accounts.CustomUser'


# ==============================================================================
# PASSWORD VALIDATION
# ==============================================================================
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
        'OPTIONS': {
            'min_length': 8,
        }
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Password reset links stay valid for one hour
PASSWORD_RESET_TIMEOUT = 3600


# ==============================================================================
# INTERNATIONALIZATION
# ==============================================================================
LANGUAGE_CODE = 'tr'

TIME_ZONE = 'Europe/Istanbul'

USE_I18N = True
USE_TZ = True


# ==============================================================================
# STATIC & MEDIA FILES
# ==============================================================================
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# Uploaded product/category/hero images
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

# Upload limits for the admin image endpoint
UPLOAD_MAX_BYTES = 10 * 1024 * 1024
UPLOAD_MAX_DIMENSION = 1600
UPLOAD_TYPES = ['products', 'categories', 'hero', 'branding']


# ==============================================================================
# DEFAULT PRIMARY KEY FIELD TYPE
# ==============================================================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ==============================================================================
# EMAIL CONFIGURATION
# ==============================================================================
# Console backend prints emails to the terminal unless SMTP is configured
EMAIL_BACKEND = os.environ.get(
    'EMAIL_BACKEND', 'django.core.mail.backends.console.EmailBackend'
)
EMAIL_HOST = os.environ.get('EMAIL_HOST', 'localhost')
EMAIL_PORT = int(os.environ.get('EMAIL_PORT', '587'))
EMAIL_HOST_USER = os.environ.get('EMAIL_HOST_USER', '')
EMAIL_HOST_PASSWORD = os.environ.get('EMAIL_HOST_PASSWORD', '')
EMAIL_USE_TLS = env_bool('EMAIL_USE_TLS', True)
DEFAULT_FROM_EMAIL = os.environ.get('DEFAULT_FROM_EMAIL', 'shop@storefront.local')

# Where "new order" notifications go
ADMIN_NOTIFICATION_EMAIL = os.environ.get(
    'ADMIN_NOTIFICATION_EMAIL', 'orders@storefront.local'
)


# ==============================================================================
# SESSION CONFIGURATION
# ==============================================================================
# Carts and checkout wizards live in the session; keep them for two weeks
SESSION_COOKIE_AGE = 14 * 24 * 60 * 60

SESSION_SAVE_EVERY_REQUEST = True


# ==============================================================================
# CACHE CONFIGURATION
# ==============================================================================
# Catalog listings are cached per resource and invalidated on admin writes
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'storefront-catalog',
    }
}

CATALOG_CACHE_TTL = 5 * 60


# ==============================================================================
# SHOP CONFIGURATION
# ==============================================================================
CURRENCY = 'TL'

# Orders at or above this subtotal ship for free
FREE_SHIPPING_THRESHOLD = Decimal('2500.00')

# Flat shipping fee below the threshold
SHIPPING_COST = Decimal('200.00')

# Variants at or below this stock show up in the low-stock report
LOW_STOCK_THRESHOLD = 5


# ==============================================================================
# PAYMENT (PAYTR) CONFIGURATION
# ==============================================================================
PAYTR_MERCHANT_ID = os.environ.get('PAYTR_MERCHANT_ID', '')
PAYTR_MERCHANT_KEY = os.environ.get('PAYTR_MERCHANT_KEY', '')
PAYTR_MERCHANT_SALT = os.environ.get('PAYTR_MERCHANT_SALT', '')
PAYTR_TEST_MODE = env_bool('PAYTR_TEST_MODE', True)
PAYTR_TOKEN_URL = 'https://www.paytr.com/odeme/api/get-token'
PAYTR_IFRAME_URL = 'https://www.paytr.com/odeme/guvenli/'
PAYTR_TIMEOUT_LIMIT = 30  # minutes the iframe session stays open
PAYTR_REQUEST_TIMEOUT = 20.0  # seconds for the token HTTP call

# Payment status polling (bounded, see checkout.poller)
PAYMENT_POLL_INTERVAL = 3.0
PAYMENT_POLL_MAX_ATTEMPTS = 100
PAYMENT_POLL_TIMEOUT = 5 * 60.0


# ==============================================================================
# AI CONTENT CONFIGURATION
# ==============================================================================
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
OPENAI_API_URL = os.environ.get(
    'OPENAI_API_URL', 'https://api.openai.com/v1/chat/completions'
)
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o')
OPENAI_TIMEOUT = 60.0


# ==============================================================================
# LOGGING CONFIGURATION
# ==============================================================================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': 'INFO',
        },
        'storefront': {
            'handlers': ['console'],
            'level': os.environ.get('STOREFRONT_LOG_LEVEL', 'DEBUG'),
        },
    },
}
