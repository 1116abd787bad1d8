"""
Django settings for the storefront product page engine.

The engine keeps no persistent state, so no database is configured.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-insecure-pdp-engine-key')

DEBUG = os.environ.get('DJANGO_DEBUG', '1') == '1'

ALLOWED_HOSTS = os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'apps.pdp',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'config.urls'

DATABASES = {}

LANGUAGE_CODE = 'tr-tr'
TIME_ZONE = 'Europe/Istanbul'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'COERCE_DECIMAL_TO_STRING': True,
    'UNAUTHENTICATED_USER': None,
}

# Variant & offer resolution engine
PDP_ENGINE = {
    'LOW_STOCK_THRESHOLD': 10,
    'BADGE_LIMIT': 10,
    'COMPACT_BADGE_LIMIT': 2,
    'AUTO_PICK_STRATEGY': 'single',
    'TOGGLE_DESELECT': True,
    'MAX_QUANTITY': 10,
    'SELLERS_API_URL': os.environ.get('PDP_SELLERS_API_URL', 'http://localhost:8000/api'),
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'apps.pdp': {
            'handlers': ['console'],
            'level': os.environ.get('PDP_LOG_LEVEL', 'INFO'),
            'propagate': True,
        },
    },
}
