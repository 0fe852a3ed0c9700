# config/settings/test.py

from .base import *

# === TESTES ===

DEBUG = False

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'taskboard-test-cache',
    }
}

# Hash rápido para acelerar a suíte
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

STORAGES['staticfiles'] = {
    'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
}

# Desabilitar logs em testes
LOGGING['handlers'] = {}
LOGGING['root'] = {'handlers': [], 'level': 'CRITICAL'}
LOGGING['loggers'] = {}

TASKBOARD['JWT_SECRET'] = 'test-secret'
TASKBOARD['AUTH_COOKIE_SECURE'] = False
