# config/wsgi.py

import os

from django.core.wsgi import get_wsgi_application

# Settings de produção por padrão (gunicorn e afins)
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

# Sob WSGI não há limite de tempo por request (ver RequestTimeoutMiddleware)
application = get_wsgi_application()
