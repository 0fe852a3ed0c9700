# config/asgi.py

import os

from django.core.asgi import get_asgi_application

# Configurar Django settings
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

# Sob ASGI o RequestTimeoutMiddleware aplica o limite de tempo por request
application = get_asgi_application()
