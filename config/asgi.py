"""
ASGI config for CompuCar Platform
The notification SSE stream holds connections open, so serve it from an ASGI worker.
"""

import os

from django.core.asgi import get_asgi_application

# Set default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.prod')

application = get_asgi_application()
