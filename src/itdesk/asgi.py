"""
ASGI config for itdesk project.

Serves the admin site; the service layer is consumed in-process.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "itdesk.settings")

application = get_asgi_application()
