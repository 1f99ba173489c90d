"""
archalley_config/asgi.py
ASGI config - for async support / Uvicorn.
"""
import os
from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "archalley_config.settings.development")
application = get_asgi_application()
