"""
WSGI config for the chat backend.

The live event channel needs ASGI (see asgi.py). WSGI is kept for running
the REST API and admin alone behind a traditional server such as gunicorn;
WebSocket clients cannot connect through it.

This file exposes the WSGI callable as a module-level variable named `application`.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
