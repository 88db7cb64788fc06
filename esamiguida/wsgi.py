"""
WSGI config for the Esami Guida booking system.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'esamiguida.settings.production')

application = get_wsgi_application()
