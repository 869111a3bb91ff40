"""
WSGI config for the PDC Project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pdc_project.settings')

application = get_wsgi_application()
