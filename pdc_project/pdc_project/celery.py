"""
Celery application for the PDC Project.

Usage:
    # Start worker
    celery -A pdc_project worker -l INFO

    # Start beat scheduler (due sweep and deposit reminders)
    celery -A pdc_project beat -l INFO
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pdc_project.settings')

app = Celery('pdc_project')

# Load config from Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
