"""
Celery configuration for Taskflow.

Workers pick up the per-app ``tasks.py`` modules (notifications, bulk
updates, report generation). Only used when TASK_BACKEND=celery.
"""
import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
