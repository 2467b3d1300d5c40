import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'progress_project.settings')

app = Celery('progress_project')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
