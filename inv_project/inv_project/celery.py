import os

from celery import Celery

# ensure Django settings are set for Celery
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "inv_project.settings")

celery_app = Celery("inv_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# picks up trade_core.tasks
celery_app.autodiscover_tasks()
