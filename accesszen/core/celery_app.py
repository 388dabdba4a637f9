## accesszen/core/celery_app.py

"""
Main Celery Application Configuration

Redis is the broker and result backend. Task modules are discovered from the
feature packages.
"""

# Third party imports
from celery import Celery

# Local imports
from accesszen.core.config import settings

# Create Celery Instance
app = Celery("accesszen", broker=settings.celery_broker, backend=settings.celery_backend)

app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,
    task_soft_time_limit=25 * 60,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

# Auto discover tasks.py modules
app.autodiscover_tasks([
    "accesszen.access_forms",
])

if __name__ == "__main__":
    app.start()
