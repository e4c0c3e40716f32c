"""Celery configuration for notification delivery."""

from celery.schedules import crontab
from kombu import Exchange, Queue

from core.config import settings

broker_url = settings.celery_broker_url
result_backend = settings.celery_result_backend

# Task routing and serialization
task_serializer = "json"
accept_content = ["json"]
result_serializer = "json"
timezone = "UTC"
enable_utc = True

# Task execution settings
task_track_started = True
task_time_limit = 10 * 60
task_soft_time_limit = 8 * 60

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000

# Queue configuration with routing
default_exchange = Exchange("vagas", type="direct")
task_default_queue = "default"
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("notifications", exchange=default_exchange, routing_key="notifications"),
)

task_routes = {
    "workers.tasks.notifications.*": {"queue": "notifications"},
}

# Periodic tasks
beat_schedule = {
    "send-saved-job-reminders": {
        "task": "workers.tasks.notifications.send_saved_job_reminders",
        "schedule": crontab(hour=settings.saved_job_reminder_hour, minute=0),
    },
}

result_expires = 3600
