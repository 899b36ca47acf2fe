"""Celery configuration for async task processing."""

from datetime import timedelta

from kombu import Exchange, Queue

from core.config import settings

# Broker configuration (Redis)
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
task_time_limit = 30 * 60  # 30 minutes hard limit
task_soft_time_limit = 25 * 60  # 25 minutes soft limit

# Worker settings
worker_prefetch_multiplier = 1
worker_max_tasks_per_child = 1000
worker_hijack_root_logger = False

# Queue configuration with routing
default_exchange = Exchange("talentdesk", type="direct")
task_default_queue = "default"
task_default_exchange = "talentdesk"
task_default_routing_key = "default"
task_queues = (
    Queue("default", exchange=default_exchange, routing_key="default"),
    Queue("ai_scoring", exchange=default_exchange, routing_key="ai"),
    Queue("emails", exchange=default_exchange, routing_key="emails"),
    Queue("maintenance", exchange=default_exchange, routing_key="maintenance"),
)

# Task routing
task_routes = {
    "workers.tasks.scoring.*": {"queue": "ai_scoring", "routing_key": "ai"},
    "workers.tasks.resumes.*": {"queue": "ai_scoring", "routing_key": "ai"},
    "workers.tasks.emails.*": {"queue": "emails", "routing_key": "emails"},
    "workers.tasks.inbox.*": {"queue": "maintenance", "routing_key": "maintenance"},
}

# Periodic tasks
beat_schedule = {
    "reconcile-inbox": {
        "task": "workers.tasks.inbox.reconcile_inbox",
        "schedule": timedelta(minutes=15),
    },
}

# Result backend settings
result_expires = 3600  # Results expire after 1 hour
