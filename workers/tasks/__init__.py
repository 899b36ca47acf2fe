"""Celery tasks. Each task bridges into the async service layer via run_async."""
