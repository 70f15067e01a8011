"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.
"""

from app_factory import create_app

# Workers sweep through Celery beat, not through the in-process thread
flask_app = create_app(start_sweeper=False)

# Get Celery instance from Flask app
celery_app = flask_app.celery

# Task modules are imported by name when the worker starts, after
# `celery_app` exists for the task decorators
celery_app.conf.imports = (
    "securelink.tasks.cleanup_task",
)
