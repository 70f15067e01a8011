"""
Celery Tasks

This module contains the Celery tasks of the secure link service.
"""
