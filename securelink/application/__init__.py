"""
Application Services Layer

Orchestrates domain services and coordinates use cases.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .event_publisher import EventPublisher
from .file_access_service import FileAccessService, LinkPolicy, SecureDownload
from .file_service import FileService

__all__ = [
    'DependencyContainer',
    'DependencyNotFoundError',
    'EventPublisher',
    'FileAccessService',
    'LinkPolicy',
    'SecureDownload',
    'FileService',
]
