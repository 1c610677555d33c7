"""
Application Layer

Orchestrates the storage core for the HTTP layer and background tasks.
"""

from .dependency_container import DependencyContainer, DependencyNotFoundError
from .storage_service import StorageService
from .upload_policy import UploadPolicy

__all__ = [
    "DependencyContainer",
    "DependencyNotFoundError",
    "StorageService",
    "UploadPolicy",
]
