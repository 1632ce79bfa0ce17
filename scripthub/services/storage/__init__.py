"""Object storage for screenshot files"""

from scripthub.services.storage.storage_config import StorageSettings
from scripthub.services.storage.storage_service import StorageService, storage_service

__all__ = ["StorageSettings", "StorageService", "storage_service"]
