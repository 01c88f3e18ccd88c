from .storage_manager import StorageManager, StorageConfig, StorageConnectionError

__all__ = ["StorageManager", "StorageConfig", "StorageConnectionError"]
