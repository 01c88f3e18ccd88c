"""Product Catalog Server Module"""

from product_catalog.server.storage import StorageManager, StorageConfig, StorageConnectionError
from product_catalog.server.api import create_app

__all__ = [
    "StorageManager", "StorageConfig", "StorageConnectionError",
    "create_app",
]
