"""
Durable storage for fodmapdb.

The whole TableStore is kept as one JSON blob under a fixed key of a
key-value storage (in memory or on disk).
"""

from fodmapdb.storage.backends import MemoryStorage, FileStorage
from fodmapdb.storage.persistence import (
    DEFAULT_STORAGE_KEY,
    PersistenceAdapter,
    PersistenceStatus,
)

__all__ = [
    'MemoryStorage',
    'FileStorage',
    'PersistenceAdapter',
    'PersistenceStatus',
    'DEFAULT_STORAGE_KEY',
]
