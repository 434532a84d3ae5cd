"""
Persistence adapter: the whole TableStore in one key-value slot.

The store is saved as a single JSON document ``{table: [record, ...]}``
after every mutation and read back once at start-up. Failures never
reach the caller; they come back as a PersistenceStatus and go to the
log.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from fodmapdb.core.store import TableStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "everyday_fodmap_webdb"


class PersistenceStatus(Enum):
    OK = "ok"
    WRITE_FAILED = "write_failed"
    READ_CORRUPT = "read_corrupt"


def decode_blob(raw: str) -> Optional[Dict[str, List[Dict[str, Any]]]]:
    """
    Decode a persisted blob.

    Returns None unless the document is an object whose values are
    arrays of objects.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None
    for rows in data.values():
        if not isinstance(rows, list):
            return None
        if not all(isinstance(row, dict) for row in rows):
            return None
    return data


class PersistenceAdapter:
    """
    Saves and restores a TableStore through a key-value storage.

    Example:
        store = TableStore()
        adapter = PersistenceAdapter(store, FileStorage("~/.fodmapdb"))
        adapter.load()
        ...
        adapter.save()
    """

    def __init__(self, store: TableStore, storage: Any, key: str = DEFAULT_STORAGE_KEY):
        """
        Args:
            store: The in-memory store to persist
            storage: Any object with get_item / set_item / remove_item
            key: Slot holding the blob
        """
        self.store = store
        self.storage = storage
        self.key = key
        self.last_status = PersistenceStatus.OK

    def load(self) -> PersistenceStatus:
        """Hydrate the store from the slot; start empty if absent or corrupt."""
        try:
            raw = self.storage.get_item(self.key)
        except (OSError, ValueError):
            logger.exception("Error reading %s from storage", self.key)
            self.store.clear()
            return self._record(PersistenceStatus.READ_CORRUPT)

        if raw is None:
            self.store.clear()
            return self._record(PersistenceStatus.OK)

        data = decode_blob(raw)
        if data is None:
            logger.error("Stored blob %s is corrupt, starting with an empty store", self.key)
            self.store.clear()
            return self._record(PersistenceStatus.READ_CORRUPT)

        self.store.replace_all(data)
        logger.debug("Loaded from storage: %s", self.store.table_names())
        return self._record(PersistenceStatus.OK)

    def save(self) -> PersistenceStatus:
        """Overwrite the slot with the whole store."""
        try:
            raw = json.dumps(self.store.to_dict(), ensure_ascii=False)
            self.storage.set_item(self.key, raw)
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving %s to storage", self.key)
            return self._record(PersistenceStatus.WRITE_FAILED)

        logger.debug("Saved to storage")
        return self._record(PersistenceStatus.OK)

    def wipe(self) -> PersistenceStatus:
        """Clear the store and delete the slot."""
        self.store.clear()
        try:
            self.storage.remove_item(self.key)
        except OSError:
            logger.exception("Error removing %s from storage", self.key)
            return self._record(PersistenceStatus.WRITE_FAILED)

        logger.info("Storage cleared")
        return self._record(PersistenceStatus.OK)

    def _record(self, status: PersistenceStatus) -> PersistenceStatus:
        self.last_status = status
        return status
