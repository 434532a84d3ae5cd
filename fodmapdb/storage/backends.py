"""
Key-value slots the persistence adapter writes into.

Both backends expose the same three calls (``get_item``, ``set_item``,
``remove_item``), the shape of a browser's local storage.
"""

import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union


class MemoryStorage:
    """Dict-backed slots. Nothing survives the process."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __repr__(self) -> str:
        return f"MemoryStorage(keys={list(self._items)})"


class FileStorage:
    """
    One ``<key>.json`` file per slot inside ``directory``.

    Writes land in a temporary file next to the target and are moved
    into place with ``os.replace``, so a reader sees either the old
    blob or the new one, never a torn write.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        target = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.directory), prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def remove_item(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()

    def __repr__(self) -> str:
        return f"FileStorage(directory={self.directory})"
