import os
from pathlib import Path

from fodmapdb.storage.persistence import DEFAULT_STORAGE_KEY

BACKENDS = ("emulated", "sqlite")


class Settings:
    """Centralized configuration for the diary's local database."""

    def __init__(self) -> None:
        backend = (os.environ.get("FODMAPDB_BACKEND") or "emulated").strip().lower()
        # unknown values fall back to the emulated store
        self.backend: str = backend if backend in BACKENDS else "emulated"
        self.data_root: Path = Path(
            os.environ.get("FODMAPDB_DATA_ROOT") or Path.home() / ".fodmapdb"
        ).expanduser()
        self.storage_key: str = os.environ.get("FODMAPDB_STORAGE_KEY") or DEFAULT_STORAGE_KEY
        self.database_name: str = os.environ.get("FODMAPDB_DATABASE_NAME") or "everyday_fodmap.db"

    @property
    def database_path(self) -> Path:
        return self.data_root / self.database_name


settings = Settings()
