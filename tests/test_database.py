"""Tests for configuration, backend selection and the CRUD helpers."""

import asyncio
from pathlib import Path

import pytest

from fodmapdb.config import Settings
from fodmapdb.database import (
    delete_row,
    get_row_by_id,
    get_rows,
    insert_row,
    open_database,
    update_row,
)
from fodmapdb.native import SqliteDatabase
from fodmapdb.query.query_interface import EmulatedDatabase
from fodmapdb.storage.persistence import DEFAULT_STORAGE_KEY

ENV_VARS = (
    "FODMAPDB_BACKEND",
    "FODMAPDB_DATA_ROOT",
    "FODMAPDB_STORAGE_KEY",
    "FODMAPDB_DATABASE_NAME",
)

MEALS_SCHEMA = """
CREATE TABLE IF NOT EXISTS meals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    date TEXT,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME
);
"""


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture(params=["emulated", "sqlite"])
def backend(request, clean_env, tmp_path):
    clean_env.setenv("FODMAPDB_BACKEND", request.param)
    clean_env.setenv("FODMAPDB_DATA_ROOT", str(tmp_path))
    db = open_database(Settings())
    asyncio.run(db.execute_script(MEALS_SCHEMA))
    yield db
    if isinstance(db, SqliteDatabase):
        db.close()


class TestSettings:

    def test_defaults(self, clean_env):
        settings = Settings()
        assert settings.backend == "emulated"
        assert settings.data_root == Path.home() / ".fodmapdb"
        assert settings.storage_key == DEFAULT_STORAGE_KEY
        assert settings.database_path == Path.home() / ".fodmapdb" / "everyday_fodmap.db"

    def test_reads_environment(self, clean_env, tmp_path):
        clean_env.setenv("FODMAPDB_BACKEND", " SQLite ")
        clean_env.setenv("FODMAPDB_DATA_ROOT", str(tmp_path))
        clean_env.setenv("FODMAPDB_DATABASE_NAME", "diary.db")
        clean_env.setenv("FODMAPDB_STORAGE_KEY", "diary")

        settings = Settings()

        assert settings.backend == "sqlite"
        assert settings.database_path == tmp_path / "diary.db"
        assert settings.storage_key == "diary"

    def test_unknown_backend_falls_back_to_emulated(self, clean_env):
        clean_env.setenv("FODMAPDB_BACKEND", "postgres")
        assert Settings().backend == "emulated"


class TestOpenDatabase:

    def test_emulated_writes_blob_under_data_root(self, clean_env, tmp_path):
        clean_env.setenv("FODMAPDB_DATA_ROOT", str(tmp_path))
        clean_env.setenv("FODMAPDB_STORAGE_KEY", "diary")

        db = open_database(Settings())
        asyncio.run(insert_row(db, "meals", {"name": "Cena"}))

        assert isinstance(db, EmulatedDatabase)
        assert (tmp_path / "diary.json").exists()

    def test_emulated_reopens_previous_data(self, clean_env, tmp_path):
        clean_env.setenv("FODMAPDB_DATA_ROOT", str(tmp_path))
        asyncio.run(insert_row(open_database(Settings()), "meals", {"name": "Cena"}))

        rows = asyncio.run(get_rows(open_database(Settings()), "meals"))

        assert [row["name"] for row in rows] == ["Cena"]

    def test_sqlite_creates_database_file(self, clean_env, tmp_path):
        clean_env.setenv("FODMAPDB_BACKEND", "sqlite")
        clean_env.setenv("FODMAPDB_DATA_ROOT", str(tmp_path / "nested"))

        db = open_database(Settings())
        try:
            assert isinstance(db, SqliteDatabase)
            assert (tmp_path / "nested" / "everyday_fodmap.db").exists()
        finally:
            db.close()


class TestCrudHelpers:

    def test_insert_and_get_by_id(self, backend):
        row_id = asyncio.run(insert_row(backend, "meals", {"name": "Desayuno", "date": "2024-01-01"}))
        row = asyncio.run(get_row_by_id(backend, "meals", row_id))

        assert row_id == 1
        assert row["name"] == "Desayuno"
        assert row["created_at"]

    def test_update_stamps_updated_at(self, backend):
        row_id = asyncio.run(insert_row(backend, "meals", {"name": "Desayuno"}))
        asyncio.run(update_row(backend, "meals", row_id, {"name": "Almuerzo"}))

        row = asyncio.run(get_row_by_id(backend, "meals", row_id))

        assert row["name"] == "Almuerzo"
        assert row["updated_at"]

    def test_get_rows_with_where(self, backend):
        for name, date in (("a", "2024-01-01"), ("b", "2024-01-02"), ("c", "2024-01-01")):
            asyncio.run(insert_row(backend, "meals", {"name": name, "date": date}))

        rows = asyncio.run(get_rows(backend, "meals", "date = ?", ["2024-01-01"]))

        assert sorted(row["name"] for row in rows) == ["a", "c"]
        assert len(asyncio.run(get_rows(backend, "meals"))) == 3

    def test_delete(self, backend):
        row_id = asyncio.run(insert_row(backend, "meals", {"name": "Cena"}))
        asyncio.run(delete_row(backend, "meals", row_id))

        assert asyncio.run(get_row_by_id(backend, "meals", row_id)) is None

    def test_wipe(self, backend):
        asyncio.run(insert_row(backend, "meals", {"name": "Cena"}))
        asyncio.run(backend.wipe())

        assert asyncio.run(get_rows(backend, "meals")) == []
