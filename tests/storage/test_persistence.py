"""Tests for the persistence adapter and its key-value backends."""

import json

from fodmapdb.core.store import TableStore
from fodmapdb.storage.backends import FileStorage, MemoryStorage
from fodmapdb.storage.persistence import (
    DEFAULT_STORAGE_KEY,
    PersistenceAdapter,
    PersistenceStatus,
)

STAMP = "2024-01-01T08:00:00.000Z"


class TestLoad:

    def test_missing_blob_starts_empty(self):
        store = TableStore()
        adapter = PersistenceAdapter(store, MemoryStorage())
        assert adapter.load() is PersistenceStatus.OK
        assert len(store) == 0

    def test_hydrates_store(self):
        blob = {"meals": [{"id": 1, "created_at": STAMP, "name": "Desayuno"}]}
        storage = MemoryStorage({DEFAULT_STORAGE_KEY: json.dumps(blob)})
        store = TableStore()
        assert PersistenceAdapter(store, storage).load() is PersistenceStatus.OK
        assert store.to_dict() == blob

    def test_corrupt_json_starts_empty(self):
        storage = MemoryStorage({DEFAULT_STORAGE_KEY: "{not json"})
        store = TableStore()
        store.create_table("stale")
        adapter = PersistenceAdapter(store, storage)
        assert adapter.load() is PersistenceStatus.READ_CORRUPT
        assert len(store) == 0
        assert adapter.last_status is PersistenceStatus.READ_CORRUPT

    def test_wrong_shape_is_corrupt(self):
        for raw in ('[1, 2]', '{"meals": {"id": 1}}', '{"meals": [1]}'):
            store = TableStore()
            adapter = PersistenceAdapter(store, MemoryStorage({DEFAULT_STORAGE_KEY: raw}))
            assert adapter.load() is PersistenceStatus.READ_CORRUPT


class TestSave:

    def test_writes_whole_store_under_key(self):
        store = TableStore()
        store.get_or_create_table("water_intake").insert({"glasses": 2}, STAMP)
        storage = MemoryStorage()
        assert PersistenceAdapter(store, storage, key="blob").save() is PersistenceStatus.OK
        assert json.loads(storage.get_item("blob")) == {
            "water_intake": [{"id": 1, "created_at": STAMP, "glasses": 2}]
        }

    def test_write_failure_is_reported_not_raised(self, failing_storage):
        store = TableStore()
        store.get_or_create_table("meals").insert({"name": "x"}, STAMP)
        adapter = PersistenceAdapter(store, failing_storage)
        assert adapter.save() is PersistenceStatus.WRITE_FAILED
        assert store.get_table("meals").count() == 1

    def test_unserialisable_value_is_a_write_failure(self):
        store = TableStore()
        store.get_or_create_table("meals").insert({"blob": object()}, STAMP)
        storage = MemoryStorage({DEFAULT_STORAGE_KEY: "{}"})
        adapter = PersistenceAdapter(store, storage)
        assert adapter.save() is PersistenceStatus.WRITE_FAILED
        assert storage.get_item(DEFAULT_STORAGE_KEY) == "{}"


def test_wipe_clears_store_and_blob():
    store = TableStore()
    store.create_table("meals")
    storage = MemoryStorage()
    adapter = PersistenceAdapter(store, storage)
    adapter.save()
    assert adapter.wipe() is PersistenceStatus.OK
    assert len(store) == 0
    assert storage.get_item(DEFAULT_STORAGE_KEY) is None


class TestFileStorage:

    def test_round_trip(self, tmp_path):
        storage = FileStorage(tmp_path / "data")
        assert storage.get_item("k") is None
        storage.set_item("k", '{"a": []}')
        assert storage.get_item("k") == '{"a": []}'
        assert (tmp_path / "data" / "k.json").exists()

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.set_item("k", "one")
        storage.set_item("k", "two")
        assert storage.get_item("k") == "two"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]

    def test_remove_missing_key_is_fine(self, tmp_path):
        storage = FileStorage(tmp_path)
        storage.remove_item("nothing")
        storage.set_item("k", "v")
        storage.remove_item("k")
        assert storage.get_item("k") is None

    def test_restart_reproduces_store(self, tmp_path):
        store = TableStore()
        store.get_or_create_table("meals").insert({"name": "Cena", "date": "2024-01-02"}, STAMP)
        PersistenceAdapter(store, FileStorage(tmp_path)).save()

        restored = TableStore()
        assert PersistenceAdapter(restored, FileStorage(tmp_path)).load() is PersistenceStatus.OK
        assert restored.to_dict() == store.to_dict()
