"""Tests for Table and TableStore."""

from fodmapdb.core.store import TableStore
from fodmapdb.core.table import Table, utc_timestamp

STAMP = "2024-01-01T08:00:00.000Z"


class TestTable:

    def test_ids_are_sequential(self):
        table = Table("meals")
        ids = [table.insert({"name": n}, STAMP)["id"] for n in ("a", "b", "c")]
        assert ids == [1, 2, 3]

    def test_ids_follow_max_existing_id(self):
        table = Table("meals", [{"id": 7, "name": "x"}, {"id": 3, "name": "y"}])
        assert table.insert({}, STAMP)["id"] == 8

    def test_deleted_newest_id_is_not_reused(self):
        table = Table("meals")
        for _ in range(3):
            table.insert({}, STAMP)
        table.remove_where(lambda row: row["id"] == 3)
        assert table.insert({}, STAMP)["id"] == 4

    def test_caller_cannot_override_id(self):
        table = Table("meals")
        record = table.insert({"id": 99, "name": "x"}, STAMP)
        assert record["id"] == 1
        assert record["created_at"] == STAMP

    def test_scan_returns_copies(self):
        table = Table("meals")
        table.insert({"name": "x"}, STAMP)
        rows = table.scan()
        rows[0]["name"] = "changed"
        assert table.scan()[0]["name"] == "x"

    def test_find_by_id(self):
        table = Table("meals")
        table.insert({"name": "x"}, STAMP)
        assert table.find_by_id(1)["name"] == "x"
        assert table.find_by_id("1") is None
        assert table.find_by_id(2) is None

    def test_clear_reports_count(self):
        table = Table("meals")
        table.insert({}, STAMP)
        table.insert({}, STAMP)
        assert table.clear() == 2
        assert table.count() == 0


class TestTableStore:

    def test_unknown_table_is_created_on_reference(self):
        store = TableStore()
        table = store.get_or_create_table("symptoms")
        assert "symptoms" in store
        assert table.count() == 0

    def test_create_table_is_idempotent(self):
        store = TableStore()
        assert store.create_table("foods") is True
        assert store.create_table("foods") is False

    def test_round_trip_through_dict(self):
        store = TableStore()
        store.get_or_create_table("water_intake").insert({"glasses": 2}, STAMP)
        copy = TableStore()
        copy.replace_all(store.to_dict())
        assert copy.to_dict() == store.to_dict()

    def test_clear(self):
        store = TableStore()
        store.create_table("foods")
        store.clear()
        assert len(store) == 0


def test_utc_timestamp_format():
    stamp = utc_timestamp()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2024-01-01T08:00:00.000Z")
