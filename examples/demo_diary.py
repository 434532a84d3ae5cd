"""
Diary Database Demo

Walks through a day of diary entries on the emulated backend: schema
registration, inserts, range queries, daily totals and a restart from
the persisted blob.
"""

import asyncio
import logging
import tempfile

from fodmapdb import EmulatedDatabase
from fodmapdb.storage import FileStorage

SCHEMA = """
CREATE TABLE IF NOT EXISTS meals (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    date TEXT NOT NULL,
    notes TEXT
);
CREATE TABLE IF NOT EXISTS water_intake (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    date TEXT NOT NULL,
    glasses INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_meals_date ON meals(date);
"""


async def demo_diary(data_root):
    print("=" * 70)
    print("FODMAP DIARY - EMULATED DATABASE DEMO")
    print("=" * 70)
    print()

    db = EmulatedDatabase.open(FileStorage(data_root))
    await db.execute_script(SCHEMA)
    print(f"Tables: {db.store.table_names()}")
    print()

    print("1. WRITES")
    print("-" * 70)

    for name, date in (("Desayuno", "2024-01-01"), ("Almuerzo", "2024-01-01"), ("Cena", "2024-01-02")):
        result = await db.run_for_effect(
            "INSERT INTO meals (name, date) VALUES (?, ?)", [name, date]
        )
        print(f"  inserted {name!r} -> {result}")

    for date, glasses in (("2024-01-01", 3), ("2024-01-01", 2), ("2024-01-02", 4)):
        await db.run_for_effect(
            "INSERT INTO water_intake (date, glasses) VALUES (?, ?)", [date, glasses]
        )

    result = await db.run_for_effect(
        "UPDATE meals SET notes = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        ["sin cebolla", 2],
    )
    print(f"  updated meal 2 -> {result}")
    print()

    print("2. READS")
    print("-" * 70)

    meals = await db.select_many(
        "SELECT * FROM meals WHERE date BETWEEN ? AND ? ORDER BY date DESC",
        ["2024-01-01", "2024-01-31"],
    )
    for meal in meals:
        print(f"  {meal['date']}  {meal['name']:<10} {meal.get('notes') or ''}")

    total = await db.select_first(
        "SELECT COALESCE(SUM(glasses), 0) as total FROM water_intake WHERE date = ?",
        ["2024-01-01"],
    )
    print(f"  glasses on 2024-01-01: {total['total']}")

    daily = await db.select_many(
        "SELECT date FROM water_intake GROUP BY date ORDER BY date"
    )
    for day in daily:
        print(f"  {day['date']}: {day['total']} glasses in {day['count']} entries")
    print()

    print("3. UNSUPPORTED SHAPES")
    print("-" * 70)

    plan = db.explain("SELECT * FROM meals WHERE date = ? AND name = ?")
    print(f"  compound WHERE parsed as: {plan['parsed_query']['predicate']}")
    rows = await db.select_many(
        "SELECT * FROM meals WHERE date = ? AND name = ?", ["2024-01-01", "Cena"]
    )
    print(f"  ...so it returns the whole table: {len(rows)} rows")
    print()

    print("4. RESTART")
    print("-" * 70)

    reopened = EmulatedDatabase.open(FileStorage(data_root))
    print(f"  same content after reopening: {reopened.store.to_dict() == db.store.to_dict()}")
    result = await reopened.run_for_effect(
        "INSERT INTO meals (name, date) VALUES (?, ?)", ["Merienda", "2024-01-02"]
    )
    print(f"  next id continues from the stored rows: {result.last_insert_row_id}")
    print()

    print("Stats:", reopened.get_stats())


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    with tempfile.TemporaryDirectory() as data_root:
        asyncio.run(demo_diary(data_root))
