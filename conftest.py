import asyncio

import pytest

from fodmapdb.core.store import TableStore
from fodmapdb.query.executor import QueryExecutor
from fodmapdb.query.query_interface import EmulatedDatabase
from fodmapdb.query.sql_parser import SQLParser
from fodmapdb.storage.backends import MemoryStorage
from fodmapdb.storage.persistence import PersistenceAdapter

FIXED_TIMESTAMP = "2024-01-01T08:00:00.000Z"


class FailingStorage(MemoryStorage):
    """Slots whose writes fail, like a full browser quota."""

    def set_item(self, key, value):
        raise OSError("quota exceeded")


@pytest.fixture
def store():
    return TableStore()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def persistence(store, storage):
    return PersistenceAdapter(store, storage)


@pytest.fixture
def parser():
    return SQLParser()


@pytest.fixture
def executor(store, persistence):
    return QueryExecutor(store, persistence, clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def db(storage):
    return EmulatedDatabase.open(storage)


@pytest.fixture
def run():
    """Drive one facade coroutine to completion."""
    return asyncio.run


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def stamp():
    """The timestamp every ``executor`` write records."""
    return FIXED_TIMESTAMP
