"""
MockDB kernel test configuration.

Every test gets its own MockDB; nothing touches the module default.
"""

from datetime import UTC, datetime

import pytest

from mockdb.kernel.dispatcher import MockDB
from mockdb.kernel.store import Store


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def db():
    return MockDB()


@pytest.fixture
def seeded_store(store):
    """Three items with mixed field shapes, inserted in a known order."""
    records = [
        {
            "objectId": "item1",
            "name": "Apple",
            "price": 30,
            "tags": ["fruit", "red"],
            "meta": {"origin": {"country": "NZ"}, "organic": True},
            "createdAt": datetime(2024, 1, 1, tzinfo=UTC),
            "updatedAt": datetime(2024, 1, 1, tzinfo=UTC),
        },
        {
            "objectId": "item2",
            "name": "banana",
            "price": 10,
            "tags": ["fruit", "yellow"],
            "meta": {"origin": {"country": "EC"}, "organic": False},
            "createdAt": datetime(2024, 2, 1, tzinfo=UTC),
            "updatedAt": datetime(2024, 2, 1, tzinfo=UTC),
        },
        {
            "objectId": "item3",
            "name": "Cabbage",
            "price": 5,
            "createdAt": datetime(2024, 3, 1, tzinfo=UTC),
            "updatedAt": datetime(2024, 3, 1, tzinfo=UTC),
        },
    ]
    for record in records:
        store.put("Item", record)
    return store
