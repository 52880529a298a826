"""
Fixtures for the controller-level tests.

The module-level helpers share one process-wide MockDB, so every test starts
from an empty store with the HTTP controller installed.
"""

import pytest

import mockdb
from mockdb.kernel.dispatcher import MockDB
from mockdb.rest_controller import MockRESTController


@pytest.fixture(autouse=True)
def reset_default_db():
    mockdb.clean_up()
    yield
    mockdb.un_mock_db()
    mockdb.clean_up()


@pytest.fixture
def controller():
    return MockRESTController(MockDB())
