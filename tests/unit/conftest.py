from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def ch_client():
    """Mock clickhouse_connect client for unit tests"""
    client = MagicMock()
    client.command = MagicMock()
    client.query = MagicMock(return_value=MagicMock(result_rows=[]))
    client.insert = MagicMock()
    return client


@pytest.fixture
def failing_store():
    """Series store whose every call fails"""
    store = MagicMock()
    store.aggregate = AsyncMock(side_effect=ConnectionError("store unreachable"))
    store.save = AsyncMock(side_effect=ConnectionError("store unreachable"))
    return store
