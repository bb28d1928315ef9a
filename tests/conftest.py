from datetime import datetime

import duckdb
import pytest
import pytest_asyncio

from app.repositories.db import init_analytics_tables, init_tables
from clients.cache import CacheClient
from clients.search import SearchClient
from tests.fakes import FakeClock, FakeMeilisearch, FakeRedis


@pytest.fixture
def db():
    conn = duckdb.connect(":memory:")
    init_tables(conn)
    init_analytics_tables(conn)
    yield conn
    conn.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 5, 10, 12, 0))


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.fixture
def cache(redis):
    return CacheClient(redis, prefix="test")


@pytest.fixture
def meili():
    return FakeMeilisearch()


@pytest_asyncio.fixture
async def search(meili):
    async with SearchClient("http://search.test", api_key="key", transport=meili.transport, task_poll_interval=0) as client:
        yield client
