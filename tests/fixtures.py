import asyncio
import logging
from typing import Any, Awaitable, Callable

import pytest
import pytest_asyncio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from vinylzz import JobQueue, RecordStore
from vinylzz.models import MarketStats, RecordMeta, SearchResult


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path):
    logging.getLogger("vinylzz").setLevel(logging.DEBUG)

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'vinylzz.db'}")
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def queue(sqlite_engine):
    instance = JobQueue(sqlite_engine)
    await instance.create_all()
    return instance


@pytest_asyncio.fixture
async def store(sqlite_engine):
    instance = RecordStore(sqlite_engine)
    await instance.create_all()
    return instance


@pytest_asyncio.fixture
async def queue_asyncpg(postgres_dsn_async):
    logging.getLogger("vinylzz").setLevel(logging.DEBUG)

    instance = JobQueue(postgres_dsn_async)
    try:
        await instance.create_all()
    except (SQLAlchemyError, OSError) as exc:
        await instance.close()
        pytest.skip(f"PostgreSQL is not reachable: {exc}")
    try:
        yield instance
    finally:
        await instance.drop_all()
        await instance.close()


async def wait_until(
    predicate: Callable[[], Awaitable[bool]],
    timeout: float = 5.0,
    interval: float = 0.01,
) -> None:
    """Poll an async predicate until it holds or the timeout runs out."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not await predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("Condition not met in time")
        await asyncio.sleep(interval)


class FakePricingSource:
    """In-memory stand-in for the Discogs client."""

    SOURCE = "discogs"

    def __init__(
        self,
        search_result: SearchResult | None = None,
        stats: MarketStats | None = None,
        search_error: Exception | None = None,
        stats_error: Exception | None = None,
    ) -> None:
        self.search_result = search_result or SearchResult()
        self.stats = stats
        self.search_error = search_error
        self.stats_error = stats_error
        self.searches: list[RecordMeta] = []
        self.stats_lookups: list[Any] = []

    async def search(self, meta: RecordMeta) -> SearchResult:
        self.searches.append(meta)
        if self.search_error:
            raise self.search_error
        return self.search_result

    async def release_stats(self, release_id: Any) -> MarketStats | None:
        if not release_id:
            return None
        self.stats_lookups.append(release_id)
        if self.stats_error:
            raise self.stats_error
        return self.stats
