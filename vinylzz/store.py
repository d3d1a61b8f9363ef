import logging
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.engine.url import URL
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
)

from vinylzz.errors import RecordNotFound
from vinylzz.models import (
    BaseSQL,
    EstimationResult,
    PriceEstimate,
    Record,
    RecordMeta,
)


logger = logging.getLogger(__name__)


class RecordStore:
    """Subject records and their append-only price estimate snapshots.

    Args:
        engine_or_url (AsyncEngine | str | URL): SQLAlchemy async engine or
            database connection string.
        **kwargs: Additional keyword arguments to pass to SQLAlchemy's
            ``create_async_engine()`` function
    """

    def __init__(self, engine_or_url: AsyncEngine | str | URL, **kwargs: Any) -> None:
        self._owns_engine = not isinstance(engine_or_url, AsyncEngine)
        if isinstance(engine_or_url, AsyncEngine):
            self.engine = engine_or_url
        else:
            self.engine = create_async_engine(engine_or_url, **kwargs)
        self.async_session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    async def create_record(self, meta: RecordMeta) -> Record:
        async with self.async_session_factory() as session:
            record = Record(**meta.to_dict())
            session.add(record)
            await session.commit()
            return record

    async def get_record(self, record_id: int) -> Record:
        """Load a record.

        Raises:
            RecordNotFound: No record has this id.
        """
        async with self.async_session_factory() as session:
            record = await session.get(Record, record_id)
            if record is None:
                raise RecordNotFound(record_id)
            return record

    async def add_estimate(self, record_id: int, result: EstimationResult) -> PriceEstimate:
        """Persist one estimation snapshot. Existing rows are never touched."""
        async with self.async_session_factory() as session:
            estimate = PriceEstimate(
                record_id=record_id,
                source=result.source,
                lowest_price=result.lowest_price,
                median_price=result.median_price,
                estimated_price=result.estimated_price,
                extras=result.extras,
            )
            session.add(estimate)
            await session.commit()
            logger.debug(f"Stored estimate {estimate.id} for record {record_id}")
            return estimate

    async def estimates(self, record_id: int) -> list[PriceEstimate]:
        """All snapshots of a record, oldest first."""
        async with self.async_session_factory() as session:
            stmt = (
                select(PriceEstimate)
                .where(PriceEstimate.record_id == record_id)
                .order_by(PriceEstimate.created_at, PriceEstimate.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars())

    async def latest_estimate(self, record_id: int) -> PriceEstimate | None:
        """The newest snapshot of a record.

        None means no estimation has completed yet: the job may still be
        pending, retrying, or exhausted.
        """
        async with self.async_session_factory() as session:
            stmt = (
                select(PriceEstimate)
                .where(PriceEstimate.record_id == record_id)
                .order_by(desc(PriceEstimate.created_at), desc(PriceEstimate.id))
                .limit(1)
            )
            result = await session.execute(stmt)
            return result.scalars().first()

    async def create_all(self) -> None:
        """Create the records and price_estimates tables if missing."""
        async with self.engine.begin() as conn:
            await conn.run_sync(
                BaseSQL.metadata.create_all,
                tables=[Record.__table__, PriceEstimate.__table__],
                checkfirst=True,
            )

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(
                BaseSQL.metadata.drop_all,
                tables=[PriceEstimate.__table__, Record.__table__],
                checkfirst=True,
            )

    async def close(self) -> None:
        if self._owns_engine:
            await self.engine.dispose()
