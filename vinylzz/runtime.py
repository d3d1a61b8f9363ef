import logging
from contextlib import AsyncExitStack
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from vinylzz.config import Settings
from vinylzz.core import JobQueue
from vinylzz.estimation import (
    DiscogsClient,
    EstimationPipeline,
    OpenAINormalizer,
    PassthroughNormalizer,
)
from vinylzz.jobs import ESTIMATE
from vinylzz.store import RecordStore
from vinylzz.worker import EstimateHandler, WorkerPool


logger = logging.getLogger(__name__)


class Runtime:
    """Builds the worker's collaborators from settings and tears them down.

    Engines and HTTP clients are created on enter and disposed of on exit,
    in reverse order.

    Examples:

        >>> async with Runtime(Settings.from_env()) as runtime:
        ...     await runtime.create_all()
        ...     await runtime.pool.run()
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._stack = AsyncExitStack()
        self.engine: AsyncEngine | None = None
        self.queue_engine: AsyncEngine | None = None
        self.queue: JobQueue | None = None
        self.store: RecordStore | None = None
        self.client: DiscogsClient | None = None
        self.normalizer: OpenAINormalizer | PassthroughNormalizer | None = None
        self.pipeline: EstimationPipeline | None = None
        self.pool: WorkerPool | None = None

    async def __aenter__(self) -> "Runtime":
        settings = self.settings

        self.engine = create_async_engine(settings.database_url)
        self._stack.push_async_callback(self.engine.dispose)
        if settings.queue_database_url == settings.database_url:
            self.queue_engine = self.engine
        else:
            self.queue_engine = create_async_engine(settings.queue_database_url)
            self._stack.push_async_callback(self.queue_engine.dispose)

        self.queue = JobQueue(
            self.queue_engine,
            name=settings.queue_name,
            retry_policy=settings.retry,
            retention=settings.retention,
        )
        self.store = RecordStore(self.engine)

        self.client = DiscogsClient(
            token=settings.discogs_token,
            user_agent=settings.discogs_user_agent,
            base_url=settings.discogs_base_url,
            request_delay=settings.discogs_request_delay,
        )
        self._stack.push_async_callback(self.client.aclose)

        if settings.openai_api_key:
            self.normalizer = OpenAINormalizer(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
            )
        else:
            logger.info("OPENAI_API_KEY is not set, metadata is searched as-is")
            self.normalizer = PassthroughNormalizer()
        self._stack.push_async_callback(self.normalizer.aclose)

        self.pipeline = EstimationPipeline(self.client, self.normalizer)
        self.pool = WorkerPool(
            self.queue,
            {ESTIMATE: EstimateHandler(self.store, self.pipeline)},
            concurrency=settings.concurrency,
            poll_interval=settings.poll_interval,
            visibility_timeout=settings.visibility_timeout,
            prune_interval=settings.prune_interval,
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self._stack.aclose()

    async def create_all(self) -> None:
        """Create the jobs, records and price_estimates tables if missing."""
        await self.queue.create_all()
        await self.store.create_all()
