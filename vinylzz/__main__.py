import argparse
import asyncio
import dataclasses
import logging
import signal

from vinylzz.config import Settings
from vinylzz.runtime import Runtime


logger = logging.getLogger("vinylzz")


async def run_worker(settings: Settings, create_tables: bool = False) -> None:
    async with Runtime(settings) as runtime:
        if create_tables:
            await runtime.create_all()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, runtime.pool.stop)
            except NotImplementedError:
                # Signal handlers are not available on Windows event loops
                pass

        await runtime.pool.run()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="vinylzz-worker",
        description="Run the price estimation worker pool.",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of concurrent job slots (default: WORKER_CONCURRENCY or 3)",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the jobs, records and price_estimates tables if missing",
    )
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.concurrency is not None:
        settings = dataclasses.replace(settings, concurrency=args.concurrency)

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Worker up")
    asyncio.run(run_worker(settings, create_tables=args.create_tables))


if __name__ == "__main__":
    main()
