import logging
from typing import Any, Awaitable, Callable

from vinylzz.estimation import EstimationPipeline
from vinylzz.models import Job, RecordMeta
from vinylzz.store import RecordStore


logger = logging.getLogger(__name__)


JobHandler = Callable[[Job], Awaitable[Any]]


async def noop(job: Job) -> dict[str, bool]:
    return {"ok": True}


class EstimateHandler:
    """Estimates one record and appends the snapshot to the store.

    The payload is ``{"record_id": <id>}``. A missing record fails the job
    like any other error, so it is retried under the job's retry policy.
    """

    def __init__(self, store: RecordStore, pipeline: EstimationPipeline) -> None:
        self.store = store
        self.pipeline = pipeline

    async def __call__(self, job: Job) -> dict[str, Any]:
        if not isinstance(job.payload, dict) or "record_id" not in job.payload:
            raise ValueError(f"Job {job.id} has no record_id in its payload")
        record_id = job.payload["record_id"]
        logger.info(f"Estimating record {record_id}")

        record = await self.store.get_record(record_id)
        meta = RecordMeta(
            artist=record.artist,
            title=record.title,
            label=record.label,
            catno=record.catno,
            barcode=record.barcode,
        )

        result = await self.pipeline.estimate(meta)
        await self.store.add_estimate(record_id, result)

        return {
            "record_id": record_id,
            "done": True,
            "estimated_price": result.estimated_price,
        }
