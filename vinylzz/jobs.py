from vinylzz.core import JobQueue
from vinylzz.models import Job, RetryPolicy


ESTIMATE = "estimate"


async def enqueue_estimate(
    queue: JobQueue,
    record_id: int,
    retry_policy: RetryPolicy | None = None,
) -> Job:
    """Ask the workers to estimate a record. Returns without waiting."""
    return await queue.enqueue(ESTIMATE, {"record_id": record_id}, retry_policy)
