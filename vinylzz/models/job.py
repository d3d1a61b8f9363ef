import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4, UUID
from typing import Any

from .base_job import BaseJob, JobStatusValueType
from .raw_job import RawJob


logger = logging.getLogger(__name__)


def from_ms(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, timezone.utc)


@dataclass
class Job(BaseJob):
    id: UUID = field(default_factory=uuid4)
    """The unique identifier for the job.

    Generated on the client side at enqueue time. A random UUID avoids
    collisions between producers without a round trip to the database.
    """
    queue: str = field(default="vinyl-jobs")
    """The name of the queue (partition) that the job belongs to."""
    kind: str = field(default="estimate")
    """Discriminator that selects the handler for the job.

    Workers treat kinds they have no handler for as no-ops.
    """
    payload: Any | None = field(default=None)
    """The payload of the job."""
    status: JobStatusValueType | None = field(default=None)
    """The status of the job.

    Jobs start out "pending". When a worker claims a job it becomes
    "active". On success it becomes "completed". On failure it becomes
    "pending-retry" and is eligible again once its backoff delay has
    elapsed, unless the job has used up all of its attempts, in which case
    it becomes "exhausted" and is never dispatched again.
    """
    max_attempts: int = field(default=5)
    """The maximum number of times the job is dispatched."""
    backoff_base: int = field(default=2000)
    """The base delay in milliseconds for exponential backoff.

    The delay after attempt ``n`` is ``backoff_base * 2 ** (n - 1)``.
    """
    max_retry_delay: int = field(default=12 * 3600 * 1000)
    """Upper bound for the backoff delay in milliseconds."""
    enqueued_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    """The time when the job was enqueued.

    Represented as a datetime object in UTC. In database, this is stored as
    a Unix epoch timestamp in milliseconds in UTC timezone.
    """
    scheduled_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    """The time before which the job must not be dispatched.

    Set to the enqueue time initially and pushed forward by the backoff
    delay after each failure.
    """
    attempts: int = field(default=0)
    """The number of times the job has been dispatched.

    Incremented when a worker claims the job, so an attempt lost to a
    crashed worker counts too.
    """
    result: Any | None = field(default=None)
    """The value returned by the handler of a completed job."""
    error: str | None = field(default=None)
    """The error message of the last failed attempt."""
    error_trace: str | None = field(default=None)
    """The stack trace of the last failed attempt."""
    claimed_by: str | None = field(default=None)
    """The name of the worker that claimed the job."""
    claimed_at: datetime | None = field(default=None)
    """The time of the last claim or heartbeat."""
    finished_at: datetime | None = field(default=None)
    """The time when the job reached a terminal state or last failed."""

    @staticmethod
    def from_raw_job(raw_job: RawJob) -> "Job":
        return Job(
            id=raw_job.id,
            queue=raw_job.queue,
            kind=raw_job.kind,
            payload=Job.deserialize(raw_job.payload),
            status=raw_job.status,
            max_attempts=raw_job.max_attempts,
            backoff_base=raw_job.backoff_base,
            max_retry_delay=raw_job.max_retry_delay,
            enqueued_at=from_ms(raw_job.enqueued_at),
            scheduled_at=from_ms(raw_job.scheduled_at),
            attempts=raw_job.attempts,
            result=Job.deserialize(raw_job.result),
            error=raw_job.error,
            error_trace=raw_job.error_trace,
            claimed_by=raw_job.claimed_by,
            claimed_at=from_ms(raw_job.claimed_at),
            finished_at=from_ms(raw_job.finished_at),
        )

    @staticmethod
    def serialize(value: Any | None) -> str | None:
        if value is None:
            return None
        if isinstance(value, str):
            return value
        return json.dumps(value, default=str)

    @staticmethod
    def deserialize(serialized: str | None) -> Any | None:
        if not serialized:
            return None

        try:
            return json.loads(serialized)
        except json.JSONDecodeError:
            logger.debug(f"Failed to deserialize value using JSON: {serialized}")
            return serialized
