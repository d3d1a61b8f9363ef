from datetime import datetime, timezone, timedelta
from uuid import UUID
from typing import Any

from vinylzz.core.base import BaseQueue
from vinylzz.models.job import Job
from vinylzz.models.params import EnqueueParams, ClaimParams, RetryPolicy


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def validate_queue_name(queue: str) -> None:
    if not queue or not isinstance(queue, str):
        raise ValueError("Queue name must be a non-empty string")


def validate_kind(kind: str) -> None:
    if not kind or not isinstance(kind, str):
        raise ValueError("Job kind must be a non-empty string")


def validate_job_id(job_id: UUID) -> None:
    if not job_id or not isinstance(job_id, UUID):
        raise ValueError("Job ID must be a UUID")


def validate_claim_as(claim_as: str) -> None:
    if claim_as is not None and not isinstance(claim_as, str):
        raise ValueError("claim_as must be a string")


def validate_status(status: str) -> None:
    if status not in BaseQueue.STATUSES:
        raise ValueError(f"Unknown job status: {status!r}")


def validate_retry_policy(retry_policy: RetryPolicy) -> None:
    if not isinstance(retry_policy.max_attempts, int) or retry_policy.max_attempts < 1:
        raise ValueError("max_attempts must be a positive integer")
    if not isinstance(retry_policy.backoff_base, int) or retry_policy.backoff_base < 0:
        raise ValueError("backoff_base must be a non-negative integer")
    if retry_policy.max_retry_delay < retry_policy.backoff_base:
        raise ValueError("max_retry_delay cannot be less than backoff_base")


def parse_enqueue_params(
    queue: str,
    kind: str,
    payload: Any | None = None,
    retry_policy: RetryPolicy | None = None,
    at: datetime | int | None = None,
    delay: int | timedelta | None = None,
) -> EnqueueParams:
    validate_queue_name(queue)
    validate_kind(kind)

    retry_policy = retry_policy or RetryPolicy()
    validate_retry_policy(retry_policy)

    # Determine the scheduled_at time
    now = datetime.now(timezone.utc)
    scheduled_at = at or now
    if isinstance(at, int):
        scheduled_at = datetime.fromtimestamp(at / 1000, timezone.utc)

    if delay:
        if isinstance(delay, int):
            delay = timedelta(milliseconds=delay)
        scheduled_at += delay

    return EnqueueParams(
        queue=queue,
        kind=kind,
        serialized_payload=Job.serialize(payload),
        max_attempts=retry_policy.max_attempts,
        backoff_base=retry_policy.backoff_base,
        max_retry_delay=retry_policy.max_retry_delay,
        enqueued_at_ms=int(now.timestamp() * 1000),
        scheduled_at_ms=int(scheduled_at.timestamp() * 1000),
    )


def parse_claim_params(
    queue: str,
    before: datetime | int | None = None,
    claim_as: str | None = None,
    visibility_timeout: int = 60 * 1000,
) -> ClaimParams:
    validate_queue_name(queue)
    validate_claim_as(claim_as)
    if not isinstance(visibility_timeout, int) or visibility_timeout < 0:
        raise ValueError("visibility_timeout must be a non-negative integer")

    now = now_ms()
    if before is None:
        before = now
    if isinstance(before, datetime):
        before = int(before.timestamp() * 1000)

    return ClaimParams(
        queue=queue,
        now_ms=now,
        before_ms=before,
        claim_as=claim_as,
        visibility_timeout=visibility_timeout,
    )
