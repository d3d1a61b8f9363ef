from uuid import uuid4, UUID
from typing import Optional

from sqlalchemy import Index, Integer, BigInteger, String, Uuid
from sqlalchemy.orm import mapped_column, Mapped

from .params import EnqueueParams, RetryPolicy
from .base_sql import BaseSQL


class RawJob(BaseSQL):
    """Row of the ``jobs`` table.

    Timestamps are milliseconds since the Unix epoch (UTC) so that the
    backoff and visibility arithmetic can happen inside SQL on any backend.
    Payload and result are JSON text.
    """

    __tablename__ = "jobs"
    __table_args__ = (
        # Claim scans filter on queue and status and order by scheduled_at
        Index("ix_jobs_queue_status_scheduled_at", "queue", "status", "scheduled_at"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    queue: Mapped[str] = mapped_column(String, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # Retry policy, frozen at enqueue time
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False)
    backoff_base: Mapped[int] = mapped_column(Integer, nullable=False)
    max_retry_delay: Mapped[int] = mapped_column(Integer, nullable=False)

    enqueued_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    scheduled_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    result: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    error: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    error_trace: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    # Current holder. claimed_at doubles as the heartbeat timestamp.
    claimed_by: Mapped[Optional[str]] = mapped_column(
        String, nullable=True, index=True
    )
    claimed_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    finished_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            backoff_base=self.backoff_base,
            max_retry_delay=self.max_retry_delay,
        )

    @staticmethod
    def from_enqueue_params(p: EnqueueParams) -> "RawJob":
        return RawJob(
            id=uuid4(),
            queue=p.queue,
            kind=p.kind,
            payload=p.serialized_payload,
            status="pending",
            max_attempts=p.max_attempts,
            backoff_base=p.backoff_base,
            max_retry_delay=p.max_retry_delay,
            enqueued_at=p.enqueued_at_ms,
            scheduled_at=p.scheduled_at_ms,
            attempts=0,
        )
