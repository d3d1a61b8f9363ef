from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from typing import Any, Literal


JobStatusValueType = Literal[
    "pending",
    "active",
    "completed",
    "pending-retry",
    "exhausted",
]


@dataclass
class BaseJob:
    id: UUID
    queue: str
    kind: str
    payload: Any | None
    status: JobStatusValueType | None
    max_attempts: int
    backoff_base: int
    max_retry_delay: int
    enqueued_at: datetime
    scheduled_at: datetime
    attempts: int
    result: Any | None
    error: str | None
    error_trace: str | None
    claimed_by: str | None
    claimed_at: datetime | None
    finished_at: datetime | None
