from dataclasses import dataclass, field


@dataclass
class EnqueueParams:
    queue: str
    kind: str
    serialized_payload: str | None
    max_attempts: int
    backoff_base: int
    max_retry_delay: int
    enqueued_at_ms: int
    scheduled_at_ms: int


@dataclass
class ClaimParams:
    queue: str
    now_ms: int
    before_ms: int
    claim_as: str | None
    visibility_timeout: int


@dataclass
class RetryPolicy:
    """How many times a job runs and how long it waits between attempts.

    The delay before attempt ``n + 1`` is ``backoff_base * 2 ** (n - 1)``
    milliseconds, clamped to ``max_retry_delay``. With the defaults a job
    runs at most 5 times and waits 2, 4, 8 and 16 seconds between attempts.
    """

    max_attempts: int = 5
    backoff_base: int = 2000
    max_retry_delay: int = 12 * 3600 * 1000

    def backoff_delay(self, attempt: int) -> int:
        planned_delay = self.backoff_base * 2 ** max(attempt - 1, 0)
        return min(planned_delay, self.max_retry_delay)


@dataclass
class RetentionWindow:
    max_age: int
    max_count: int


@dataclass
class RetentionPolicy:
    """Age (seconds) and count windows for terminal jobs."""

    completed: RetentionWindow = field(
        default_factory=lambda: RetentionWindow(max_age=3600, max_count=5000)
    )
    exhausted: RetentionWindow = field(
        default_factory=lambda: RetentionWindow(max_age=86400, max_count=1000)
    )
