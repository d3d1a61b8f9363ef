import traceback
from uuid import UUID
from typing import Any

from sqlalchemy import update, Update

from vinylzz.models.job import Job
from vinylzz.models.raw_job import RawJob


def format_error(error: str | BaseException | None) -> tuple[str | None, str | None]:
    if error is None:
        return None, None
    if isinstance(error, BaseException):
        trace = "".join(traceback.format_exception(error))
        return str(error) or type(error).__name__, trace
    return str(error), None


class BaseQueue:
    """This class exists for proper type hinting and dependency inversion."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    RETRY = "pending-retry"
    EXHAUSTED = "exhausted"
    STATUSES = (PENDING, ACTIVE, COMPLETED, RETRY, EXHAUSTED)
    DEFAULT = "vinyl-jobs"

    @staticmethod
    def _guarded(
        job_id: UUID, status: str, attempt_num: int | None = None
    ) -> tuple:
        # Every transition is a compare-and-swap on the status and, when
        # known, the attempt number of the holder.
        where_clause = (RawJob.id == job_id, RawJob.status == status)
        if attempt_num is not None:
            where_clause += (RawJob.attempts == attempt_num,)
        return where_clause

    @staticmethod
    def _claim_statement(
        raw_job: RawJob, claimed_at: int, claimed_by: str | None
    ) -> Update:
        stmt = (
            update(RawJob)
            .where(*BaseQueue._guarded(raw_job.id, raw_job.status, raw_job.attempts))
            .values(
                status=BaseQueue.ACTIVE,
                attempts=raw_job.attempts + 1,
                claimed_at=claimed_at,
                claimed_by=claimed_by,
            )
            .execution_options(synchronize_session=False)
        )
        return stmt

    @staticmethod
    def _unclaim_statement(job_id: UUID, attempt_num: int) -> Update:
        # The interrupted attempt is handed back
        stmt = (
            update(RawJob)
            .where(*BaseQueue._guarded(job_id, BaseQueue.ACTIVE, attempt_num))
            .values(
                status=BaseQueue.PENDING,
                attempts=attempt_num - 1,
                claimed_at=None,
                claimed_by=None,
            )
            .execution_options(synchronize_session=False)
        )
        return stmt

    @staticmethod
    def _touch_statement(job_id: UUID, attempt_num: int, now: int) -> Update:
        stmt = (
            update(RawJob)
            .where(*BaseQueue._guarded(job_id, BaseQueue.ACTIVE, attempt_num))
            .values(claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        return stmt

    @staticmethod
    def _success_statement(
        job_id: UUID,
        result: Any | None,
        finished_at: int,
        attempt_num: int | None = None,
    ) -> Update:
        stmt = (
            update(RawJob)
            .where(*BaseQueue._guarded(job_id, BaseQueue.ACTIVE, attempt_num))
            .values(
                status=BaseQueue.COMPLETED,
                result=Job.serialize(result),
                finished_at=finished_at,
            )
            .execution_options(synchronize_session=False)
        )
        return stmt

    @staticmethod
    def _exhausted_statement(
        raw_job: RawJob,
        error: str | BaseException | None,
        finished_at: int,
    ) -> Update:
        message, trace = format_error(error)
        stmt = (
            update(RawJob)
            .where(*BaseQueue._guarded(raw_job.id, raw_job.status, raw_job.attempts))
            .values(
                status=BaseQueue.EXHAUSTED,
                error=message,
                error_trace=trace,
                finished_at=finished_at,
            )
            .execution_options(synchronize_session=False)
        )
        return stmt

    @staticmethod
    def _failed_statement(
        raw_job: RawJob,
        error: str | BaseException | None,
        finished_at: int,
    ) -> Update:
        # Calculate when to schedule the next attempt
        delay = raw_job.retry_policy.backoff_delay(raw_job.attempts)
        message, trace = format_error(error)

        stmt = (
            update(RawJob)
            .where(*BaseQueue._guarded(raw_job.id, raw_job.status, raw_job.attempts))
            .values(
                status=BaseQueue.RETRY,
                error=message,
                error_trace=trace,
                scheduled_at=finished_at + delay,
                claimed_at=None,
                claimed_by=None,
                finished_at=finished_at,
            )
            .execution_options(synchronize_session=False)
        )
        return stmt
