from .core import JobQueue
from .estimation import DiscogsClient, EstimationPipeline, OpenAINormalizer
from .jobs import ESTIMATE, enqueue_estimate
from .models import EstimationResult, Job, QueueStats, RecordMeta, RetryPolicy
from .store import RecordStore
from .worker import EstimateHandler, WorkerPool


__all__ = [
    "DiscogsClient",
    "ESTIMATE",
    "EstimateHandler",
    "EstimationPipeline",
    "EstimationResult",
    "Job",
    "JobQueue",
    "OpenAINormalizer",
    "QueueStats",
    "RecordMeta",
    "RecordStore",
    "RetryPolicy",
    "WorkerPool",
    "enqueue_estimate",
]
