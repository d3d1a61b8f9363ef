from .base_job import JobStatusValueType
from .base_sql import BaseSQL
from .estimate import (
    Candidate,
    CandidateMatch,
    EstimationResult,
    MarketStats,
    MatchRule,
    RecordMeta,
    SearchResult,
)
from .job import Job
from .params import RetentionPolicy, RetentionWindow, RetryPolicy
from .queue_stats import QueueStats
from .raw_job import RawJob
from .record import PriceEstimate, Record


__all__ = [
    "BaseSQL",
    "Candidate",
    "CandidateMatch",
    "EstimationResult",
    "Job",
    "JobStatusValueType",
    "MarketStats",
    "MatchRule",
    "PriceEstimate",
    "QueueStats",
    "RawJob",
    "Record",
    "RecordMeta",
    "RetentionPolicy",
    "RetentionWindow",
    "RetryPolicy",
    "SearchResult",
]
