from .handlers import EstimateHandler, JobHandler, noop
from .pool import WorkerPool


__all__ = ["EstimateHandler", "JobHandler", "WorkerPool", "noop"]
