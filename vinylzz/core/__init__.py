from .queue import JobQueue, DequeueContextManager


__all__ = ["JobQueue", "DequeueContextManager"]
