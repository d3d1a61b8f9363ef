class VinylzzError(Exception):
    pass


class ConfigurationError(VinylzzError):
    pass


class QueueUnavailable(VinylzzError):
    """The durable store behind the job queue could not be reached."""


class RecordNotFound(VinylzzError):
    def __init__(self, record_id: int) -> None:
        super().__init__(f"record {record_id} not found")
        self.record_id = record_id


class SearchFailure(VinylzzError):
    """The external catalog search did not succeed.

    Fails the whole job. The queue retries it according to the job's
    retry policy.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class StatsFailure(VinylzzError):
    """Marketplace statistics could not be fetched. Never fails a job."""


class NormalizerFailure(VinylzzError):
    """Metadata cleanup failed. Never fails a job."""
