import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from vinylzz.errors import ConfigurationError
from vinylzz.models import RetentionPolicy, RetentionWindow, RetryPolicy


def _int(environ: dict[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def async_database_url(url: str) -> str:
    """Point plain PostgreSQL URLs at the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


@dataclass(frozen=True)
class Settings:
    database_url: str
    queue_database_url: str
    queue_name: str = "vinyl-jobs"
    concurrency: int = 3
    poll_interval: int = 1000
    visibility_timeout: int = 60 * 1000
    prune_interval: int = 60 * 1000
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    retention: RetentionPolicy = field(default_factory=RetentionPolicy)
    discogs_token: str | None = None
    discogs_user_agent: str = "vinylzz/1.0 +https://example.com"
    discogs_base_url: str = "https://api.discogs.com"
    discogs_request_delay: int = 150
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = "https://api.openai.com/v1"
    log_level: str = "INFO"

    @staticmethod
    def from_env(environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from the environment.

        A ``.env`` file in the working directory is loaded first when
        reading from the process environment. Variables already set in the
        environment win over the file.
        """
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)

        database_url = environ.get("DATABASE_URL")
        if not database_url:
            raise ConfigurationError("DATABASE_URL is not set")
        database_url = async_database_url(database_url)
        queue_database_url = async_database_url(
            environ.get("QUEUE_DATABASE_URL") or database_url
        )

        retry = RetryPolicy(
            max_attempts=_int(environ, "JOB_MAX_ATTEMPTS", 5),
            backoff_base=_int(environ, "JOB_BACKOFF_BASE_MS", 2000),
            max_retry_delay=_int(environ, "JOB_MAX_RETRY_DELAY_MS", 12 * 3600 * 1000),
        )
        retention = RetentionPolicy(
            completed=RetentionWindow(
                max_age=_int(environ, "RETENTION_COMPLETED_AGE_S", 3600),
                max_count=_int(environ, "RETENTION_COMPLETED_COUNT", 5000),
            ),
            exhausted=RetentionWindow(
                max_age=_int(environ, "RETENTION_EXHAUSTED_AGE_S", 86400),
                max_count=_int(environ, "RETENTION_EXHAUSTED_COUNT", 1000),
            ),
        )

        return Settings(
            database_url=database_url,
            queue_database_url=queue_database_url,
            queue_name=environ.get("QUEUE_NAME") or "vinyl-jobs",
            concurrency=_int(environ, "WORKER_CONCURRENCY", 3),
            poll_interval=_int(environ, "WORKER_POLL_INTERVAL_MS", 1000),
            visibility_timeout=_int(environ, "WORKER_VISIBILITY_TIMEOUT_MS", 60 * 1000),
            prune_interval=_int(environ, "WORKER_PRUNE_INTERVAL_MS", 60 * 1000),
            retry=retry,
            retention=retention,
            discogs_token=environ.get("DISCOGS_TOKEN") or None,
            discogs_user_agent=environ.get("DISCOGS_USER_AGENT")
            or "vinylzz/1.0 +https://example.com",
            discogs_base_url=environ.get("DISCOGS_BASE_URL") or "https://api.discogs.com",
            discogs_request_delay=_int(environ, "DISCOGS_REQUEST_DELAY_MS", 150),
            openai_api_key=environ.get("OPENAI_API_KEY") or None,
            openai_model=environ.get("OPENAI_MODEL") or "gpt-4o-mini",
            openai_base_url=environ.get("OPENAI_BASE_URL") or "https://api.openai.com/v1",
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        )
