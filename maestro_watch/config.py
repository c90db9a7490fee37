"""Configuration objects for maestro-watch."""

from dataclasses import dataclass, field

DEFAULT_SERVER = "http://127.0.0.1:8000"
DEFAULT_SOURCE_ID = "maestro-watch"
DEFAULT_USER_AGENT = "maestro-watch/0.1.0"


@dataclass
class RetryPolicy:
    """How the processing loop retries a failed resource lookup.

    A lookup is attempted up to `max_attempts` times. The delay between
    attempts starts at `initial_backoff` seconds and is multiplied by
    `multiplier` after every failure, capped at `max_backoff`.
    """

    max_attempts: int = 5
    initial_backoff: float = 0.5
    max_backoff: float = 10.0
    multiplier: float = 2.0

    @classmethod
    def fatal(cls) -> "RetryPolicy":
        """Return a policy where the first failure ends the watch."""
        return cls(max_attempts=1)


@dataclass
class WatchStoreConfig:
    """Configuration for the WatchStore."""

    retry: RetryPolicy = field(default_factory=RetryPolicy)

    stop_on_delete: bool = True
    """End the watch session after delivering a deletion."""

    emit_deleted_on_missing: bool = False
    """Emit a deletion when an added/modified key no longer exists.

    When false these notifications are dropped.
    """


@dataclass
class ClientConfig:
    """Configuration for the REST client."""

    server: str = DEFAULT_SERVER
    source_id: str = DEFAULT_SOURCE_ID
    timeout: float = 10.0
    insecure_skip_verify: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    page_size: int = 100
