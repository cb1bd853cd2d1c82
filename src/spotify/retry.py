"""Finite retry policy for Spotify Web API requests."""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed delay table retry policy.

    Attributes:
        delays: Seconds to wait before retry N (index N-1); the last entry is
            reused if max_attempts exceeds the table
        max_attempts: Total attempts including the first request
        retryable_statuses: HTTP statuses that trigger a retry
        max_retry_after: Upper bound honoured for a server Retry-After value

    Example:
        >>> policy = RetryPolicy(delays=(0.5, 1.0), max_attempts=3)
        >>> policy.should_retry(503, attempt=1)
        True
        >>> policy.should_retry(503, attempt=3)
        False
        >>> policy.delay_for(2)
        1.0
    """

    delays: Tuple[float, ...] = (0.5, 1.0, 2.0)
    max_attempts: int = 3
    retryable_statuses: FrozenSet[int] = field(default_factory=lambda: RETRYABLE_STATUSES)
    max_retry_after: float = 30.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if not self.delays:
            raise ValueError("delays must contain at least one entry")

    def should_retry(self, status: int, attempt: int) -> bool:
        """Return True if a response with ``status`` on ``attempt`` (1-based) should be retried."""
        return status in self.retryable_statuses and attempt < self.max_attempts

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Seconds to sleep after failed ``attempt`` (1-based)."""
        if retry_after is not None and retry_after >= 0:
            return min(retry_after, self.max_retry_after)
        index = min(attempt - 1, len(self.delays) - 1)
        return self.delays[max(index, 0)]


NO_RETRY = RetryPolicy(delays=(0.0,), max_attempts=1)
