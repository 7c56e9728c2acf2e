"""
Job descriptors.

Retry policy per queue: attempt budget, backoff tables and handler timeout.
"""

from dataclasses import dataclass
from typing import Optional

from src.enrichment.exceptions import EnrichmentError


@dataclass(frozen=True)
class JobDescriptor:
    """
    Retry policy of one queue.

    Attributes:
        name: Queue name
        max_attempts: Attempts before the job is failed
        backoff: Delay in seconds after attempt N (last entry repeats)
        rate_limit_backoff: Delays used instead when upstream rate-limited us
        timeout: Seconds a single attempt may run
    """

    name: str
    max_attempts: int
    backoff: tuple[int, ...]
    rate_limit_backoff: Optional[tuple[int, ...]] = None
    timeout: int = 60

    def delay_for(self, attempt: int, error: Optional[BaseException] = None) -> int:
        """
        Seconds to wait before retrying after a failed attempt.

        Args:
            attempt: 1-based number of the attempt that just failed
            error: The failure, used to pick the rate-limit table

        Returns:
            Delay in seconds
        """
        table = self.backoff
        if (
            self.rate_limit_backoff
            and isinstance(error, EnrichmentError)
            and error.is_rate_limit
        ):
            table = self.rate_limit_backoff

        if not table:
            return 0
        return table[min(max(attempt, 1) - 1, len(table) - 1)]

    def is_retryable(self, error: BaseException) -> bool:
        """Enrichment errors carry their own verdict; anything else is transient."""
        if isinstance(error, EnrichmentError):
            return error.retryable
        return True


ENRICHMENT = JobDescriptor(
    name="enrichment",
    max_attempts=5,
    backoff=(120, 300, 600, 900, 1200),
    rate_limit_backoff=(60, 120, 240, 480, 960),
    timeout=120,
)

MEDIA = JobDescriptor(
    name="media",
    max_attempts=3,
    backoff=(60, 180, 300),
    timeout=180,
)

DESCRIPTORS = {d.name: d for d in (ENRICHMENT, MEDIA)}
