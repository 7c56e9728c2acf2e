"""Enrichment exceptions."""

from typing import Optional


class EnrichmentError(Exception):
    """
    Failure talking to or interpreting the enrichment service.

    Attributes:
        retryable: Whether the job should be rescheduled
        http_status: Upstream HTTP status, when there was one
    """

    def __init__(
        self,
        message: str,
        retryable: bool = False,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.retryable = retryable
        self.http_status = http_status

    @property
    def is_rate_limit(self) -> bool:
        """Whether this is an upstream 429."""
        return self.http_status == 429

    @classmethod
    def rate_limited(cls, detail: str = "") -> "EnrichmentError":
        return cls(f"Enrichment API rate limit exceeded. {detail}".strip(), True, 429)

    @classmethod
    def overloaded(cls, detail: str = "") -> "EnrichmentError":
        return cls(f"Enrichment API overloaded. {detail}".strip(), True, 529)

    @classmethod
    def models_exhausted(cls, detail: str = "") -> "EnrichmentError":
        return cls(f"Enrichment API overloaded on every model. {detail}".strip(), False, 529)

    @classmethod
    def unreachable(cls, detail: str = "") -> "EnrichmentError":
        return cls(f"Enrichment API unreachable. {detail}".strip())

    @classmethod
    def api_error(cls, status: int, detail: str = "") -> "EnrichmentError":
        return cls(f"Enrichment API returned {status}: {detail}".strip(), False, status)

    @classmethod
    def missing_api_key(cls) -> "EnrichmentError":
        return cls("Anthropic API key not configured.")

    @classmethod
    def no_usable_data(cls, detail: str = "") -> "EnrichmentError":
        return cls(f"No usable listing data. {detail}".strip())

    @classmethod
    def json_parse_failed(cls, detail: str = "") -> "EnrichmentError":
        return cls(f"Failed to parse JSON from enrichment response. {detail}".strip())
