"""
Unit tests for src/jobs/descriptors.py
"""

from src.enrichment.exceptions import EnrichmentError
from src.jobs.descriptors import DESCRIPTORS, ENRICHMENT, MEDIA, JobDescriptor


class TestDelayFor:
    """Tests for JobDescriptor.delay_for method."""

    def test_enrichment_backoff(self):
        assert [ENRICHMENT.delay_for(n) for n in range(1, 6)] == [120, 300, 600, 900, 1200]

    def test_rate_limit_backoff(self):
        error = EnrichmentError.rate_limited()
        assert [ENRICHMENT.delay_for(n, error) for n in range(1, 6)] == [60, 120, 240, 480, 960]

    def test_overloaded_uses_normal_table(self):
        assert ENRICHMENT.delay_for(1, EnrichmentError.overloaded()) == 120

    def test_last_entry_repeats(self):
        assert MEDIA.delay_for(10) == 300

    def test_attempt_floor(self):
        assert MEDIA.delay_for(0) == 60

    def test_media_ignores_rate_limit(self):
        assert MEDIA.delay_for(1, EnrichmentError.rate_limited()) == 60

    def test_empty_table(self):
        assert JobDescriptor("x", 1, ()).delay_for(1) == 0


class TestIsRetryable:
    """Tests for JobDescriptor.is_retryable method."""

    def test_retryable_enrichment_error(self):
        assert ENRICHMENT.is_retryable(EnrichmentError.rate_limited()) is True

    def test_permanent_enrichment_error(self):
        assert ENRICHMENT.is_retryable(EnrichmentError.api_error(400, "bad request")) is False

    def test_other_errors_retryable(self):
        assert MEDIA.is_retryable(RuntimeError("disk full")) is True


class TestDescriptors:
    """Tests for the queue policies."""

    def test_budgets(self):
        assert ENRICHMENT.max_attempts == 5
        assert ENRICHMENT.timeout == 120
        assert MEDIA.max_attempts == 3
        assert MEDIA.timeout == 180

    def test_registry(self):
        assert DESCRIPTORS == {"enrichment": ENRICHMENT, "media": MEDIA}
