"""
Tests for supplementary score providers.
"""

from talentrank.errors import SignalUnavailableError
from talentrank.matching import MatchResultManager
from talentrank.retry import CircuitBreaker
from talentrank.scoring import CandidateProfile, JobRequirement
from talentrank.signals import (
    NullSignalProvider,
    ProfileSignalProvider,
    ResilientSignalProvider,
    SignalProvider,
)

JOB = JobRequirement(job_id=1)
CANDIDATE = CandidateProfile(candidate_id=2, personality_score=130.0, cultural_fit_score=40.0)


class FlakyProvider(SignalProvider):
    name = "flaky"

    def __init__(self, failures):
        self.failures = failures
        self.calls = 0

    def personality_score(self, job, candidate):
        self.calls += 1
        if self.calls <= self.failures:
            raise SignalUnavailableError("assessment service timed out")
        return 65.0


class TestProviders:
    """Plain providers."""

    def test_null_provider(self):
        assert NullSignalProvider().scores(JOB, CANDIDATE) == {"personality": None, "cultural_fit": None}

    def test_profile_provider_clamps(self):
        scores = ProfileSignalProvider().scores(JOB, CANDIDATE)
        assert scores == {"personality": 100.0, "cultural_fit": 40.0}


class TestResilientProvider:
    """Retry and degradation."""

    def test_recovers_after_retry(self):
        inner = FlakyProvider(failures=1)
        provider = ResilientSignalProvider(inner, max_retries=2, base_delay=0)
        assert provider.scores(JOB, CANDIDATE)["personality"] == 65.0
        assert inner.calls == 2

    def test_degrades_to_absent(self):
        inner = FlakyProvider(failures=10)
        provider = ResilientSignalProvider(inner, max_retries=1, base_delay=0)
        assert provider.scores(JOB, CANDIDATE)["personality"] is None
        assert inner.calls == 2

    def test_open_circuit_skips_provider(self):
        inner = FlakyProvider(failures=10)
        breaker = CircuitBreaker(failure_threshold=1, recovery_timeout=60)
        provider = ResilientSignalProvider(inner, max_retries=3, base_delay=0, breaker=breaker)

        assert provider.personality_score(JOB, CANDIDATE) is None
        calls_after_open = inner.calls
        assert provider.personality_score(JOB, CANDIDATE) is None
        assert inner.calls == calls_after_open


class BrokenClientProvider(SignalProvider):
    name = "broken-client"

    def __init__(self):
        self.calls = 0

    def personality_score(self, job, candidate):
        self.calls += 1
        raise KeyError("assessment missing")

    def cultural_fit_score(self, job, candidate):
        return 70.0


class TestUnexpectedProviderErrors:
    """Errors outside the retryable set still degrade to absent."""

    def test_untyped_error_is_absent_without_retry(self):
        inner = BrokenClientProvider()
        provider = ResilientSignalProvider(inner, max_retries=3, base_delay=0)
        assert provider.scores(JOB, CANDIDATE) == {"personality": None, "cultural_fit": 70.0}
        assert inner.calls == 1

    def test_match_stored_when_provider_breaks(self, db_path, make_job, make_candidate):
        manager = MatchResultManager(
            db_path, signals=ResilientSignalProvider(BrokenClientProvider(), max_retries=1, base_delay=0)
        )
        result = manager.create_or_update_match(make_job(), make_candidate())
        assert result.personality_score is None
        assert result.cultural_fit_score == 70.0
        assert result.overall_score is not None
