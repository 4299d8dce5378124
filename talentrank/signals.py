"""
Supplementary scoring signals (personality, cultural fit).

These dimensions are not computed by the engine. They are supplied by
pluggable providers, for example an assessment service or scores recorded on
the candidate profile. An absent signal leaves the dimension unscored.
"""

from typing import Dict, Optional

from .errors import SignalUnavailableError
from .logger import StructuredLogger, get_logger
from .retry import CircuitBreaker, exponential_backoff
from .scoring import CandidateProfile, JobRequirement

SIGNAL_DIMENSIONS = ("personality", "cultural_fit")


def _clamp(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return min(100.0, max(0.0, float(value)))


class SignalProvider:
    """Base provider: subclasses return a 0-100 score or None per dimension."""

    name = "base"

    def personality_score(self, job: JobRequirement, candidate: CandidateProfile) -> Optional[float]:
        return None

    def cultural_fit_score(self, job: JobRequirement, candidate: CandidateProfile) -> Optional[float]:
        return None

    def scores(self, job: JobRequirement, candidate: CandidateProfile) -> Dict[str, Optional[float]]:
        return {
            "personality": _clamp(self.personality_score(job, candidate)),
            "cultural_fit": _clamp(self.cultural_fit_score(job, candidate)),
        }


class NullSignalProvider(SignalProvider):
    """No external signals; both dimensions stay unscored."""

    name = "null"


class ProfileSignalProvider(SignalProvider):
    """Reads externally recorded assessment scores stored on the candidate profile."""

    name = "profile"

    def personality_score(self, job, candidate):
        return candidate.personality_score

    def cultural_fit_score(self, job, candidate):
        return candidate.cultural_fit_score


class ResilientSignalProvider(SignalProvider):
    """
    Wraps another provider with retries and a circuit breaker.

    A dimension whose provider keeps failing is reported as absent and a
    warning is logged; matching continues with the remaining dimensions.
    """

    def __init__(
        self,
        provider: SignalProvider,
        max_retries: int = 2,
        base_delay: float = 0.5,
        breaker: Optional[CircuitBreaker] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.provider = provider
        self.name = f"resilient:{provider.name}"
        self.breaker = breaker or CircuitBreaker(failure_threshold=5, recovery_timeout=60)
        self.logger = logger or get_logger()
        self._fetch = exponential_backoff(
            max_retries=max_retries,
            base_delay=base_delay,
            exceptions=(SignalUnavailableError, TimeoutError, ConnectionError),
            on_retry=self._on_retry,
        )(self._call_provider)

    def _on_retry(self, attempt, error, delay):
        self.logger.debug(
            "Retrying signal provider",
            provider=self.provider.name,
            attempt=attempt,
            delay=delay,
            error=str(error),
        )

    def _call_provider(self, method_name: str, job, candidate):
        method = getattr(self.provider, method_name)
        return self.breaker.call(method, job, candidate)

    def _guarded(self, method_name: str, job, candidate) -> Optional[float]:
        try:
            return self._fetch(method_name, job, candidate)
        except Exception as e:
            # Any provider failure leaves the dimension unscored; matching goes on.
            self.logger.warning(
                "Signal unavailable, dimension left unscored",
                provider=self.provider.name,
                signal=method_name,
                job_id=job.job_id,
                candidate_id=candidate.candidate_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

    def personality_score(self, job, candidate):
        return self._guarded("personality_score", job, candidate)

    def cultural_fit_score(self, job, candidate):
        return self._guarded("cultural_fit_score", job, candidate)
