"""
Exception taxonomy for the matching and ranking engine.

Callers can tell "fix your input" (InvalidWeightConfiguration,
InvalidRecordError) apart from "nothing to rank yet" (NoResumeError,
NoMatchDataError) and "not found" (NotFoundError).
"""

from typing import List, Optional


class TalentRankError(Exception):
    """Base class for engine errors."""
    pass


class InvalidWeightConfiguration(TalentRankError, ValueError):
    """Raised when a weight configuration does not sum to 100 or is out of bounds."""

    def __init__(self, message: str, total: Optional[float] = None):
        super().__init__(message)
        self.message = message
        self.total = total


class InvalidRecordError(TalentRankError, ValueError):
    """Raised when a job or candidate record fails validation."""

    def __init__(self, kind: str, errors: List[str]):
        super().__init__(f"Invalid {kind}: " + "; ".join(errors))
        self.kind = kind
        self.errors = errors


class NotFoundError(TalentRankError, LookupError):
    """Raised when a job, candidate, match result or ranking id is unknown."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity.capitalize()} not found with id: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class NoResumeError(TalentRankError):
    """Raised when a candidate has neither a resume nor any profile data."""

    def __init__(self, candidate_id):
        super().__init__(f"Candidate {candidate_id} has no resume or profile data")
        self.candidate_id = candidate_id


class NoMatchDataError(TalentRankError):
    """Raised when a job has no latest match results to rank."""

    def __init__(self, job_id):
        super().__init__(
            f"No match results found for job {job_id}. Run matching first."
        )
        self.job_id = job_id


class StaleMatchResultError(TalentRankError):
    """Raised when an in-place recalculation targets a historical match result."""

    def __init__(self, match_result_id):
        super().__init__(
            f"Match result {match_result_id} is not the latest for its job and candidate"
        )
        self.match_result_id = match_result_id


class ConcurrentRankingError(TalentRankError):
    """Raised when another writer committed the same ranking generation first."""

    def __init__(self, job_id, generation: int):
        super().__init__(
            f"Ranking generation {generation} for job {job_id} was written concurrently"
        )
        self.job_id = job_id
        self.generation = generation


class SignalUnavailableError(TalentRankError):
    """Raised by signal providers when an external score cannot be fetched."""
    pass


class CircuitOpenError(TalentRankError):
    """Raised when a circuit breaker blocks calls to a failing provider."""
    pass
