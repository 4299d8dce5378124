"""
Match result lifecycle.

Responsibilities:
- Score a (job, candidate) pair and persist it as a new match result version.
- Recalculate the latest match result in place.
- Classify required skills into matched / partial / missing.
- Batch scoring with per-candidate failure isolation.

Invariant:
At most one latest match result exists per (job, candidate). Writing a new
version demotes the previous one without touching its scores; in-place
recalculation is only allowed on the latest version.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from sqlalchemy.orm import Session

from . import repositories as repo
from .database import MatchResult, session_scope
from .errors import NoResumeError, StaleMatchResultError
from .locks import KeyedLock, match_locks
from .logger import StructuredLogger, get_logger
from .normalize import join_skills, parse_skills
from .scoring import CandidateProfile, ComponentScorer, JobRequirement
from .signals import NullSignalProvider, SignalProvider

RAW_EXCERPT_CHARS = 500


@dataclass(frozen=True)
class SkillBreakdown:
    matched: FrozenSet[str] = frozenset()
    partial: FrozenSet[str] = frozenset()
    missing: FrozenSet[str] = frozenset()


@dataclass
class BatchResult:
    """Outcome of a batch run; failures never abort sibling items."""

    processed: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    errors: Dict[int, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.processed + self.failed + self.skipped


def classify_skills(required: Iterable[str], candidate: Iterable[str]) -> SkillBreakdown:
    """
    Place every required skill in exactly one of matched / partial / missing.

    matched: the candidate lists the skill exactly.
    partial: a candidate skill contains the requirement or vice versa.
    missing: neither.
    """
    required_set = parse_skills(required)
    candidate_set = parse_skills(candidate)

    matched, partial, missing = set(), set(), set()
    for skill in required_set:
        if skill in candidate_set:
            matched.add(skill)
        elif any(skill in c or c in skill for c in candidate_set):
            partial.add(skill)
        else:
            missing.add(skill)
    return SkillBreakdown(frozenset(matched), frozenset(partial), frozenset(missing))


class MatchResultManager:
    """Creates, recalculates and queries match results stored at db_path."""

    def __init__(
        self,
        db_path: Path,
        scorer: Optional[ComponentScorer] = None,
        signals: Optional[SignalProvider] = None,
        logger: Optional[StructuredLogger] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.db_path = Path(db_path)
        self.scorer = scorer or ComponentScorer()
        self.signals = signals or NullSignalProvider()
        self.logger = logger or get_logger()
        self.locks = locks or match_locks

    # ----------------- scoring -----------------

    def _apply_scores(self, result: MatchResult, job: JobRequirement, candidate: CandidateProfile) -> None:
        scores = self.scorer.score(job, candidate)
        result.skills_score = scores.get("skills")
        result.experience_score = scores.get("experience")
        result.education_score = scores.get("education")
        result.overall_score = self.scorer.overall_score(scores)

        signal_scores = self.signals.scores(job, candidate)
        result.personality_score = signal_scores.get("personality")
        result.cultural_fit_score = signal_scores.get("cultural_fit")

        breakdown = classify_skills(job.required_skills or (), candidate.skills)
        result.matched_skills = join_skills(breakdown.matched)
        result.partial_skills = join_skills(breakdown.partial)
        result.missing_skills = join_skills(breakdown.missing)

    @staticmethod
    def _apply_extracted(result: MatchResult, candidate: CandidateProfile) -> None:
        result.extracted_skills = join_skills(candidate.skills) or None
        if candidate.experience_years is not None:
            result.extracted_experience = f"{candidate.experience_years} years of experience"
        else:
            result.extracted_experience = "Experience not specified"
        result.extracted_education = candidate.education
        if candidate.resume_text:
            result.raw_extracted_data = candidate.resume_text[:RAW_EXCERPT_CHARS]

    def _create_in_session(self, session: Session, job_id: int, candidate_id: int) -> MatchResult:
        job_row = repo.require_job(session, job_id)
        candidate_row = repo.require_candidate(session, candidate_id)
        job = JobRequirement.from_row(job_row)
        candidate = CandidateProfile.from_row(candidate_row)
        if not candidate.has_profile_data:
            raise NoResumeError(candidate_id)

        now = datetime.now()
        result = MatchResult(
            job_id=job_id,
            candidate_id=candidate_id,
            resume_version=candidate.resume_version,
            version=repo.next_match_version(session, job_id, candidate_id),
            recalculation_count=1,
            is_active=True,
            match_date=now,
            last_recalculated_date=now,
        )
        self._apply_scores(result, job, candidate)
        self._apply_extracted(result, candidate)
        session.add(result)
        session.flush()
        session.refresh(result)
        return result

    def create_or_update_match(self, job_id: int, candidate_id: int) -> MatchResult:
        """
        Score the pair and store a new latest match result.

        Raises:
            NotFoundError: Unknown job or candidate
            NoResumeError: Candidate has no resume or profile data
        """
        self.logger.record_match_attempt(job_id)
        try:
            with self.locks.hold((job_id, candidate_id)):
                with session_scope(self.db_path) as session:
                    result = self._create_in_session(session, job_id, candidate_id)
        except Exception as e:
            self.logger.record_match_failure(job_id, type(e).__name__)
            raise
        self.logger.record_match_success(job_id)
        self.logger.debug(
            "Match result stored",
            job_id=job_id,
            candidate_id=candidate_id,
            match_result_id=result.id,
            version=result.version,
            overall_score=result.overall_score,
        )
        return result

    def recalculate_score(self, match_result_id: int) -> MatchResult:
        """
        Re-run scoring in place on the latest match result for its pair.

        Raises:
            NotFoundError: Unknown match result, job or candidate
            StaleMatchResultError: The match result has been superseded
        """
        with session_scope(self.db_path) as session:
            existing = repo.require_match(session, match_result_id)
            key = (existing.job_id, existing.candidate_id)

        with self.locks.hold(key):
            with session_scope(self.db_path) as session:
                result = repo.require_match(session, match_result_id)
                if not result.is_latest:
                    raise StaleMatchResultError(match_result_id)
                job = JobRequirement.from_row(repo.require_job(session, result.job_id))
                candidate = CandidateProfile.from_row(repo.require_candidate(session, result.candidate_id))

                result.recalculation_count = (result.recalculation_count or 0) + 1
                result.last_recalculated_date = datetime.now()
                self._apply_scores(result, job, candidate)
                session.flush()
                session.refresh(result)

        self.logger.debug(
            "Match result recalculated",
            match_result_id=match_result_id,
            recalculation_count=result.recalculation_count,
            overall_score=result.overall_score,
        )
        return result

    # ----------------- batch -----------------

    def process_all_candidates_for_job(
        self,
        job_id: int,
        workers: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> BatchResult:
        """Score every candidate with profile data against the job."""
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            candidates = [CandidateProfile.from_row(c) for c in repo.list_candidates(session)]

        batch = BatchResult()
        eligible = []
        for candidate in candidates:
            if candidate.has_profile_data:
                eligible.append(candidate.candidate_id)
            else:
                batch.skipped += 1

        def run(candidate_id: int) -> None:
            self.create_or_update_match(job_id, candidate_id)

        self._run_batch(eligible, run, batch, cancel, workers or 1, label="candidate")
        self.logger.info(
            "Processed candidates for job",
            job_id=job_id,
            processed=batch.processed,
            failed=batch.failed,
            skipped=batch.skipped,
            cancelled=batch.cancelled,
        )
        return batch

    def batch_recalculate_for_job(self, job_id: int, cancel: Optional[threading.Event] = None) -> BatchResult:
        """Recalculate every latest active match result for the job in place."""
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            ids = [m.id for m in repo.latest_matches_for_job(session, job_id)]

        batch = BatchResult()
        self._run_batch(ids, self.recalculate_score, batch, cancel, 1, label="match result")
        self.logger.info(
            "Recalculated match results for job",
            job_id=job_id,
            processed=batch.processed,
            failed=batch.failed,
            cancelled=batch.cancelled,
        )
        return batch

    def _run_batch(self, items: List[int], fn, batch: BatchResult, cancel, workers: int, label: str) -> None:
        lock = threading.Lock()

        def guarded(item: int) -> None:
            if cancel is not None and cancel.is_set():
                with lock:
                    batch.cancelled = True
                return
            try:
                fn(item)
            except Exception as e:
                # Isolate the failure; siblings keep going.
                with lock:
                    batch.failed += 1
                    batch.errors[item] = f"{type(e).__name__}: {e}"
                self.logger.warning(f"Failed to process {label}", item=item, error=str(e))
            else:
                with lock:
                    batch.processed += 1

        if workers <= 1:
            for item in items:
                guarded(item)
                if batch.cancelled:
                    break
            return

        with ThreadPoolExecutor(max_workers=workers) as pool:
            list(pool.map(guarded, items))

    # ----------------- reads -----------------

    def get_match_result(self, match_result_id: int) -> MatchResult:
        with session_scope(self.db_path) as session:
            return repo.require_match(session, match_result_id)

    def get_latest_match(self, job_id: int, candidate_id: int) -> Optional[MatchResult]:
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            repo.require_candidate(session, candidate_id)
            return repo.latest_match(session, job_id, candidate_id)

    def latest_matches_for_job(self, job_id: int) -> List[MatchResult]:
        with session_scope(self.db_path) as session:
            return repo.latest_matches_for_job(session, job_id)

    def match_history(self, job_id: int, candidate_id: int) -> List[MatchResult]:
        with session_scope(self.db_path) as session:
            return repo.match_history(session, job_id, candidate_id)

    def matches_for_candidate(self, candidate_id: int) -> List[MatchResult]:
        with session_scope(self.db_path) as session:
            repo.require_candidate(session, candidate_id)
            return repo.matches_for_candidate(session, candidate_id)

    def top_matches_for_job(self, job_id: int, limit: int = 10, min_score: Optional[float] = None) -> List[MatchResult]:
        threshold = min_score if min_score is not None else 0.0
        matches = [
            m for m in self.latest_matches_for_job(job_id)
            if m.overall_score is not None and m.overall_score >= threshold
        ]
        matches.sort(key=lambda m: (-m.overall_score, m.candidate_id))
        return matches[:max(0, limit)]

    def ranked_matches_for_job(self, job_id: int) -> List[Dict[str, Any]]:
        """Quick-score ordering of latest matches with position percentile. Nothing is persisted."""
        with session_scope(self.db_path) as session:
            matches = repo.latest_matches_for_job(session, job_id)
            people = repo.candidates_by_id(session, (m.candidate_id for m in matches))

        ordered = sorted(
            matches,
            key=lambda m: (m.overall_score is None, -(m.overall_score or 0.0), m.candidate_id),
        )
        total = len(ordered)
        ranked = []
        for index, match in enumerate(ordered):
            person = people.get(match.candidate_id)
            ranked.append({
                "rank": index + 1,
                "candidate_id": match.candidate_id,
                "candidate_name": person.full_name if person else None,
                "candidate_email": person.email if person else None,
                "overall_score": match.overall_score,
                "skills_score": match.skills_score,
                "experience_score": match.experience_score,
                "education_score": match.education_score,
                "matched_skills": match.matched_skill_list,
                "missing_skills": match.missing_skill_list,
                "match_level": match.match_level,
                "percentile": (total - index - 1) * 100.0 / total,
            })
        return ranked

    def match_statistics(self, job_id: int) -> Dict[str, Any]:
        scores = [m.overall_score for m in self.latest_matches_for_job(job_id) if m.overall_score is not None]
        return {
            "total_matches": len(scores),
            "average_score": sum(scores) / len(scores) if scores else 0.0,
            "max_score": max(scores) if scores else 0.0,
            "min_score": min(scores) if scores else 0.0,
            "excellent_matches": sum(1 for s in scores if s >= 80),
            "good_matches": sum(1 for s in scores if 60 <= s < 80),
            "average_matches": sum(1 for s in scores if 40 <= s < 60),
            "poor_matches": sum(1 for s in scores if s < 40),
        }

    # ----------------- removal -----------------

    def remove_match_record(self, match_result_id: int) -> MatchResult:
        """Soft delete: the row stays for audit but is excluded from ranking."""
        with session_scope(self.db_path) as session:
            result = repo.require_match(session, match_result_id)
            result.is_active = False
            session.flush()
            session.refresh(result)
            return result

    def deactivate_all_for_job(self, job_id: int) -> int:
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            return (
                session.query(MatchResult)
                .filter(MatchResult.job_id == job_id, MatchResult.is_active.is_(True))
                .update({MatchResult.is_active: False}, synchronize_session=False)
            )

    def delete_all_for_job(self, job_id: int) -> int:
        with session_scope(self.db_path) as session:
            return repo.delete_matches_for_job(session, job_id)
