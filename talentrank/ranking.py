"""
Ranking engine.

Responsibilities:
- Apply a weight configuration to the latest match results of a job.
- Order candidates, assign contiguous rank positions and position percentiles.
- Persist each run as a new ranking generation, keeping previous generations
  as history and threading previous rank positions into the new run.

Invariant:
Within a generation, rank positions are exactly 1..N. Ties on composite score
are broken by candidate id ascending, so identical inputs produce identical
orderings. The current ranking of a job is its highest generation; writing a
new generation never touches rankings of other jobs.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy.exc import IntegrityError

from . import repositories as repo
from .database import (
    Candidate,
    CandidateRanking,
    HiringStatus,
    MatchResult,
    RANKING_CRITERIA_VERSION,
    RankingSnapshot,
    session_scope,
)
from .errors import ConcurrentRankingError, NoMatchDataError
from .locks import KeyedLock, job_locks
from .logger import StructuredLogger, get_logger
from .weights import DIMENSIONS, RankingWeightConfig, default_weights, require_valid


@dataclass
class RankingEntry:
    """Composite score for one candidate before a rank is assigned."""

    candidate_id: int
    match_result_id: Optional[int]
    weighted: Dict[str, float]
    composite: float


def weighted_scores(match: MatchResult, weights: RankingWeightConfig) -> Dict[str, float]:
    """
    score * weight / 100 per dimension; 0.0 when either the score or the
    weight is absent. An unscored dimension contributes nothing.
    """
    weighted = {}
    for dim in DIMENSIONS:
        score = match.dimension_score(dim)
        weight = weights.weight_for(dim)
        if score is not None and weight is not None and weight > 0:
            weighted[dim] = score * (weight / 100.0)
        else:
            weighted[dim] = 0.0
    return weighted


def composite_score(weighted: Dict[str, float]) -> float:
    return sum(weighted.get(dim, 0.0) for dim in DIMENSIONS)


def percentile(index: int, total: int) -> float:
    """Position-based percentile: rank 1 of N -> (N-1)*100/N, rank N -> 0."""
    if total <= 0:
        return 0.0
    return (total - index - 1) * 100.0 / total


def build_entry(match: MatchResult, weights: RankingWeightConfig) -> RankingEntry:
    weighted = weighted_scores(match, weights)
    return RankingEntry(
        candidate_id=match.candidate_id,
        match_result_id=match.id,
        weighted=weighted,
        composite=composite_score(weighted),
    )


def order_entries(entries: List[RankingEntry]) -> List[RankingEntry]:
    return sorted(entries, key=lambda e: (-e.composite, e.candidate_id))


# Recruiter decisions that follow a candidate from one generation to the next.
WORKFLOW_FIELDS = (
    "notes",
    "is_shortlisted",
    "shortlist_date",
    "shortlist_notes",
    "interview_scheduled",
    "interview_date",
    "interview_feedback",
    "hiring_status",
    "hiring_decision_date",
)


def carry_workflow(previous: CandidateRanking, row: CandidateRanking) -> None:
    for field in WORKFLOW_FIELDS:
        setattr(row, field, getattr(previous, field))


def _coerce_status(status: Union[HiringStatus, str]) -> HiringStatus:
    if isinstance(status, HiringStatus):
        return status
    key = status.strip()
    for member in HiringStatus:
        if key.upper().replace(" ", "_") == member.name or key.lower() == member.value.lower():
            return member
    raise ValueError(f"Unknown hiring status: {status!r}")


class RankingEngine:
    """Generates and queries candidate rankings stored at db_path."""

    def __init__(
        self,
        db_path: Path,
        default_config: Optional[RankingWeightConfig] = None,
        logger: Optional[StructuredLogger] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self.db_path = Path(db_path)
        self.default_config = require_valid(default_config or default_weights())
        self.logger = logger or get_logger()
        self.locks = locks or job_locks

    # ----------------- generation -----------------

    def generate_ranking(self, job_id: int, weights: Optional[RankingWeightConfig] = None) -> List[CandidateRanking]:
        """
        Rank every candidate with a latest match result for the job.

        Args:
            job_id: Job to rank
            weights: Weight configuration; the engine default when omitted

        Raises:
            InvalidWeightConfiguration: Weights invalid (nothing is written)
            NotFoundError: Unknown job
            NoMatchDataError: No latest match results for the job
            ConcurrentRankingError: Another process wrote this generation first
        """
        config = require_valid(weights if weights is not None else self.default_config)
        return self._rank(job_id, config)

    def recalculate_ranking_with_weights(
        self, job_id: int, new_weights: RankingWeightConfig
    ) -> List[CandidateRanking]:
        """What-if rerun with new weights; previous rank positions are carried over."""
        config = require_valid(new_weights)
        self.logger.info(
            "Recalculating ranking with new weights",
            job_id=job_id,
            weights=config.as_dict(),
        )
        return self._rank(job_id, config)

    def _rank(self, job_id: int, weights: RankingWeightConfig) -> List[CandidateRanking]:
        generation = None
        with self.locks.hold(job_id):
            try:
                with session_scope(self.db_path) as session:
                    repo.require_job(session, job_id)
                    matches = repo.latest_matches_for_job(session, job_id)
                    if not matches:
                        raise NoMatchDataError(job_id)

                    previous_generation = repo.current_generation(session, job_id)
                    previous_rows = {
                        r.candidate_id: r
                        for r in repo.rankings_for_generation(session, job_id, previous_generation)
                    }
                    generation = previous_generation + 1

                    entries = order_entries([build_entry(m, weights) for m in matches])
                    total = len(entries)

                    snapshot = RankingSnapshot(
                        job_id=job_id,
                        generation=generation,
                        skills_weight=weights.skills_weight,
                        experience_weight=weights.experience_weight,
                        education_weight=weights.education_weight,
                        personality_weight=weights.personality_weight,
                        cultural_fit_weight=weights.cultural_fit_weight,
                        config_name=weights.config_name,
                        total_candidates=total,
                        ranking_criteria_version=RANKING_CRITERIA_VERSION,
                    )
                    session.add(snapshot)
                    session.flush()

                    now = datetime.now()
                    rows = []
                    for index, entry in enumerate(entries):
                        new_rank = index + 1
                        previous = previous_rows.get(entry.candidate_id)
                        previous_rank = previous.rank_position if previous is not None else None
                        row = CandidateRanking(
                            snapshot_id=snapshot.id,
                            job_id=job_id,
                            candidate_id=entry.candidate_id,
                            match_result_id=entry.match_result_id,
                            generation=generation,
                            rank_position=new_rank,
                            previous_rank_position=previous_rank,
                            rank_change=(previous_rank - new_rank) if previous_rank is not None else None,
                            total_candidates_ranked=total,
                            percentile=percentile(index, total),
                            ranking_score=entry.composite,
                            weighted_skills_score=entry.weighted["skills"],
                            weighted_experience_score=entry.weighted["experience"],
                            weighted_education_score=entry.weighted["education"],
                            weighted_personality_score=entry.weighted["personality"],
                            weighted_cultural_fit_score=entry.weighted["cultural_fit"],
                            skills_weight=weights.skills_weight,
                            experience_weight=weights.experience_weight,
                            education_weight=weights.education_weight,
                            personality_weight=weights.personality_weight,
                            cultural_fit_weight=weights.cultural_fit_weight,
                            ranking_criteria_version=RANKING_CRITERIA_VERSION,
                            ranking_date=now,
                        )
                        if previous is not None:
                            carry_workflow(previous, row)
                        rows.append(row)
                    session.add_all(rows)
                    session.flush()
                    for row in rows:
                        session.refresh(row)
            except IntegrityError as e:
                self.logger.error("Concurrent ranking write detected", job_id=job_id, generation=generation)
                raise ConcurrentRankingError(job_id, generation) from e

        self.logger.record_ranking(len(rows))
        self.logger.info(
            "Ranking generated",
            job_id=job_id,
            generation=generation,
            candidates=len(rows),
            config_name=weights.config_name,
        )
        return rows

    # ----------------- reads -----------------

    def current_generation(self, job_id: int) -> int:
        with session_scope(self.db_path) as session:
            return repo.current_generation(session, job_id)

    def current_rankings(self, job_id: int) -> List[CandidateRanking]:
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            return repo.current_rankings(session, job_id)

    def current_rankings_with_candidates(self, job_id: int) -> List[Tuple[CandidateRanking, Candidate]]:
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            rankings = repo.current_rankings(session, job_id)
            people = repo.candidates_by_id(session, (r.candidate_id for r in rankings))
            return [(r, people.get(r.candidate_id)) for r in rankings]

    def get_ranking(self, ranking_id: int) -> CandidateRanking:
        with session_scope(self.db_path) as session:
            return repo.require_ranking(session, ranking_id)

    def current_ranking_for_candidate(self, job_id: int, candidate_id: int) -> Optional[CandidateRanking]:
        for ranking in self.current_rankings(job_id):
            if ranking.candidate_id == candidate_id:
                return ranking
        return None

    def top_ranked(self, job_id: int, top_n: int) -> List[CandidateRanking]:
        return [r for r in self.current_rankings(job_id) if r.rank_position <= top_n]

    def ranking_history(self, job_id: int, candidate_id: int) -> List[CandidateRanking]:
        """All generations for the candidate on the job, newest first."""
        with session_scope(self.db_path) as session:
            return repo.ranking_history(session, job_id, candidate_id)

    def rankings_by_minimum_score(self, job_id: int, min_score: float) -> List[CandidateRanking]:
        return [r for r in self.current_rankings(job_id) if r.ranking_score >= min_score]

    def shortlisted(self, job_id: int) -> List[CandidateRanking]:
        return [r for r in self.current_rankings(job_id) if r.is_shortlisted]

    def search_rankings(self, job_id: int, keyword: Optional[str]) -> List[CandidateRanking]:
        if keyword is None or not keyword.strip():
            return self.current_rankings(job_id)
        with session_scope(self.db_path) as session:
            repo.require_job(session, job_id)
            return repo.search_current_rankings(session, job_id, keyword)

    def ranking_statistics(self, job_id: int) -> Dict[str, Any]:
        rankings = self.current_rankings(job_id)
        scores = [r.ranking_score for r in rankings]
        return {
            "total_ranked": len(rankings),
            "generation": rankings[0].generation if rankings else 0,
            "average_score": sum(scores) / len(scores) if scores else 0.0,
            "max_score": max(scores) if scores else 0.0,
            "min_score": min(scores) if scores else 0.0,
            "shortlisted": sum(1 for r in rankings if r.is_shortlisted),
            "interviewed": sum(1 for r in rankings if r.interview_scheduled),
            "hired": sum(1 for r in rankings if r.hiring_status == HiringStatus.HIRED.name),
            "excellent_matches": sum(1 for s in scores if s >= 80),
            "good_matches": sum(1 for s in scores if 60 <= s < 80),
            "average_matches": sum(1 for s in scores if 40 <= s < 60),
            "poor_matches": sum(1 for s in scores if s < 40),
        }

    # ----------------- workflow updates -----------------

    def _update(self, ranking_id: int, apply) -> CandidateRanking:
        with session_scope(self.db_path) as session:
            ranking = repo.require_ranking(session, ranking_id)
            apply(ranking)
            session.flush()
            session.refresh(ranking)
            return ranking

    def update_shortlist_status(self, ranking_id: int, shortlisted: bool, notes: Optional[str] = None) -> CandidateRanking:
        def apply(ranking: CandidateRanking) -> None:
            ranking.is_shortlisted = shortlisted
            if shortlisted:
                ranking.shortlist_date = datetime.now()
                ranking.shortlist_notes = notes
                ranking.hiring_status = HiringStatus.SHORTLISTED.name
            else:
                ranking.shortlist_date = None
                ranking.shortlist_notes = None
                ranking.hiring_status = HiringStatus.UNDER_REVIEW.name

        return self._update(ranking_id, apply)

    def update_hiring_status(
        self, ranking_id: int, status: Union[HiringStatus, str], notes: Optional[str] = None
    ) -> CandidateRanking:
        member = _coerce_status(status)

        def apply(ranking: CandidateRanking) -> None:
            now = datetime.now()
            ranking.hiring_status = member.name
            ranking.hiring_decision_date = now
            if member is HiringStatus.SHORTLISTED:
                ranking.is_shortlisted = True
                ranking.shortlist_date = now
                ranking.shortlist_notes = notes
            elif member in (HiringStatus.REJECTED, HiringStatus.OFFER_DECLINED):
                ranking.is_shortlisted = False

        return self._update(ranking_id, apply)

    def schedule_interview(self, ranking_id: int, interview_date: datetime, notes: Optional[str] = None) -> CandidateRanking:
        def apply(ranking: CandidateRanking) -> None:
            ranking.interview_scheduled = True
            ranking.interview_date = interview_date
            ranking.notes = notes
            ranking.hiring_status = HiringStatus.INTERVIEWED.name

        return self._update(ranking_id, apply)

    def add_interview_feedback(self, ranking_id: int, feedback: str) -> CandidateRanking:
        def apply(ranking: CandidateRanking) -> None:
            ranking.interview_feedback = feedback

        return self._update(ranking_id, apply)

    def update_notes(self, ranking_id: int, notes: Optional[str]) -> CandidateRanking:
        def apply(ranking: CandidateRanking) -> None:
            ranking.notes = notes

        return self._update(ranking_id, apply)

    def delete_all_rankings_for_job(self, job_id: int) -> int:
        with self.locks.hold(job_id):
            with session_scope(self.db_path) as session:
                removed = repo.delete_rankings_for_job(session, job_id)
        self.logger.info("Deleted rankings for job", job_id=job_id, removed=removed)
        return removed
