"""
Repositories.

Responsibilities:
- CRUD and query helpers for jobs, candidates, match results and rankings.
- Resolve "latest" / "current" rows from version and generation numbers.

Non-Responsibilities:
- No scoring.
- No ranking decisions.
- No transaction management (callers own the session scope).
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .database import Candidate, CandidateRanking, Job, MatchResult, RankingSnapshot
from .errors import InvalidRecordError, NotFoundError
from .normalize import join_skills, normalize_email, parse_skills
from .schema import validate_candidate, validate_job


def _skills_field(value) -> Optional[str]:
    if value is None:
        return None
    return join_skills(parse_skills(value))


# ----------------- Jobs / candidates -----------------

def add_job(session: Session, data: Dict[str, Any]) -> Job:
    errors = validate_job(data)
    if errors:
        raise InvalidRecordError("job", errors)
    job = Job(
        title=data["title"].strip(),
        required_skills=_skills_field(data.get("required_skills")),
        experience_required=data.get("experience_required"),
        education_requirement=data.get("education_requirement"),
    )
    session.add(job)
    session.flush()
    return job


def add_candidate(session: Session, data: Dict[str, Any]) -> Candidate:
    errors = validate_candidate(data)
    if errors:
        raise InvalidRecordError("candidate", errors)
    candidate = Candidate(
        full_name=data["full_name"].strip(),
        email=normalize_email(data["email"]),
        skills=_skills_field(data.get("skills")),
        experience_years=data.get("experience_years"),
        education=data.get("education"),
        resume_version=data.get("resume_version"),
        resume_text=data.get("resume_text"),
        personality_score=data.get("personality_score"),
        cultural_fit_score=data.get("cultural_fit_score"),
    )
    session.add(candidate)
    session.flush()
    return candidate


def require_job(session: Session, job_id: int) -> Job:
    job = session.get(Job, job_id)
    if job is None:
        raise NotFoundError("job", job_id)
    return job


def require_candidate(session: Session, candidate_id: int) -> Candidate:
    candidate = session.get(Candidate, candidate_id)
    if candidate is None:
        raise NotFoundError("candidate", candidate_id)
    return candidate


def list_candidates(session: Session) -> List[Candidate]:
    return session.query(Candidate).order_by(Candidate.id).all()


def candidates_by_id(session: Session, candidate_ids) -> Dict[int, Candidate]:
    ids = list(candidate_ids)
    if not ids:
        return {}
    rows = session.query(Candidate).filter(Candidate.id.in_(ids)).all()
    return {c.id: c for c in rows}


# ----------------- Match results -----------------

def require_match(session: Session, match_result_id: int) -> MatchResult:
    match = session.get(MatchResult, match_result_id)
    if match is None:
        raise NotFoundError("match result", match_result_id)
    return match


def next_match_version(session: Session, job_id: int, candidate_id: int) -> int:
    current = (
        session.query(func.max(MatchResult.version))
        .filter(MatchResult.job_id == job_id, MatchResult.candidate_id == candidate_id)
        .scalar()
    )
    return (current or 0) + 1


def latest_match(session: Session, job_id: int, candidate_id: int) -> Optional[MatchResult]:
    return (
        session.query(MatchResult)
        .filter(MatchResult.job_id == job_id, MatchResult.candidate_id == candidate_id)
        .order_by(MatchResult.version.desc())
        .first()
    )


def latest_matches_for_job(session: Session, job_id: int, active_only: bool = True) -> List[MatchResult]:
    """Latest match result per candidate, in candidate id order."""
    query = session.query(MatchResult).filter(MatchResult.job_id == job_id, MatchResult.is_latest)
    if active_only:
        query = query.filter(MatchResult.is_active.is_(True))
    return query.order_by(MatchResult.candidate_id).all()


def match_history(session: Session, job_id: int, candidate_id: int) -> List[MatchResult]:
    return (
        session.query(MatchResult)
        .filter(MatchResult.job_id == job_id, MatchResult.candidate_id == candidate_id)
        .order_by(MatchResult.version.desc())
        .all()
    )


def matches_for_candidate(session: Session, candidate_id: int) -> List[MatchResult]:
    return (
        session.query(MatchResult)
        .filter(MatchResult.candidate_id == candidate_id)
        .order_by(MatchResult.match_date.desc(), MatchResult.id.desc())
        .all()
    )


def delete_matches_for_job(session: Session, job_id: int) -> int:
    return session.query(MatchResult).filter(MatchResult.job_id == job_id).delete(synchronize_session=False)


# ----------------- Rankings -----------------

def require_ranking(session: Session, ranking_id: int) -> CandidateRanking:
    ranking = session.get(CandidateRanking, ranking_id)
    if ranking is None:
        raise NotFoundError("ranking", ranking_id)
    return ranking


def current_generation(session: Session, job_id: int) -> int:
    """Highest ranking generation for the job, 0 if never ranked."""
    current = (
        session.query(func.max(RankingSnapshot.generation))
        .filter(RankingSnapshot.job_id == job_id)
        .scalar()
    )
    return current or 0


def rankings_for_generation(session: Session, job_id: int, generation: int) -> List[CandidateRanking]:
    return (
        session.query(CandidateRanking)
        .filter(CandidateRanking.job_id == job_id, CandidateRanking.generation == generation)
        .order_by(CandidateRanking.rank_position)
        .all()
    )


def current_rankings(session: Session, job_id: int) -> List[CandidateRanking]:
    return rankings_for_generation(session, job_id, current_generation(session, job_id))


def ranking_history(session: Session, job_id: int, candidate_id: int) -> List[CandidateRanking]:
    return (
        session.query(CandidateRanking)
        .filter(CandidateRanking.job_id == job_id, CandidateRanking.candidate_id == candidate_id)
        .order_by(CandidateRanking.generation.desc())
        .all()
    )


def search_current_rankings(session: Session, job_id: int, keyword: str) -> List[CandidateRanking]:
    pattern = f"%{keyword.strip().lower()}%"
    return (
        session.query(CandidateRanking)
        .join(Candidate, Candidate.id == CandidateRanking.candidate_id)
        .filter(
            CandidateRanking.job_id == job_id,
            CandidateRanking.generation == current_generation(session, job_id),
            or_(func.lower(Candidate.full_name).like(pattern), func.lower(Candidate.email).like(pattern)),
        )
        .order_by(CandidateRanking.rank_position)
        .all()
    )


def list_snapshots(session: Session, job_id: Optional[int] = None) -> List[RankingSnapshot]:
    query = session.query(RankingSnapshot)
    if job_id is not None:
        query = query.filter(RankingSnapshot.job_id == job_id)
    return query.order_by(RankingSnapshot.job_id, RankingSnapshot.generation.desc()).all()


def delete_snapshot(session: Session, snapshot: RankingSnapshot) -> int:
    removed = (
        session.query(CandidateRanking)
        .filter(CandidateRanking.snapshot_id == snapshot.id)
        .delete(synchronize_session=False)
    )
    session.delete(snapshot)
    return removed


def delete_rankings_for_job(session: Session, job_id: int) -> int:
    removed = (
        session.query(CandidateRanking)
        .filter(CandidateRanking.job_id == job_id)
        .delete(synchronize_session=False)
    )
    session.query(RankingSnapshot).filter(RankingSnapshot.job_id == job_id).delete(synchronize_session=False)
    return removed
