"""
Database schema and connection management.

Uses SQLite with SQLAlchemy. Tables reference each other by id only.

Versioning is append-only: match results carry a per-(job, candidate)
``version`` and ranking rows carry a per-job ``generation``. "Latest" and
"current" are derived as the highest version / generation, so demoting a
previous row never requires an update and never leaves two current sets.
"""

import enum
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, aliased, column_property, declarative_base, sessionmaker

from .normalize import split_stored_skills

Base = declarative_base()

RANKING_CRITERIA_VERSION = "v1.0"


class HiringStatus(enum.Enum):
    NOT_REVIEWED = "Not Reviewed"
    UNDER_REVIEW = "Under Review"
    SHORTLISTED = "Shortlisted"
    INTERVIEWED = "Interviewed"
    OFFER_EXTENDED = "Offer Extended"
    OFFER_ACCEPTED = "Offer Accepted"
    OFFER_DECLINED = "Offer Declined"
    REJECTED = "Rejected"
    HIRED = "Hired"

    @property
    def display_name(self) -> str:
        return self.value


class Job(Base):
    """Job posting requirements."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    required_skills = Column(Text, nullable=True)  # comma-delimited
    experience_required = Column(String, nullable=True)  # "3-5", "2+", "5"
    education_requirement = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class Candidate(Base):
    """Candidate profile and resume-derived attributes."""

    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    skills = Column(Text, nullable=True)  # comma-delimited
    experience_years = Column(Integer, nullable=True)
    education = Column(String, nullable=True)
    resume_version = Column(String, nullable=True)
    resume_text = Column(Text, nullable=True)
    # Externally supplied assessment scores (0-100)
    personality_score = Column(Float, nullable=True)
    cultural_fit_score = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


class MatchResult(Base):
    """One scoring event for a (job, candidate) pair."""

    __tablename__ = "match_results"
    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", "version", name="uq_match_pair_version"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    resume_version = Column(String, nullable=True)
    version = Column(Integer, nullable=False, default=1)

    overall_score = Column(Float, nullable=True)
    skills_score = Column(Float, nullable=True)
    experience_score = Column(Float, nullable=True)
    education_score = Column(Float, nullable=True)
    personality_score = Column(Float, nullable=True)
    cultural_fit_score = Column(Float, nullable=True)

    matched_skills = Column(Text, nullable=False, default="")
    missing_skills = Column(Text, nullable=False, default="")
    partial_skills = Column(Text, nullable=False, default="")

    extracted_skills = Column(Text, nullable=True)
    extracted_experience = Column(String, nullable=True)
    extracted_education = Column(String, nullable=True)
    raw_extracted_data = Column(Text, nullable=True)

    recalculation_count = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    match_date = Column(DateTime, nullable=False, default=datetime.now)
    last_recalculated_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    def dimension_score(self, dimension: str):
        return getattr(self, f"{dimension}_score")

    @property
    def matched_skill_list(self) -> list:
        return split_stored_skills(self.matched_skills)

    @property
    def missing_skill_list(self) -> list:
        return split_stored_skills(self.missing_skills)

    @property
    def partial_skill_list(self) -> list:
        return split_stored_skills(self.partial_skills)

    @property
    def match_level(self) -> str:
        if self.overall_score is None:
            return "Not Analyzed"
        if self.overall_score >= 80:
            return "Excellent Match"
        if self.overall_score >= 60:
            return "Good Match"
        if self.overall_score >= 40:
            return "Average Match"
        return "Poor Match"


_prior_match = aliased(MatchResult)

MatchResult.is_latest = column_property(
    MatchResult.version
    == select(func.max(_prior_match.version))
    .where(
        _prior_match.job_id == MatchResult.job_id,
        _prior_match.candidate_id == MatchResult.candidate_id,
    )
    .correlate_except(_prior_match)
    .scalar_subquery()
)


class RankingSnapshot(Base):
    """One ranking run for a job. The highest generation is the current ranking."""

    __tablename__ = "ranking_snapshots"
    __table_args__ = (
        UniqueConstraint("job_id", "generation", name="uq_snapshot_job_generation"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    generation = Column(Integer, nullable=False)
    skills_weight = Column(Float, nullable=False)
    experience_weight = Column(Float, nullable=False)
    education_weight = Column(Float, nullable=False)
    personality_weight = Column(Float, nullable=True)
    cultural_fit_weight = Column(Float, nullable=True)
    config_name = Column(String, nullable=True)
    total_candidates = Column(Integer, nullable=False)
    ranking_criteria_version = Column(String, nullable=False, default=RANKING_CRITERIA_VERSION)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class CandidateRanking(Base):
    """A candidate's entry within one ranking snapshot."""

    __tablename__ = "candidate_rankings"
    __table_args__ = (
        UniqueConstraint("job_id", "generation", "candidate_id", name="uq_ranking_candidate"),
        UniqueConstraint("job_id", "generation", "rank_position", name="uq_ranking_position"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    snapshot_id = Column(Integer, ForeignKey("ranking_snapshots.id"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    candidate_id = Column(Integer, ForeignKey("candidates.id"), nullable=False, index=True)
    match_result_id = Column(Integer, ForeignKey("match_results.id"), nullable=True)
    generation = Column(Integer, nullable=False)

    rank_position = Column(Integer, nullable=False)
    previous_rank_position = Column(Integer, nullable=True)
    rank_change = Column(Integer, nullable=True)  # previous - new; positive = moved up
    total_candidates_ranked = Column(Integer, nullable=False)
    percentile = Column(Float, nullable=False)

    ranking_score = Column(Float, nullable=False)
    weighted_skills_score = Column(Float, nullable=False, default=0.0)
    weighted_experience_score = Column(Float, nullable=False, default=0.0)
    weighted_education_score = Column(Float, nullable=False, default=0.0)
    weighted_personality_score = Column(Float, nullable=False, default=0.0)
    weighted_cultural_fit_score = Column(Float, nullable=False, default=0.0)

    # Weights copied at ranking time so history stays reproducible
    skills_weight = Column(Float, nullable=False)
    experience_weight = Column(Float, nullable=False)
    education_weight = Column(Float, nullable=False)
    personality_weight = Column(Float, nullable=True)
    cultural_fit_weight = Column(Float, nullable=True)
    ranking_criteria_version = Column(String, nullable=False, default=RANKING_CRITERIA_VERSION)
    ranking_date = Column(DateTime, nullable=False, default=datetime.now)

    notes = Column(Text, nullable=True)
    is_shortlisted = Column(Boolean, nullable=False, default=False)
    shortlist_date = Column(DateTime, nullable=True)
    shortlist_notes = Column(Text, nullable=True)
    interview_scheduled = Column(Boolean, nullable=False, default=False)
    interview_date = Column(DateTime, nullable=True)
    interview_feedback = Column(Text, nullable=True)
    hiring_status = Column(String, nullable=False, default=HiringStatus.NOT_REVIEWED.name)
    hiring_decision_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    is_current_ranking = column_property(
        generation
        == select(func.max(RankingSnapshot.generation))
        .where(RankingSnapshot.job_id == job_id)
        .correlate_except(RankingSnapshot)
        .scalar_subquery()
    )

    @property
    def hiring_status_enum(self) -> HiringStatus:
        return HiringStatus[self.hiring_status]

    @property
    def weights_used(self) -> Dict[str, float]:
        return {
            "skills": self.skills_weight,
            "experience": self.experience_weight,
            "education": self.education_weight,
            "personality": self.personality_weight,
            "cultural_fit": self.cultural_fit_weight,
        }


_engines: Dict[str, Engine] = {}


def get_engine(db_path: Path) -> Engine:
    """Return a cached engine for the SQLite file at db_path."""
    key = str(Path(db_path).resolve())
    engine = _engines.get(key)
    if engine is None:
        engine = create_engine(f"sqlite:///{key}")
        _engines[key] = engine
    return engine


def init_database(db_path: Path) -> None:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(get_engine(db_path))


def get_session(db_path: Path) -> Session:
    """
    Get database session.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLAlchemy session
    """
    SessionLocal = sessionmaker(bind=get_engine(db_path), expire_on_commit=False)
    return SessionLocal()


@contextmanager
def session_scope(db_path: Path) -> Iterator[Session]:
    """
    Transactional scope: commit on success, roll back and re-raise on error.

    Example:
        with session_scope(db_path) as session:
            session.add(job)
    """
    session = get_session(db_path)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
