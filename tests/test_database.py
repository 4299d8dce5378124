"""
Tests for database.py - SQLite models and session handling.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from talentrank import repositories as repo
from talentrank.database import (
    Candidate,
    CandidateRanking,
    HiringStatus,
    Job,
    MatchResult,
    RankingSnapshot,
    get_session,
    init_database,
    session_scope,
)
from talentrank.errors import InvalidRecordError, NotFoundError


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        db_path = tmp_path / "test.db"
        assert not db_path.exists()
        init_database(db_path)
        assert db_path.exists()

    def test_init_creates_tables(self, db_path):
        session = get_session(db_path)
        assert session.query(Job).count() == 0
        assert session.query(CandidateRanking).count() == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        init_database(db_path)
        assert db_path.exists()


class TestSessionScope:
    """Commit and rollback behaviour."""

    def test_commits_on_success(self, db_path, job_data):
        with session_scope(db_path) as session:
            repo.add_job(session, job_data)
        with session_scope(db_path) as session:
            assert session.query(Job).count() == 1

    def test_rolls_back_on_error(self, db_path, job_data):
        with pytest.raises(RuntimeError):
            with session_scope(db_path) as session:
                repo.add_job(session, job_data)
                raise RuntimeError("boom")
        with session_scope(db_path) as session:
            assert session.query(Job).count() == 0


class TestRecords:
    """Job and candidate records."""

    def test_skills_normalized_on_insert(self, db_path, job_data):
        with session_scope(db_path) as session:
            job = repo.add_job(session, job_data)
        assert job.required_skills == "docker, python, sql"

    def test_candidate_email_unique(self, db_path, candidate_data):
        with session_scope(db_path) as session:
            repo.add_candidate(session, candidate_data)
        with pytest.raises(IntegrityError):
            with session_scope(db_path) as session:
                repo.add_candidate(session, dict(candidate_data, email="ADA@example.com "))

    def test_invalid_record(self, db_path):
        with pytest.raises(InvalidRecordError) as exc:
            with session_scope(db_path) as session:
                repo.add_candidate(session, {"full_name": "x", "email": "nope"})
        assert exc.value.kind == "candidate"

    def test_require_missing(self, db_path):
        with session_scope(db_path) as session:
            with pytest.raises(NotFoundError, match="Job not found with id: 9"):
                repo.require_job(session, 9)


class TestVersionConstraints:
    """Unique constraints backing latest / current invariants."""

    def test_duplicate_match_version_rejected(self, db_path, make_job, make_candidate):
        job_id, candidate_id = make_job(), make_candidate()
        with pytest.raises(IntegrityError):
            with session_scope(db_path) as session:
                session.add(MatchResult(job_id=job_id, candidate_id=candidate_id, version=1))
                session.add(MatchResult(job_id=job_id, candidate_id=candidate_id, version=1))
                session.flush()

    def test_is_latest_follows_highest_version(self, db_path, make_job, make_candidate):
        job_id, candidate_id = make_job(), make_candidate()
        with session_scope(db_path) as session:
            session.add_all([
                MatchResult(job_id=job_id, candidate_id=candidate_id, version=1),
                MatchResult(job_id=job_id, candidate_id=candidate_id, version=2),
            ])
        with session_scope(db_path) as session:
            rows = repo.match_history(session, job_id, candidate_id)
            assert [(m.version, m.is_latest) for m in rows] == [(2, True), (1, False)]

    def test_duplicate_generation_rejected(self, db_path, make_job):
        job_id = make_job()
        with pytest.raises(IntegrityError):
            with session_scope(db_path) as session:
                for _ in range(2):
                    session.add(RankingSnapshot(
                        job_id=job_id, generation=1, skills_weight=50, experience_weight=30,
                        education_weight=20, total_candidates=0,
                    ))
                session.flush()


class TestHiringStatus:
    """Status labels."""

    def test_display_names(self):
        assert HiringStatus.NOT_REVIEWED.display_name == "Not Reviewed"
        assert HiringStatus.OFFER_DECLINED.display_name == "Offer Declined"

    def test_default_status(self, db_path, make_job, make_candidate):
        job_id, candidate_id = make_job(), make_candidate()
        with session_scope(db_path) as session:
            snapshot = RankingSnapshot(job_id=job_id, generation=1, skills_weight=50, experience_weight=30,
                                       education_weight=20, total_candidates=1)
            session.add(snapshot)
            session.flush()
            ranking = CandidateRanking(
                snapshot_id=snapshot.id, job_id=job_id, candidate_id=candidate_id, generation=1,
                rank_position=1, total_candidates_ranked=1, percentile=0.0, ranking_score=0.0,
                skills_weight=50, experience_weight=30, education_weight=20,
            )
            session.add(ranking)
            session.flush()
            session.refresh(ranking)
            assert ranking.hiring_status_enum is HiringStatus.NOT_REVIEWED
            assert ranking.is_current_ranking
            assert session.get(Candidate, candidate_id).email == "candidate1@example.com"
