"""Tests for history pruning."""

from datetime import datetime, timedelta

import pytest

from talentrank.cleanup import prune_match_history, prune_ranking_history
from talentrank.database import MatchResult, session_scope
from talentrank.matching import MatchResultManager
from talentrank.ranking import RankingEngine


@pytest.fixture
def ranked_job(db_path, make_job, make_candidate):
    job_id = make_job()
    make_candidate()
    make_candidate()
    MatchResultManager(db_path).process_all_candidates_for_job(job_id)
    return job_id


class TestPruneRankingHistory:
    """Ranking generation pruning."""

    def test_keeps_newest_generations(self, db_path, ranked_job):
        engine = RankingEngine(db_path)
        for _ in range(4):
            engine.generate_ranking(ranked_job)

        before, after = prune_ranking_history(db_path, keep_generations=2)

        assert (before, after) == (8, 4)
        assert engine.current_generation(ranked_job) == 4
        assert len(engine.current_rankings(ranked_job)) == 2
        history = engine.ranking_history(ranked_job, engine.current_rankings(ranked_job)[0].candidate_id)
        assert [r.generation for r in history] == [4, 3]

    def test_never_removes_current(self, db_path, ranked_job):
        engine = RankingEngine(db_path)
        engine.generate_ranking(ranked_job)
        engine.generate_ranking(ranked_job)

        before, after = prune_ranking_history(db_path, job_id=ranked_job, keep_generations=0)

        assert (before, after) == (4, 2)
        assert all(r.is_current_ranking for r in engine.current_rankings(ranked_job))

    def test_other_jobs_untouched(self, db_path, ranked_job, make_job):
        other = make_job(title="Data Engineer")
        MatchResultManager(db_path).process_all_candidates_for_job(other)
        engine = RankingEngine(db_path)
        for _ in range(3):
            engine.generate_ranking(ranked_job)
            engine.generate_ranking(other)

        prune_ranking_history(db_path, job_id=ranked_job, keep_generations=1)

        assert len(engine.ranking_history(other, 1)) == 3
        assert len(engine.ranking_history(ranked_job, 1)) == 1


class TestPruneMatchHistory:
    """Demoted match version pruning."""

    def _age_all(self, db_path, days):
        old = datetime.now() - timedelta(days=days)
        with session_scope(db_path) as session:
            session.query(MatchResult).update({MatchResult.match_date: old}, synchronize_session=False)

    def test_removes_old_demoted_versions(self, db_path, ranked_job):
        MatchResultManager(db_path).process_all_candidates_for_job(ranked_job)
        self._age_all(db_path, 120)

        before, after = prune_match_history(db_path, days=90)

        assert (before, after) == (4, 2)
        assert len(MatchResultManager(db_path).latest_matches_for_job(ranked_job)) == 2

    def test_recent_versions_kept(self, db_path, ranked_job):
        MatchResultManager(db_path).process_all_candidates_for_job(ranked_job)
        assert prune_match_history(db_path, days=90) == (4, 4)

    def test_versions_used_by_rankings_kept(self, db_path, ranked_job):
        RankingEngine(db_path).generate_ranking(ranked_job)
        MatchResultManager(db_path).process_all_candidates_for_job(ranked_job)
        self._age_all(db_path, 120)

        assert prune_match_history(db_path, days=90) == (4, 4)
