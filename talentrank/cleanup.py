"""
Housekeeping for append-only history.

Ranking generations and demoted match result versions accumulate with every
run. These helpers prune old history while never touching the current
ranking generation or the latest match result of any (job, candidate).
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, Tuple

from sqlalchemy import func

from . import repositories as repo
from .database import CandidateRanking, MatchResult, session_scope
from .locks import job_locks
from .logger import get_logger


def _count(session, model) -> int:
    return session.query(func.count(model.id)).scalar() or 0


def prune_ranking_history(db_path: Path, job_id: Optional[int] = None, keep_generations: int = 5) -> Tuple[int, int]:
    """
    Delete ranking snapshots beyond the newest keep_generations per job.

    Args:
        db_path: Path to SQLite database file
        job_id: Restrict to one job (default: all jobs)
        keep_generations: Generations to keep per job; the current one is always kept

    Returns:
        Tuple of (ranking_rows_before, ranking_rows_after)
    """
    logger = get_logger()
    keep = max(1, keep_generations)

    with session_scope(db_path) as session:
        job_ids = sorted({s.job_id for s in repo.list_snapshots(session, job_id)})
        rows_before = _count(session, CandidateRanking)

    snapshots_removed = 0
    for jid in job_ids:
        with job_locks.hold(jid):
            with session_scope(db_path) as session:
                snapshots = repo.list_snapshots(session, jid)
                for snapshot in snapshots[keep:]:
                    repo.delete_snapshot(session, snapshot)
                    snapshots_removed += 1
                    logger.debug(
                        "Pruned ranking generation",
                        job_id=jid,
                        generation=snapshot.generation,
                    )

    with session_scope(db_path) as session:
        rows_after = _count(session, CandidateRanking)

    logger.info(
        f"Ranking prune complete: {rows_before - rows_after} rows removed, {rows_after} remaining",
        rows_before=rows_before,
        rows_after=rows_after,
        snapshots_removed=snapshots_removed,
        keep_generations=keep,
    )
    return (rows_before, rows_after)


def prune_match_history(db_path: Path, days: int = 90) -> Tuple[int, int]:
    """
    Delete demoted match result versions older than the given number of days.

    Latest versions are kept regardless of age, as are versions still
    referenced by a stored ranking.

    Returns:
        Tuple of (match_rows_before, match_rows_after)
    """
    logger = get_logger()
    cutoff = datetime.now() - timedelta(days=days)

    with session_scope(db_path) as session:
        rows_before = _count(session, MatchResult)
        referenced = {
            rid for (rid,) in session.query(CandidateRanking.match_result_id)
            if rid is not None
        }
        stale_ids = [
            m.id
            for m in session.query(MatchResult).filter(MatchResult.match_date < cutoff)
            if not m.is_latest and m.id not in referenced
        ]
        removed = 0
        if stale_ids:
            removed = (
                session.query(MatchResult)
                .filter(MatchResult.id.in_(stale_ids))
                .delete(synchronize_session=False)
            )
        rows_after = rows_before - removed

    logger.info(
        f"Match history prune complete: {removed} removed, {rows_after} remaining",
        rows_before=rows_before,
        rows_after=rows_after,
        days_threshold=days,
    )
    return (rows_before, rows_after)
