"""
CSV export of current rankings.

The column layout is a contract with downstream reporting tools and is
written by hand rather than through csv.writer: the header uses ", "
separators and only the name and email columns are quoted.
"""

from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Iterable, Optional, Tuple

from .database import Candidate, CandidateRanking, HiringStatus

EXPORT_HEADER = (
    "Rank, Candidate Name, Email, Ranking Score, Skills Score, Experience Score, "
    "Education Score, Shortlisted, Hiring Status, Percentile"
)


def format_score(value: Optional[float]) -> str:
    """One decimal, half-up on the shortest decimal form of the float (12.45 -> 12.5)."""
    if value is None:
        value = 0.0
    return str(Decimal(repr(float(value))).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _quoted(value: Optional[str]) -> str:
    text = value or ""
    return '"' + text.replace('"', '""') + '"'


def _status_label(status: Optional[str]) -> str:
    if not status:
        return "N/A"
    try:
        return HiringStatus[status].display_name
    except KeyError:
        return "N/A"


def export_line(ranking: CandidateRanking, candidate: Optional[Candidate]) -> str:
    fields = [
        str(ranking.rank_position),
        _quoted(candidate.full_name if candidate else None),
        _quoted(candidate.email if candidate else None),
        format_score(ranking.ranking_score),
        format_score(ranking.weighted_skills_score),
        format_score(ranking.weighted_experience_score),
        format_score(ranking.weighted_education_score),
        "Yes" if ranking.is_shortlisted else "No",
        _status_label(ranking.hiring_status),
        format_score(ranking.percentile),
    ]
    return ",".join(fields)


def export_rankings_csv(rows: Iterable[Tuple[CandidateRanking, Optional[Candidate]]]) -> str:
    """
    Render (ranking, candidate) pairs in rank order.

    Args:
        rows: Pairs as returned by RankingEngine.current_rankings_with_candidates

    Returns:
        CSV text with "\\n" line endings, including a trailing newline
    """
    lines = [EXPORT_HEADER]
    for ranking, candidate in rows:
        lines.append(export_line(ranking, candidate))
    return "\n".join(lines) + "\n"


def export_filename(job_id: int, title: str) -> str:
    return f"rankings_job_{job_id}_{title.replace(' ', '_')}.csv"


def write_rankings_csv(rows, job_id: int, title: str, out_dir: Path) -> Path:
    """Write the export under out_dir and return the file path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / export_filename(job_id, title)
    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(export_rankings_csv(rows))
    return path
