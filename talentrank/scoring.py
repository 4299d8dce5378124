"""
Component scoring between one job and one candidate.

Responsibilities:
- Compute skills, experience and education scores (0-100).
- Compute the fixed-blend quick score shown for a single match.

Non-Responsibilities:
- No persistence.
- No weighting by ranking configuration.
- No personality / cultural-fit signals (see signals.py).

Invariant:
Scoring never raises on malformed input. Unparseable or unknown values degrade
to documented defaults (0-10 years range, 50 for unmatched education).
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from .normalize import normalize_optional, parse_skills

OPEN_ENDED_MAX_YEARS = 20
BARE_NUMBER_SPAN = 2
DEFAULT_EXPERIENCE_RANGE = (0, 10)

BELOW_MIN_CEILING = 70.0
OVER_MAX_FLOOR = 70.0
OVER_MAX_PENALTY_PER_YEAR = 10.0

EDUCATION_UNMATCHED = 50.0

# (required keyword, candidate keyword, score)
EDUCATION_TIERS = (
    ("bachelor", "master", 90.0),
    ("master", "bachelor", 70.0),
    ("phd", "master", 80.0),
)

# Quick-score blend for a single match; distinct from ranking weights.
QUICK_SCORE_BLEND: Mapping[str, float] = {
    "skills": 50.0,
    "experience": 30.0,
    "education": 20.0,
}

_EXPERIENCE_CHARS = re.compile(r"[^0-9\-+]")


@dataclass(frozen=True)
class JobRequirement:
    """Read-only job requirements used for scoring."""

    job_id: int
    required_skills: Optional[FrozenSet[str]] = None
    experience_required: Optional[str] = None
    education_required: Optional[str] = None

    @classmethod
    def from_row(cls, job) -> "JobRequirement":
        return cls(
            job_id=job.id,
            required_skills=parse_skills(job.required_skills) if job.required_skills is not None else None,
            experience_required=normalize_optional(job.experience_required),
            education_required=normalize_optional(job.education_requirement),
        )


@dataclass(frozen=True)
class CandidateProfile:
    """Read-only candidate attributes used for scoring."""

    candidate_id: int
    skills: FrozenSet[str] = frozenset()
    experience_years: Optional[int] = None
    education: Optional[str] = None
    resume_version: Optional[str] = None
    resume_text: Optional[str] = None
    personality_score: Optional[float] = None
    cultural_fit_score: Optional[float] = None

    @property
    def has_profile_data(self) -> bool:
        return bool(
            self.resume_version
            or self.resume_text
            or self.skills
            or self.experience_years is not None
            or self.education
        )

    @classmethod
    def from_row(cls, candidate) -> "CandidateProfile":
        return cls(
            candidate_id=candidate.id,
            skills=parse_skills(candidate.skills),
            experience_years=candidate.experience_years,
            education=normalize_optional(candidate.education),
            resume_version=normalize_optional(candidate.resume_version),
            resume_text=candidate.resume_text or None,
            personality_score=candidate.personality_score,
            cultural_fit_score=candidate.cultural_fit_score,
        )


def skills_score(required: Iterable[str], candidate: Iterable[str]) -> float:
    """Percentage of required skills present in the candidate set (exact match)."""
    required_set = parse_skills(required)
    candidate_set = parse_skills(candidate)
    if not required_set:
        return 100.0
    matched = sum(1 for skill in required_set if skill in candidate_set)
    return matched * 100.0 / len(required_set)


def parse_experience_range(expr: Optional[str]) -> Tuple[int, int]:
    """
    Parse a required-experience expression into (min, max) years.

        "3-5 years" -> (3, 5)
        "2+ years"  -> (2, 20)
        "5 years"   -> (5, 7)
        anything else -> (0, 10)
    """
    if not expr:
        return DEFAULT_EXPERIENCE_RANGE
    cleaned = _EXPERIENCE_CHARS.sub("", expr.lower())
    try:
        if "-" in cleaned:
            parts = cleaned.split("-")
            return int(parts[0]), int(parts[1])
        if "+" in cleaned:
            return int(cleaned.replace("+", "")), OPEN_ENDED_MAX_YEARS
        minimum = int(cleaned)
        return minimum, minimum + BARE_NUMBER_SPAN
    except (ValueError, IndexError):
        return DEFAULT_EXPERIENCE_RANGE


def experience_score(required: Optional[str], candidate_years: int) -> float:
    minimum, maximum = parse_experience_range(required)
    years = max(0, candidate_years)
    if years < minimum:
        # Linear ramp toward the "close enough" threshold.
        return years * BELOW_MIN_CEILING / minimum
    if years <= maximum:
        return 100.0
    excess = years - maximum
    return max(OVER_MAX_FLOOR, 100.0 - excess * OVER_MAX_PENALTY_PER_YEAR)


def education_score(required: str, candidate: str) -> float:
    req = required.lower()
    cand = candidate.lower()
    if req in cand:
        return 100.0
    for required_kw, candidate_kw, score in EDUCATION_TIERS:
        if required_kw in req and candidate_kw in cand:
            return score
    return EDUCATION_UNMATCHED


class ComponentScorer:
    """Computes per-dimension scores. Dimensions lacking data on either side are omitted."""

    def score(self, job: JobRequirement, candidate: CandidateProfile) -> Dict[str, float]:
        scores: Dict[str, float] = {}
        if job.required_skills is not None and candidate.skills:
            scores["skills"] = skills_score(job.required_skills, candidate.skills)
        if job.experience_required and candidate.experience_years is not None:
            scores["experience"] = experience_score(job.experience_required, candidate.experience_years)
        if job.education_required and candidate.education:
            scores["education"] = education_score(job.education_required, candidate.education)
        return scores

    def overall_score(
        self,
        scores: Mapping[str, float],
        blend: Mapping[str, float] = QUICK_SCORE_BLEND,
    ) -> Optional[float]:
        """Blend of the present dimensions, normalized by the weight actually used."""
        total = 0.0
        used = 0.0
        for dim, weight in blend.items():
            value = scores.get(dim)
            if value is None:
                continue
            total += value * weight
            used += weight
        if used == 0:
            return None
        return min(100.0, max(0.0, total / used))
