import re
from typing import Any, Dict, List

JOB_REQUIRED_STR_FIELDS = ["title"]
JOB_OPTIONAL_STR_FIELDS = [
    "experience_required",
    "education_requirement",
]

CANDIDATE_REQUIRED_STR_FIELDS = ["full_name", "email"]
CANDIDATE_OPTIONAL_STR_FIELDS = [
    "education",
    "resume_version",
    "resume_text",
]
SIGNAL_FIELDS = ["personality_score", "cultural_fit_score"]

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _check_skills(data: Dict[str, Any], field: str, errors: List[str]) -> None:
    if field not in data or data[field] is None:
        return
    value = data[field]
    if isinstance(value, str):
        return
    if isinstance(value, list) and all(isinstance(s, str) for s in value):
        return
    errors.append(f"Field '{field}' must be a comma-separated string or a list of strings")


def _check_strings(data: Dict[str, Any], required: List[str], optional: List[str], errors: List[str]) -> None:
    for f in required:
        if f not in data:
            errors.append(f"Missing required field: {f}")
        elif not _is_non_empty_str(data[f]):
            errors.append(f"Field '{f}' must be a non-empty string")

    for f in optional:
        if f in data and data[f] is not None and not isinstance(data[f], str):
            errors.append(f"Field '{f}' must be a string if provided")


def validate_job(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []
    _check_strings(data, JOB_REQUIRED_STR_FIELDS, JOB_OPTIONAL_STR_FIELDS, errors)
    _check_skills(data, "required_skills", errors)
    return errors


def validate_candidate(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []
    _check_strings(data, CANDIDATE_REQUIRED_STR_FIELDS, CANDIDATE_OPTIONAL_STR_FIELDS, errors)
    _check_skills(data, "skills", errors)

    email = data.get("email")
    if _is_non_empty_str(email) and not _EMAIL.match(email.strip()):
        errors.append("Field 'email' must be a valid email address")

    years = data.get("experience_years")
    if years is not None:
        if not isinstance(years, int) or isinstance(years, bool):
            errors.append("Field 'experience_years' must be an integer if provided")
        elif years < 0:
            errors.append("Field 'experience_years' must be >= 0")

    for f in SIGNAL_FIELDS:
        value = data.get(f)
        if value is None:
            continue
        if not _is_number(value):
            errors.append(f"Field '{f}' must be a number if provided")
        elif value < 0 or value > 100:
            errors.append(f"Field '{f}' must be between 0 and 100")

    return errors
