from typing import FrozenSet, Iterable, Optional, Union


def normalize_text(s: str) -> str:
    return " ".join(s.strip().lower().split())


def normalize_optional(s: Optional[str]) -> Optional[str]:
    """Collapse blank strings to None."""
    if s is None:
        return None
    text = s.strip()
    return text or None


def parse_skills(value: Union[None, str, Iterable[str]]) -> FrozenSet[str]:
    """
    Turn a comma-delimited skill string (or an iterable of skills) into a
    normalized set: trimmed, lower-cased, empties dropped.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items = value.split(",")
    else:
        items = list(value)
    return frozenset(normalize_text(item) for item in items if isinstance(item, str) and item.strip())


def join_skills(skills: Iterable[str]) -> str:
    """Serialize skills sorted, comma-joined, for storage and display."""
    return ", ".join(sorted(skills))


def split_stored_skills(stored: Optional[str]) -> list:
    if not stored:
        return []
    return [s.strip() for s in stored.split(",") if s.strip()]


def normalize_email(email: str) -> str:
    return email.strip().lower()
