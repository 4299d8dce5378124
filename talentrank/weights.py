"""
Ranking weight configuration and validation.

Weights are percentages across the five scoring dimensions and must total
100 (within a 0.01 tolerance). Each weight is bounded to [0, 100].
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .errors import InvalidWeightConfiguration

WEIGHT_TOLERANCE = 0.01
MIN_WEIGHT = 0.0
MAX_WEIGHT = 100.0

DIMENSIONS = ("skills", "experience", "education", "personality", "cultural_fit")


@dataclass
class RankingWeightConfig:
    """Percentage allocation across scoring dimensions."""

    skills_weight: float = 50.0
    experience_weight: float = 30.0
    education_weight: float = 20.0
    personality_weight: Optional[float] = 0.0
    cultural_fit_weight: Optional[float] = 0.0
    config_name: Optional[str] = None
    description: Optional[str] = None

    def weight_for(self, dimension: str) -> Optional[float]:
        return getattr(self, f"{dimension}_weight")

    def total(self) -> float:
        return (
            self.skills_weight
            + self.experience_weight
            + self.education_weight
            + (self.personality_weight or 0.0)
            + (self.cultural_fit_weight or 0.0)
        )

    def _bound_errors(self) -> list:
        errors = []
        for dim in DIMENSIONS:
            value = self.weight_for(dim)
            if value is None:
                if dim in ("skills", "experience", "education"):
                    errors.append(f"{dim} weight is required")
                continue
            if not isinstance(value, (int, float)) or isinstance(value, bool) or math.isnan(value):
                errors.append(f"{dim} weight must be a number")
            elif value < MIN_WEIGHT or value > MAX_WEIGHT:
                errors.append(f"{dim} weight must be between 0 and 100 (got {value})")
        return errors

    def is_valid(self) -> bool:
        if self._bound_errors():
            return False
        return abs(self.total() - 100.0) < WEIGHT_TOLERANCE

    def validation_message(self) -> str:
        errors = self._bound_errors()
        if errors:
            return "; ".join(errors)
        total = self.total()
        if abs(total - 100.0) < WEIGHT_TOLERANCE:
            return f"Weights are valid. Total: {total}%"
        return f"Total weight must be 100%. Current total: {total}%"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def default_weights() -> RankingWeightConfig:
    """Return a fresh default configuration (skills 50, experience 30, education 20)."""
    return RankingWeightConfig(config_name="default")


def from_dict(data: Dict[str, Any]) -> RankingWeightConfig:
    """
    Build a config from a mapping such as a parsed JSON form.

    Missing keys fall back to the default allocation; values are coerced to
    float. Raises InvalidWeightConfiguration on non-numeric values.
    """
    defaults = default_weights()
    values: Dict[str, Any] = {}
    for dim in DIMENSIONS:
        key = f"{dim}_weight"
        raw = data.get(key, data.get(dim, getattr(defaults, key)))
        if raw is None:
            values[key] = None
            continue
        try:
            values[key] = float(raw)
        except (TypeError, ValueError):
            raise InvalidWeightConfiguration(f"{dim} weight must be a number (got {raw!r})")
    return RankingWeightConfig(
        config_name=data.get("config_name"),
        description=data.get("description"),
        **values,
    )


def parse_weights(text: str, config_name: Optional[str] = None) -> RankingWeightConfig:
    """
    Parse "skills,experience,education[,personality[,cultural_fit]]".

    Raises:
        InvalidWeightConfiguration: On malformed input or a config that fails validation.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) < 3 or len(parts) > len(DIMENSIONS) or any(p == "" for p in parts):
        raise InvalidWeightConfiguration(
            f"Expected 3 to 5 comma-separated weights, got {text!r}"
        )
    try:
        numbers = [float(p) for p in parts]
    except ValueError:
        raise InvalidWeightConfiguration(f"Weights must be numbers, got {text!r}")
    numbers += [0.0] * (len(DIMENSIONS) - len(numbers))
    config = RankingWeightConfig(*numbers, config_name=config_name)
    return require_valid(config)


def validate_weight_config(config: Optional[RankingWeightConfig]) -> Dict[str, Any]:
    """Validation entry point for weight-tuning UIs: {"valid": bool, "message": str}."""
    if config is None:
        return {"valid": False, "message": "Weight configuration is required"}
    return {"valid": config.is_valid(), "message": config.validation_message()}


def require_valid(config: Optional[RankingWeightConfig]) -> RankingWeightConfig:
    """Return the config unchanged, or raise InvalidWeightConfiguration."""
    if config is None:
        raise InvalidWeightConfiguration("Weight configuration is required")
    if not config.is_valid():
        total = None if config._bound_errors() else config.total()
        raise InvalidWeightConfiguration(
            f"Invalid weight configuration: {config.validation_message()}", total=total
        )
    return config
