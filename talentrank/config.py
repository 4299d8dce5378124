"""
Runtime settings.

Values come from the environment (optionally seeded from a .env file).
Settings are passed explicitly to the services that need them; nothing here
is consulted implicitly at scoring time.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .env import load_env
from .weights import RankingWeightConfig, default_weights, parse_weights

DEFAULT_DB_PATH = "data/talentrank.db"


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class Settings:
    db_path: Path = Path(DEFAULT_DB_PATH)
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    batch_workers: int = 1
    signal_retries: int = 2
    default_weights: RankingWeightConfig = field(default_factory=default_weights)


def load_settings(load_dotenv_file: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    Recognized variables:
        TALENTRANK_DB_PATH, TALENTRANK_LOG_LEVEL, TALENTRANK_LOG_DIR,
        TALENTRANK_BATCH_WORKERS, TALENTRANK_SIGNAL_RETRIES,
        TALENTRANK_DEFAULT_WEIGHTS ("skills,experience,education,personality,cultural_fit")

    Raises:
        InvalidWeightConfiguration: If TALENTRANK_DEFAULT_WEIGHTS is malformed
            or does not sum to 100.
    """
    if load_dotenv_file:
        load_env()

    weights_raw = (os.getenv("TALENTRANK_DEFAULT_WEIGHTS") or "").strip()
    weights = parse_weights(weights_raw, config_name="env-default") if weights_raw else default_weights()

    return Settings(
        db_path=Path(os.getenv("TALENTRANK_DB_PATH") or DEFAULT_DB_PATH),
        log_level=(os.getenv("TALENTRANK_LOG_LEVEL") or "INFO").upper(),
        log_dir=Path(os.getenv("TALENTRANK_LOG_DIR") or "logs"),
        batch_workers=max(1, _env_int("TALENTRANK_BATCH_WORKERS", 1)),
        signal_retries=max(0, _env_int("TALENTRANK_SIGNAL_RETRIES", 2)),
        default_weights=weights,
    )
