"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from typing import Dict, Any

from talentrank import repositories as repo
from talentrank.database import init_database, session_scope
from talentrank.logger import get_logger, reset_logger


@pytest.fixture(autouse=True)
def quiet_logger():
    """Install a global logger with no console or file output."""
    reset_logger()
    logger = get_logger(enable_file=False, enable_console=False)
    yield logger
    reset_logger()


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Create an empty database in a temp directory."""
    path = tmp_path / "talentrank.db"
    init_database(path)
    return path


@pytest.fixture
def job_data() -> Dict[str, Any]:
    """Valid job data."""
    return {
        "title": "Backend Engineer",
        "required_skills": "Python, SQL, Docker",
        "experience_required": "3-5 years",
        "education_requirement": "Bachelor",
    }


@pytest.fixture
def candidate_data() -> Dict[str, Any]:
    """Valid candidate data."""
    return {
        "full_name": "Ada Lovelace",
        "email": "ada@example.com",
        "skills": "python, sql, kubernetes",
        "experience_years": 4,
        "education": "Master of Science",
    }


@pytest.fixture
def make_job(db_path):
    """Factory that stores a job and returns its id."""

    def _make(**overrides) -> int:
        data = {
            "title": "Backend Engineer",
            "required_skills": "python, sql, docker",
            "experience_required": "3-5",
            "education_requirement": "bachelor",
        }
        data.update(overrides)
        with session_scope(db_path) as session:
            return repo.add_job(session, data).id

    return _make


@pytest.fixture
def make_candidate(db_path):
    """Factory that stores a candidate and returns its id. Emails are unique per call."""
    counter = [0]

    def _make(**overrides) -> int:
        counter[0] += 1
        data = {
            "full_name": f"Candidate {counter[0]}",
            "email": f"candidate{counter[0]}@example.com",
            "skills": "python, sql",
            "experience_years": 4,
            "education": "bachelor of science",
        }
        data.update(overrides)
        with session_scope(db_path) as session:
            return repo.add_candidate(session, data).id

    return _make
