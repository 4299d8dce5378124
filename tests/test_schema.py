"""
Tests for record validation.
"""

from talentrank.schema import validate_candidate, validate_job


class TestValidateJob:
    """Job records."""

    def test_valid(self, job_data):
        assert validate_job(job_data) == []

    def test_skills_as_list(self):
        assert validate_job({"title": "SRE", "required_skills": ["linux", "go"]}) == []

    def test_missing_title(self):
        errors = validate_job({"required_skills": "python"})
        assert any("title" in e for e in errors)

    def test_blank_title(self):
        assert validate_job({"title": "   "}) != []

    def test_bad_skills_type(self):
        errors = validate_job({"title": "SRE", "required_skills": [1, 2]})
        assert any("required_skills" in e for e in errors)

    def test_non_string_experience(self):
        errors = validate_job({"title": "SRE", "experience_required": 5})
        assert any("experience_required" in e for e in errors)


class TestValidateCandidate:
    """Candidate records."""

    def test_valid(self, candidate_data):
        assert validate_candidate(candidate_data) == []

    def test_missing_email(self):
        errors = validate_candidate({"full_name": "Ada"})
        assert any("email" in e for e in errors)

    def test_bad_email(self):
        errors = validate_candidate({"full_name": "Ada", "email": "ada-at-example"})
        assert errors == ["Field 'email' must be a valid email address"]

    def test_negative_years(self):
        errors = validate_candidate({"full_name": "Ada", "email": "a@b.co", "experience_years": -1})
        assert errors == ["Field 'experience_years' must be >= 0"]

    def test_years_must_be_int(self):
        errors = validate_candidate({"full_name": "Ada", "email": "a@b.co", "experience_years": "four"})
        assert any("experience_years" in e for e in errors)

    def test_signal_bounds(self):
        errors = validate_candidate({
            "full_name": "Ada", "email": "a@b.co", "personality_score": 120, "cultural_fit_score": 50.5,
        })
        assert errors == ["Field 'personality_score' must be between 0 and 100"]
