"""
Tests for weight configuration validation.
"""

import pytest

from talentrank.errors import InvalidWeightConfiguration
from talentrank.weights import (
    RankingWeightConfig,
    default_weights,
    from_dict,
    parse_weights,
    require_valid,
    validate_weight_config,
)


class TestRankingWeightConfig:
    """Totals, bounds and messages."""

    def test_default_is_valid(self):
        config = default_weights()
        assert config.total() == 100.0
        assert config.is_valid()
        assert (config.skills_weight, config.experience_weight, config.education_weight) == (50.0, 30.0, 20.0)

    def test_total_over_100(self):
        config = RankingWeightConfig(60, 30, 20)
        assert not config.is_valid()
        assert config.validation_message() == "Total weight must be 100%. Current total: 110.0%"

    def test_tolerance(self):
        assert RankingWeightConfig(33.333, 33.333, 33.334).is_valid()
        assert not RankingWeightConfig(50, 30, 19.98).is_valid()

    def test_optional_dimensions_count(self):
        assert RankingWeightConfig(40, 20, 20, 10, 10).is_valid()
        assert RankingWeightConfig(50, 30, 20, None, None).is_valid()

    def test_negative_weight_invalid(self):
        config = RankingWeightConfig(110, -10, 0)
        assert not config.is_valid()
        assert "between 0 and 100" in config.validation_message()

    def test_valid_message(self):
        assert default_weights().validation_message().startswith("Weights are valid")


class TestValidateWeightConfig:
    """Validation entry point."""

    def test_valid(self):
        assert validate_weight_config(default_weights())["valid"] is True

    def test_invalid(self):
        outcome = validate_weight_config(RankingWeightConfig(10, 10, 10))
        assert outcome == {"valid": False, "message": "Total weight must be 100%. Current total: 30.0%"}

    def test_missing(self):
        assert validate_weight_config(None)["valid"] is False


class TestRequireValid:
    """Raising validator."""

    def test_returns_config(self):
        config = default_weights()
        assert require_valid(config) is config

    def test_raises_with_total(self):
        with pytest.raises(InvalidWeightConfiguration) as exc:
            require_valid(RankingWeightConfig(60, 30, 20))
        assert exc.value.total == pytest.approx(110.0)

    def test_none_raises(self):
        with pytest.raises(InvalidWeightConfiguration):
            require_valid(None)


class TestParsing:
    """Building configs from text and mappings."""

    def test_parse_three_values(self):
        config = parse_weights("60,25,15", config_name="tech")
        assert (config.skills_weight, config.personality_weight, config.config_name) == (60.0, 0.0, "tech")

    def test_parse_five_values(self):
        config = parse_weights("40, 20, 20, 10, 10")
        assert config.cultural_fit_weight == 10.0

    @pytest.mark.parametrize("text", ["50,50", "a,b,c", "50,30,20,0,0,0", "50,,50"])
    def test_parse_malformed(self, text):
        with pytest.raises(InvalidWeightConfiguration):
            parse_weights(text)

    def test_parse_rejects_bad_total(self):
        with pytest.raises(InvalidWeightConfiguration):
            parse_weights("50,30,30")

    def test_from_dict_defaults_missing_keys(self):
        config = from_dict({"skills_weight": "70", "experience_weight": 10})
        assert (config.skills_weight, config.experience_weight, config.education_weight) == (70.0, 10.0, 20.0)

    def test_from_dict_non_numeric(self):
        with pytest.raises(InvalidWeightConfiguration):
            from_dict({"skills": "lots"})
