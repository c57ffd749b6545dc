"""
Tests for rule table configuration and loading.
"""

from pathlib import Path

import pytest

from incident_classification import (
    ClassificationConfig,
    Criterion,
    RuleConfigurationError,
    ThresholdLadder,
    TierScale,
    get_default_config,
    load_config,
)
from incident_classification.config import RULES_PATH_ENV


# =============================================================
# TEST: Defaults
# =============================================================

class TestDefaultConfig:

    def test_annex_vi_report_thresholds(self):
        config = get_default_config()

        assert config.human_harm.deaths.report_threshold == 1
        assert config.human_harm.injured_onsite.report_threshold == 6
        assert config.human_harm.injured_offsite.report_threshold == 1
        assert config.evacuation.person_hours.report_threshold == 500
        assert config.service_disruption.person_hours.report_threshold == 1000
        assert config.environmental_damage.river_km.report_threshold == 10.0
        assert config.financial_cost.onsite.report_threshold == 2_000_000
        assert config.financial_cost.offsite.report_threshold == 500_000
        assert config.substance_release.quantity_pct.report_threshold == 5.0

    def test_priority_and_tiers(self):
        config = get_default_config()

        assert config.priority[0] == Criterion.HUMAN_HARM
        assert config.tiers.labels == ("minor", "moderate", "major", "catastrophic")

    def test_dict_round_trip(self):
        config = get_default_config()
        assert ClassificationConfig.from_dict(config.to_dict()) == config

    def test_tier_scale_lookup(self):
        scale = TierScale()

        assert scale.tier("major").rank == 2
        assert scale.lowest < scale.tier("moderate") < scale.highest
        with pytest.raises(RuleConfigurationError):
            scale.tier("severe")


# =============================================================
# TEST: Rule table validation
# =============================================================

class TestConfigValidation:

    @pytest.mark.parametrize("ladder", [
        ThresholdLadder(steps=((5, "moderate"), (5, "major"))),
        ThresholdLadder(steps=((10, "moderate"), (5, "major"))),
        ThresholdLadder(steps=((0, "moderate"),)),
        ThresholdLadder(steps=((1, "major"), (5, "moderate"))),
        ThresholdLadder(steps=((1, "severe"),)),
        ThresholdLadder(steps=((1, "moderate"),), report_threshold=-1),
    ])
    def test_bad_ladder_rejected(self, ladder):
        defaults = get_default_config()
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig(
                substance_release=type(defaults.substance_release)(quantity_pct=ladder),
            )

    def test_priority_must_cover_every_criterion(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({"priority": ["human_harm", "evacuation"]})

    def test_unknown_criterion_in_priority(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({"priority": ["weather"]})

    def test_categorical_first_answer_must_be_floor(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({
                "transboundary": {"outcomes": {"no": {"tier": "moderate", "report": False}}},
            })

    def test_categorical_must_be_ordinal(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({
                "property_damage": {"homes": {"many": {"tier": "moderate", "report": True}}},
            })

    def test_unknown_category_rejected(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({
                "property_damage": {"homes": {"few": {"tier": "moderate"}}},
            })

    def test_unknown_section_key_rejected(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({"human_harm": {"fatalities": {"steps": [[1, "major"]]}}})

    def test_negative_minimum_duration_rejected(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict({"evacuation": {"min_duration_hours": -1}})

    def test_not_a_mapping(self):
        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_dict(["human_harm"])


# =============================================================
# TEST: YAML loading
# =============================================================

RULES_YAML = """
rules_version: site-7
evacuation:
  min_duration_hours: 1
  person_hours:
    steps:
      - [50, moderate]
      - [400, major]
      - [4000, catastrophic]
"""


class TestYamlLoading:

    def test_overlay_keeps_unset_values(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")

        config = ClassificationConfig.from_yaml(path)

        assert config.rules_version == "site-7"
        assert config.evacuation.min_duration_hours == 1.0
        assert config.evacuation.person_hours.steps[1] == (400.0, "major")
        assert config.evacuation.person_hours.report_threshold == 500
        assert config.human_harm == get_default_config().human_harm

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("", encoding="utf-8")

        assert ClassificationConfig.from_yaml(path) == get_default_config()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("evacuation: [unclosed", encoding="utf-8")

        with pytest.raises(RuleConfigurationError):
            ClassificationConfig.from_yaml(path)


class TestLoadConfig:

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")

        assert load_config(path).rules_version == "site-7"

    def test_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")
        monkeypatch.setenv(RULES_PATH_ENV, str(path))

        assert load_config().rules_version == "site-7"

    def test_missing_path_raises(self, tmp_path):
        with pytest.raises(RuleConfigurationError):
            load_config(tmp_path / "absent.yaml")

    def test_defaults_without_path(self, tmp_path, monkeypatch):
        monkeypatch.delenv(RULES_PATH_ENV, raising=False)
        monkeypatch.chdir(tmp_path)

        assert load_config() == get_default_config()

    def test_accepts_string_path(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(RULES_YAML, encoding="utf-8")

        assert load_config(str(path)).rules_version == "site-7"
