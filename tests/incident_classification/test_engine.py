"""
Tests for the ClassificationEngine facade.

Tests cover:
- End-to-end classification scenarios
- Report flag independent of the final tier
- Validation gate runs before any evaluator
- Determinism and monotonicity
- Alternative rule tables and tier scales
"""

from datetime import date
from unittest.mock import patch

import pytest

from incident_classification import (
    ClassificationConfig,
    ClassificationEngine,
    Criterion,
    EnvironmentalDamage,
    Evacuation,
    FinancialCost,
    HomesDamaged,
    HumanHarm,
    HumanHarmEvaluator,
    Transboundary,
    ValidationError,
    classify,
    format_classification_summary,
    get_strict_config,
    parse_record,
)


# =============================================================
# TEST: End-to-end scenarios
# =============================================================

class TestClassificationScenarios:

    def test_zero_impact_is_floor(self, engine, zero_record):
        result = engine.classify(zero_record)

        assert result.tier.label == "minor"
        assert result.report_required is False
        assert result.criterion == Criterion.HUMAN_HARM
        assert len(result.breakdown) == len(Criterion)

    def test_single_death(self, engine, make_record):
        result = engine.classify(make_record(human_harm=HumanHarm(deaths=1)))

        assert result.tier.label == "catastrophic"
        assert result.report_required is True
        assert result.criterion == Criterion.HUMAN_HARM
        assert "Human harm" in result.justification

    def test_transboundary_alone_forces_report(self, engine, make_record):
        result = engine.classify(make_record(transboundary=Transboundary.YES))

        assert result.report_required is True
        assert result.report_triggers == (Criterion.TRANSBOUNDARY_EFFECT,)
        assert result.criterion == Criterion.TRANSBOUNDARY_EFFECT

    def test_report_flag_not_derived_from_tier(self, make_record):
        """Report is required even when the trigger maps to the floor tier."""
        config = ClassificationConfig.from_dict({
            "transboundary": {"outcomes": {"yes": {"tier": "minor", "report": True}}},
        })
        result = ClassificationEngine(config).classify(make_record(transboundary=Transboundary.YES))

        assert result.tier.label == "minor"
        assert result.report_required is True

    def test_form_payload(self, engine, sample_payload):
        result = engine.classify(parse_record(sample_payload))

        # 300 people x 3h = 900 person-hours
        assert result.tier.label == "major"
        assert result.criterion == Criterion.EVACUATION
        assert result.report_required is True
        assert result.report_triggers == (Criterion.EVACUATION,)
        assert result.get_outcome(Criterion.HUMAN_HARM).tier.label == "moderate"
        assert result.get_outcome(Criterion.SUBSTANCE_RELEASE).tier.label == "moderate"

    def test_tie_goes_to_human_harm(self, engine, make_record):
        record = make_record(
            human_harm=HumanHarm(injured_onsite=6),
            homes_damaged=HomesDamaged.SOME,
        )
        result = engine.classify(record)

        assert result.tier.label == "major"
        assert result.criterion == Criterion.HUMAN_HARM
        assert result.report_triggers == (Criterion.HUMAN_HARM, Criterion.PROPERTY_DAMAGE)

    def test_module_level_classify(self, make_record):
        result = classify(make_record(financial_cost=FinancialCost(offsite=600_000)))

        assert result.report_required is True
        assert result.criterion == Criterion.FINANCIAL_COST


# =============================================================
# TEST: Validation gate
# =============================================================

class TestValidationGate:

    def test_invalid_record_never_evaluated(self, engine, make_record):
        record = make_record(human_harm=HumanHarm(deaths=-1))

        with patch.object(HumanHarmEvaluator, "evaluate") as evaluate:
            with pytest.raises(ValidationError) as exc_info:
                engine.classify(record)

        evaluate.assert_not_called()
        assert exc_info.value.field == "human_harm.deaths"

    def test_unknown_category_rejected(self, engine, make_record):
        with pytest.raises(ValidationError) as exc_info:
            engine.classify(make_record(homes_damaged="several"))

        assert exc_info.value.field == "homes_damaged"

    def test_future_incident_rejected(self, engine, make_record):
        with pytest.raises(ValidationError) as exc_info:
            engine.classify(make_record(incident_date=date(2025, 3, 4)))

        assert exc_info.value.field == "incident_date"


# =============================================================
# TEST: Determinism and monotonicity
# =============================================================

class TestEngineProperties:

    def test_deterministic(self, engine, sample_payload):
        record = parse_record(sample_payload)

        first = engine.classify(record)
        second = engine.classify(record)
        third = ClassificationEngine().classify(record)

        assert first == second == third
        assert first.to_dict() == third.to_dict()

    def test_more_injuries_never_lower_tier(self, engine, make_record):
        previous = None
        for injured in range(0, 30):
            result = engine.classify(make_record(human_harm=HumanHarm(injured_onsite=injured)))
            if previous is not None:
                assert result.tier >= previous.tier
                assert result.report_required >= previous.report_required
            previous = result

    @pytest.mark.parametrize("section, field_name, values", [
        ("environmental_damage", "river_km", (0, 0.5, 1, 9.99, 10, 49.99, 50, 500)),
        ("environmental_damage", "protected_area_ha", (0, 0.09, 0.1, 0.49, 0.5, 5, 50)),
        ("financial_cost", "onsite", (0, 99_999, 100_000, 1_999_999.99, 2_000_000, 20_000_000, 1e9)),
        ("financial_cost", "offsite", (0, 50_000, 499_999, 500_000, 5_000_000, 1e8)),
    ])
    def test_larger_magnitude_never_lower_tier(self, engine, make_record, section, field_name, values):
        section_cls = {"environmental_damage": EnvironmentalDamage, "financial_cost": FinancialCost}[section]
        previous = None
        for value in values:
            record = make_record(**{section: section_cls(**{field_name: value})})
            result = engine.classify(record)
            if previous is not None:
                assert result.tier >= previous.tier, value
                assert result.report_required >= previous.report_required, value
            previous = result

        assert previous.tier.label == "catastrophic"
        assert previous.report_required is True

    def test_longer_evacuation_never_lower_tier(self, engine, make_record):
        previous = None
        for hours in (0, 1, 1.99, 2, 3, 10, 24, 100):
            result = engine.classify(make_record(evacuation=Evacuation(people=100, duration_hours=hours)))
            if previous is not None:
                assert result.tier >= previous.tier
            previous = result


# =============================================================
# TEST: Alternative rule tables
# =============================================================

class TestAlternativeRules:

    def test_strict_config_escalates_earlier(self, make_record):
        record = make_record(human_harm=HumanHarm(injured_onsite=3))

        default = ClassificationEngine().classify(record)
        strict = ClassificationEngine(get_strict_config()).classify(record)

        assert default.tier.label == "moderate"
        assert strict.tier.label == "major"
        # Report thresholds are regulatory and stay put
        assert strict.report_required is False
        assert strict.rules_version == "annex-vi-strict-1"

    def test_five_tier_scale(self, make_record):
        config = ClassificationConfig.from_dict({
            "tiers": ["minor", "moderate", "serious", "major", "catastrophic"],
            "human_harm": {
                "injured_onsite": {"steps": [[1, "moderate"], [3, "serious"], [6, "major"]]},
            },
        })
        engine = ClassificationEngine(config)

        result = engine.classify(make_record(human_harm=HumanHarm(injured_onsite=4)))

        assert result.tier.label == "serious"
        assert result.tier.rank == 2
        assert result.report_required is False
        assert engine.get_config() is config


# =============================================================
# TEST: Summary formatting
# =============================================================

class TestFormatSummary:

    def test_summary_contents(self, engine, make_record):
        result = engine.classify(make_record(human_harm=HumanHarm(deaths=1)))
        text = format_classification_summary(result)

        assert "INCIDENT CLASSIFICATION" in text
        assert "CATASTROPHIC" in text
        assert "Report in 24h:   YES" in text
        assert "REPORT" in text
        assert result.justification in text
