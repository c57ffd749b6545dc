"""
Incident Classification Engine - Configuration.

============================================================
PURPOSE
============================================================
Defines the rule table used by the criterion evaluators:
the tier scale, one threshold ladder per numeric sub-field,
the fixed outcome of each categorical answer, and the
tie-break priority between criteria.

============================================================
THRESHOLD PHILOSOPHY
============================================================
Each numeric sub-field has:
- A ladder of (threshold, tier) steps. The highest step whose
  threshold is met (value >= threshold) sets the tier. Below
  the first step = lowest tier.
- An optional mandatory-report threshold. At or above it the
  incident must be reported, whatever the final tier.

Report thresholds in the default table follow the major
accident notification criteria of Directive 2012/18/EU
(Seveso III), Annex VI. Tier ladders are a placeholder rule
set and are expected to be replaced from the authoritative
rule text through a YAML rule table.

============================================================
LOADING
============================================================
    config = load_config()                 # INCIDENT_RULES_PATH or defaults
    config = load_config(Path("rules.yaml"))

Quote the "yes" / "no" category keys in YAML files; unquoted
they load as booleans.

============================================================
"""

import logging
import math
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import yaml
from dotenv import load_dotenv

from .types import (
    Criterion,
    HomesDamaged,
    Tier,
    Transboundary,
    RuleConfigurationError,
)


logger = logging.getLogger(__name__)

RULES_PATH_ENV = "INCIDENT_RULES_PATH"


# ============================================================
# TIER SCALE
# ============================================================


@dataclass(frozen=True)
class TierScale:
    """
    Ordered severity labels, lowest first.

    The first label is the no-escalation floor.
    """

    labels: Tuple[str, ...] = ("minor", "moderate", "major", "catastrophic")

    def __post_init__(self) -> None:
        if not self.labels:
            raise RuleConfigurationError("Tier scale must define at least one tier")
        if len(set(self.labels)) != len(self.labels):
            raise RuleConfigurationError(f"Duplicate tier labels: {list(self.labels)}")

    def tier(self, label: str) -> Tier:
        """Return the Tier for a label."""
        try:
            return Tier(rank=self.labels.index(label), label=label)
        except ValueError:
            raise RuleConfigurationError(
                f"Unknown tier label '{label}', expected one of {list(self.labels)}"
            ) from None

    @property
    def lowest(self) -> Tier:
        return Tier(rank=0, label=self.labels[0])

    @property
    def highest(self) -> Tier:
        return Tier(rank=len(self.labels) - 1, label=self.labels[-1])

    def tiers(self) -> List[Tier]:
        return [Tier(rank=i, label=label) for i, label in enumerate(self.labels)]


# ============================================================
# RULE BUILDING BLOCKS
# ============================================================


@dataclass(frozen=True)
class ThresholdLadder:
    """
    Threshold ladder for one numeric sub-field.

    steps: ((threshold, tier_label), ...) in ascending order
    report_threshold: value at which reporting is mandatory,
        None if this sub-field never forces a report
    """

    steps: Tuple[Tuple[float, str], ...] = ()
    report_threshold: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": [[threshold, label] for threshold, label in self.steps],
            "report_threshold": self.report_threshold,
        }


@dataclass(frozen=True)
class CategoryRule:
    """Fixed outcome for one categorical answer."""

    tier: str
    report: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"tier": self.tier, "report": self.report}


# ============================================================
# HUMAN HARM
# ============================================================


@dataclass(frozen=True)
class HumanHarmRules:
    """
    Deaths and injuries.

    Report thresholds (Annex VI, 2(a)-(c)):
    - any death
    - six people injured on site and hospitalised >= 24h
    - one person injured off site and hospitalised >= 24h
    """

    deaths: ThresholdLadder = ThresholdLadder(
        steps=((1, "catastrophic"),),
        report_threshold=1,
    )
    injured_onsite: ThresholdLadder = ThresholdLadder(
        steps=((1, "moderate"), (6, "major"), (20, "catastrophic")),
        report_threshold=6,
    )
    injured_offsite: ThresholdLadder = ThresholdLadder(
        steps=((1, "major"), (10, "catastrophic")),
        report_threshold=1,
    )

    def to_dict(self) -> Dict[str, Any]:
        return _ladders_to_dict(self)


# ============================================================
# PROPERTY DAMAGE (HOMES)
# ============================================================


def _default_homes_rules() -> Dict[str, CategoryRule]:
    return {
        HomesDamaged.NONE.value: CategoryRule(tier="minor", report=False),
        HomesDamaged.SOME.value: CategoryRule(tier="major", report=True),
        HomesDamaged.MANY.value: CategoryRule(tier="catastrophic", report=True),
    }


@dataclass(frozen=True)
class PropertyDamageRules:
    """
    Homes outside the site damaged and unusable.

    Any damaged dwelling is reportable (Annex VI, 2(d)).
    """

    homes: Dict[str, CategoryRule] = field(default_factory=_default_homes_rules)

    def to_dict(self) -> Dict[str, Any]:
        return {"homes": {k: v.to_dict() for k, v in self.homes.items()}}


# ============================================================
# EVACUATION / SERVICE DISRUPTION
# ============================================================


@dataclass(frozen=True)
class EvacuationRules:
    """
    Evacuation or confinement, measured in person-hours.

    Only counted when it lasted at least min_duration_hours.
    Report at 500 person-hours (Annex VI, 2(e)).
    """

    min_duration_hours: float = 2.0
    person_hours: ThresholdLadder = ThresholdLadder(
        steps=((100, "moderate"), (500, "major"), (5000, "catastrophic")),
        report_threshold=500,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_duration_hours": self.min_duration_hours,
            "person_hours": self.person_hours.to_dict(),
        }


@dataclass(frozen=True)
class ServiceDisruptionRules:
    """
    Interruption of drinking water, electricity, gas or telephone.

    Only counted when it lasted at least min_duration_hours.
    Report at 1000 person-hours (Annex VI, 2(f)).
    """

    min_duration_hours: float = 2.0
    person_hours: ThresholdLadder = ThresholdLadder(
        steps=((200, "moderate"), (1000, "major"), (10000, "catastrophic")),
        report_threshold=1000,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_duration_hours": self.min_duration_hours,
            "person_hours": self.person_hours.to_dict(),
        }


# ============================================================
# ENVIRONMENTAL DAMAGE
# ============================================================


@dataclass(frozen=True)
class EnvironmentalDamageRules:
    """
    Immediate damage to the environment (Annex VI, 3).

    Report thresholds:
    - protected habitat: 0.5 ha
    - widespread habitat incl. agricultural land: 10 ha
    - river or canal: 10 km
    - lake or pond: 1 ha
    - delta: 2 ha
    - aquifer or groundwater: 1 ha
    """

    protected_area_ha: ThresholdLadder = ThresholdLadder(
        steps=((0.1, "moderate"), (0.5, "major"), (5.0, "catastrophic")),
        report_threshold=0.5,
    )
    extended_area_ha: ThresholdLadder = ThresholdLadder(
        steps=((1.0, "moderate"), (10.0, "major"), (100.0, "catastrophic")),
        report_threshold=10.0,
    )
    river_km: ThresholdLadder = ThresholdLadder(
        steps=((1.0, "moderate"), (10.0, "major"), (50.0, "catastrophic")),
        report_threshold=10.0,
    )
    lake_ha: ThresholdLadder = ThresholdLadder(
        steps=((0.1, "moderate"), (1.0, "major"), (10.0, "catastrophic")),
        report_threshold=1.0,
    )
    delta_ha: ThresholdLadder = ThresholdLadder(
        steps=((0.5, "moderate"), (2.0, "major"), (20.0, "catastrophic")),
        report_threshold=2.0,
    )
    aquifer_ha: ThresholdLadder = ThresholdLadder(
        steps=((0.1, "moderate"), (1.0, "major"), (10.0, "catastrophic")),
        report_threshold=1.0,
    )

    def to_dict(self) -> Dict[str, Any]:
        return _ladders_to_dict(self)


# ============================================================
# FINANCIAL COST
# ============================================================


@dataclass(frozen=True)
class FinancialCostRules:
    """
    Cost of property damage, in EUR by default.

    Report at EUR 2M on site, EUR 0.5M off site (Annex VI, 4).
    """

    onsite: ThresholdLadder = ThresholdLadder(
        steps=((100_000, "moderate"), (2_000_000, "major"), (20_000_000, "catastrophic")),
        report_threshold=2_000_000,
    )
    offsite: ThresholdLadder = ThresholdLadder(
        steps=((50_000, "moderate"), (500_000, "major"), (5_000_000, "catastrophic")),
        report_threshold=500_000,
    )
    currency: str = "EUR"

    def to_dict(self) -> Dict[str, Any]:
        data = _ladders_to_dict(self)
        data["currency"] = self.currency
        return data


# ============================================================
# TRANSBOUNDARY EFFECT
# ============================================================


def _default_transboundary_rules() -> Dict[str, CategoryRule]:
    return {
        Transboundary.NO.value: CategoryRule(tier="minor", report=False),
        Transboundary.YES.value: CategoryRule(tier="moderate", report=True),
    }


@dataclass(frozen=True)
class TransboundaryRules:
    """Any cross-border effect is reportable (Annex VI, 5)."""

    outcomes: Dict[str, CategoryRule] = field(default_factory=_default_transboundary_rules)

    def to_dict(self) -> Dict[str, Any]:
        return {"outcomes": {k: v.to_dict() for k, v in self.outcomes.items()}}


# ============================================================
# SUBSTANCE RELEASE
# ============================================================


@dataclass(frozen=True)
class SubstanceReleaseRules:
    """
    Fire, explosion or discharge of a dangerous substance.

    Measured as a percentage of the substance's qualifying
    quantity. Report at 5% (Annex VI, 1).
    """

    quantity_pct: ThresholdLadder = ThresholdLadder(
        steps=((1.0, "moderate"), (5.0, "major"), (100.0, "catastrophic")),
        report_threshold=5.0,
    )

    def to_dict(self) -> Dict[str, Any]:
        return _ladders_to_dict(self)


# ============================================================
# MASTER CONFIGURATION
# ============================================================


@dataclass(frozen=True)
class ClassificationConfig:
    """
    Master configuration for the Incident Classification Engine.

    Validated on construction: a malformed rule table raises
    RuleConfigurationError here, never during classification.
    """

    tiers: TierScale = field(default_factory=TierScale)
    priority: Tuple[Criterion, ...] = tuple(Criterion.default_priority())

    human_harm: HumanHarmRules = field(default_factory=HumanHarmRules)
    property_damage: PropertyDamageRules = field(default_factory=PropertyDamageRules)
    evacuation: EvacuationRules = field(default_factory=EvacuationRules)
    service_disruption: ServiceDisruptionRules = field(default_factory=ServiceDisruptionRules)
    environmental_damage: EnvironmentalDamageRules = field(default_factory=EnvironmentalDamageRules)
    financial_cost: FinancialCostRules = field(default_factory=FinancialCostRules)
    transboundary: TransboundaryRules = field(default_factory=TransboundaryRules)
    substance_release: SubstanceReleaseRules = field(default_factory=SubstanceReleaseRules)

    rules_version: str = "annex-vi-default-1"

    def __post_init__(self) -> None:
        _validate_config(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassificationConfig":
        """
        Build a configuration from a plain mapping.

        Sections that are absent keep their defaults; within a
        section, absent sub-fields keep their defaults too.
        """
        if not isinstance(data, dict):
            raise RuleConfigurationError("Rule table must be a mapping")

        defaults = cls()
        kwargs: Dict[str, Any] = {}

        try:
            if "tiers" in data:
                kwargs["tiers"] = TierScale(labels=tuple(str(t) for t in data["tiers"]))
            if "priority" in data:
                kwargs["priority"] = tuple(Criterion(c) for c in data["priority"])
            if "rules_version" in data:
                kwargs["rules_version"] = str(data["rules_version"])

            for section in (
                "human_harm",
                "evacuation",
                "service_disruption",
                "environmental_damage",
                "financial_cost",
                "substance_release",
            ):
                if section in data:
                    kwargs[section] = _overlay_section(getattr(defaults, section), data[section])

            if "property_damage" in data:
                homes = data["property_damage"].get("homes", {})
                kwargs["property_damage"] = PropertyDamageRules(
                    homes=_overlay_categories(defaults.property_damage.homes, homes)
                )
            if "transboundary" in data:
                outcomes = data["transboundary"].get("outcomes", {})
                kwargs["transboundary"] = TransboundaryRules(
                    outcomes=_overlay_categories(defaults.transboundary.outcomes, outcomes)
                )
        except RuleConfigurationError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RuleConfigurationError(f"Malformed rule table: {e}") from e

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: Path) -> "ClassificationConfig":
        """Load a rule table from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise RuleConfigurationError(f"Invalid YAML in {path}: {e}") from e

        return cls.from_dict(data or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rules_version": self.rules_version,
            "tiers": list(self.tiers.labels),
            "priority": [c.value for c in self.priority],
            "human_harm": self.human_harm.to_dict(),
            "property_damage": self.property_damage.to_dict(),
            "evacuation": self.evacuation.to_dict(),
            "service_disruption": self.service_disruption.to_dict(),
            "environmental_damage": self.environmental_damage.to_dict(),
            "financial_cost": self.financial_cost.to_dict(),
            "transboundary": self.transboundary.to_dict(),
            "substance_release": self.substance_release.to_dict(),
        }


# ============================================================
# DEFAULT CONFIGURATION
# ============================================================


def get_default_config() -> ClassificationConfig:
    """Return the built-in rule table."""
    return ClassificationConfig()


def get_strict_config() -> ClassificationConfig:
    """
    Return a stricter rule table.

    Lower escalation thresholds for sites that want earlier
    escalation. Report thresholds are unchanged: they are
    regulatory, not a tuning knob.
    """
    defaults = ClassificationConfig()
    return replace(
        defaults,
        rules_version="annex-vi-strict-1",
        human_harm=replace(
            defaults.human_harm,
            injured_onsite=ThresholdLadder(
                steps=((1, "moderate"), (3, "major"), (10, "catastrophic")),
                report_threshold=6,
            ),
        ),
        evacuation=replace(
            defaults.evacuation,
            person_hours=ThresholdLadder(
                steps=((50, "moderate"), (250, "major"), (2500, "catastrophic")),
                report_threshold=500,
            ),
        ),
        financial_cost=replace(
            defaults.financial_cost,
            onsite=ThresholdLadder(
                steps=((50_000, "moderate"), (1_000_000, "major"), (10_000_000, "catastrophic")),
                report_threshold=2_000_000,
            ),
        ),
    )


def load_config(path: Optional[Union[str, Path]] = None) -> ClassificationConfig:
    """
    Load the rule table.

    Resolution order:
    1. Explicit path
    2. INCIDENT_RULES_PATH environment variable (.env supported)
    3. Built-in defaults

    A path that is given but does not exist is an error: a
    missing rule table must never fall back silently.
    """
    if path is None:
        load_dotenv()
        env_path = os.getenv(RULES_PATH_ENV)
        if env_path:
            path = Path(env_path)

    if path is None:
        config = get_default_config()
        logger.info(f"Using built-in rule table {config.rules_version}")
        return config

    path = Path(path)
    if not path.exists():
        raise RuleConfigurationError(f"Rule table not found: {path}")

    config = ClassificationConfig.from_yaml(path)
    logger.info(f"Loaded rule table {config.rules_version} from {path}")
    return config


# ============================================================
# HELPERS
# ============================================================


def _ladder_fields(section: Any) -> List[str]:
    return [f.name for f in fields(section) if isinstance(getattr(section, f.name), ThresholdLadder)]


def _ladders_to_dict(section: Any) -> Dict[str, Any]:
    return {name: getattr(section, name).to_dict() for name in _ladder_fields(section)}


def _ladder_from_dict(data: Dict[str, Any], default: ThresholdLadder) -> ThresholdLadder:
    steps = default.steps
    if "steps" in data:
        steps = tuple((float(threshold), str(label)) for threshold, label in data["steps"])
    report_threshold = default.report_threshold
    if "report_threshold" in data:
        value = data["report_threshold"]
        report_threshold = None if value is None else float(value)
    return ThresholdLadder(steps=steps, report_threshold=report_threshold)


def _overlay_section(section: Any, data: Dict[str, Any]) -> Any:
    known = {f.name for f in fields(section)}
    unknown = set(data) - known
    if unknown:
        raise RuleConfigurationError(
            f"Unknown keys for {type(section).__name__}: {sorted(unknown)}"
        )

    changes: Dict[str, Any] = {}
    for name, value in data.items():
        current = getattr(section, name)
        if isinstance(current, ThresholdLadder):
            changes[name] = _ladder_from_dict(value, current)
        elif isinstance(current, float):
            changes[name] = float(value)
        else:
            changes[name] = type(current)(value)
    return replace(section, **changes)


def _overlay_categories(
    current: Dict[str, CategoryRule],
    data: Dict[str, Any],
) -> Dict[str, CategoryRule]:
    merged = dict(current)
    for key, value in data.items():
        merged[str(key)] = CategoryRule(tier=str(value["tier"]), report=bool(value.get("report", False)))
    return merged


def _validate_ladder(name: str, ladder: ThresholdLadder, scale: TierScale) -> None:
    previous_threshold = None
    previous_rank = 0
    for threshold, label in ladder.steps:
        rank = scale.tier(label).rank
        if not math.isfinite(threshold) or threshold <= 0:
            raise RuleConfigurationError(f"{name}: thresholds must be positive, got {threshold}")
        if previous_threshold is not None and threshold <= previous_threshold:
            raise RuleConfigurationError(f"{name}: thresholds must be strictly ascending")
        if rank < previous_rank:
            raise RuleConfigurationError(f"{name}: tiers must not decrease as thresholds rise")
        previous_threshold = threshold
        previous_rank = rank

    if ladder.report_threshold is not None:
        if not math.isfinite(ladder.report_threshold) or ladder.report_threshold <= 0:
            raise RuleConfigurationError(
                f"{name}: report_threshold must be positive, got {ladder.report_threshold}"
            )


def _validate_categories(
    name: str,
    rules: Dict[str, CategoryRule],
    enum_cls: Type[Any],
    scale: TierScale,
) -> None:
    expected = [member.value for member in enum_cls]
    missing = [value for value in expected if value not in rules]
    extra = [key for key in rules if key not in expected]
    if missing or extra:
        raise RuleConfigurationError(
            f"{name}: categories must be exactly {expected} (missing {missing}, unknown {extra})"
        )

    # Answers are ordinal: a more severe answer never maps to a lower tier.
    previous_rank = 0
    for value in expected:
        rank = scale.tier(rules[value].tier).rank
        if rank < previous_rank:
            raise RuleConfigurationError(f"{name}: tier for '{value}' is below the previous answer")
        previous_rank = rank

    if rules[expected[0]].tier != scale.lowest.label or rules[expected[0]].report:
        raise RuleConfigurationError(
            f"{name}: '{expected[0]}' must map to the lowest tier without a report"
        )


def _validate_config(config: ClassificationConfig) -> None:
    if sorted(c.value for c in config.priority) != sorted(c.value for c in Criterion):
        raise RuleConfigurationError(
            f"priority must list every criterion exactly once, got {[c.value for c in config.priority]}"
        )

    for section_name in (
        "human_harm",
        "evacuation",
        "service_disruption",
        "environmental_damage",
        "financial_cost",
        "substance_release",
    ):
        section = getattr(config, section_name)
        for ladder_name in _ladder_fields(section):
            _validate_ladder(f"{section_name}.{ladder_name}", getattr(section, ladder_name), config.tiers)

    for section_name in ("evacuation", "service_disruption"):
        minimum = getattr(config, section_name).min_duration_hours
        if not math.isfinite(minimum) or minimum < 0:
            raise RuleConfigurationError(f"{section_name}.min_duration_hours must be >= 0")

    _validate_categories("property_damage.homes", config.property_damage.homes, HomesDamaged, config.tiers)
    _validate_categories("transboundary.outcomes", config.transboundary.outcomes, Transboundary, config.tiers)
