"""
Incident Classification Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the Incident Classification Engine.

This module defines the enums, dataclasses and exceptions
shared by the evaluators, the resolver and the engine
facade. Inputs and outputs are immutable.

============================================================
IMPACT DIMENSIONS
============================================================
The engine evaluates eight criteria, one per dimension of
the impact questionnaire:

1. HUMAN_HARM - Deaths and injuries on and off site
2. PROPERTY_DAMAGE - Homes damaged outside the site
3. EVACUATION - People evacuated or confined
4. SERVICE_DISRUPTION - Utility and service interruption
5. ENVIRONMENTAL_DAMAGE - Habitat, surface water and aquifer damage
6. FINANCIAL_COST - Property damage cost on and off site
7. TRANSBOUNDARY_EFFECT - Effects across a national border
8. SUBSTANCE_RELEASE - Fire, explosion or discharge of a dangerous substance

Each criterion outputs a Tier and a mandatory-report flag.

============================================================
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ============================================================
# ENUMS
# ============================================================


class Criterion(str, Enum):
    """
    Impact dimensions scored by the engine.

    Declaration order is the default tie-break priority used
    when several criteria produce the same final tier.
    """

    HUMAN_HARM = "human_harm"
    ENVIRONMENTAL_DAMAGE = "environmental_damage"
    FINANCIAL_COST = "financial_cost"
    SUBSTANCE_RELEASE = "substance_release"
    EVACUATION = "evacuation"
    SERVICE_DISRUPTION = "service_disruption"
    PROPERTY_DAMAGE = "property_damage"
    TRANSBOUNDARY_EFFECT = "transboundary_effect"

    @classmethod
    def default_priority(cls) -> List["Criterion"]:
        """Return all criteria in default tie-break order."""
        return list(cls)

    @property
    def label(self) -> str:
        """Human-readable criterion name."""
        return self.value.replace("_", " ").capitalize()


class HomesDamaged(str, Enum):
    """Homes outside the site damaged and unusable, as an ordinal answer."""

    NONE = "none"
    SOME = "some"
    MANY = "many"


class Transboundary(str, Enum):
    """Whether the incident had effects across a national border."""

    NO = "no"
    YES = "yes"


class ReleaseEventType(str, Enum):
    """Nature of the substance release, if any."""

    NONE = "none"
    FIRE = "fire"
    EXPLOSION = "explosion"
    DISCHARGE = "discharge"


# ============================================================
# TIER
# ============================================================


@dataclass(frozen=True, order=True)
class Tier:
    """
    One step of the ordered severity scale.

    Tiers compare by rank only. Labels come from the configured
    TierScale and are never interpreted by the engine.
    """

    rank: int
    label: str = field(compare=False)

    def __str__(self) -> str:
        return self.label


# ============================================================
# INPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class HumanHarm:
    """Casualty counts."""

    deaths: int = 0
    injured_onsite: int = 0
    injured_offsite: int = 0


@dataclass(frozen=True)
class Evacuation:
    """People evacuated or confined, and for how long."""

    people: int = 0
    duration_hours: float = 0.0

    @property
    def person_hours(self) -> float:
        return self.people * self.duration_hours


@dataclass(frozen=True)
class ServiceDisruption:
    """Interruption of drinking water, electricity, gas or telephone service."""

    people_affected: int = 0
    duration_hours: float = 0.0

    @property
    def person_hours(self) -> float:
        return self.people_affected * self.duration_hours


@dataclass(frozen=True)
class EnvironmentalDamage:
    """
    Immediate damage to the environment.

    Six independent magnitudes:
    - protected_area_ha: protected habitat (hectares)
    - extended_area_ha: more widespread habitat incl. farmland (hectares)
    - river_km: river or canal length (kilometres)
    - lake_ha: lake or pond surface (hectares)
    - delta_ha: delta surface (hectares)
    - aquifer_ha: aquifer or groundwater extent (hectares)
    """

    protected_area_ha: float = 0.0
    extended_area_ha: float = 0.0
    river_km: float = 0.0
    lake_ha: float = 0.0
    delta_ha: float = 0.0
    aquifer_ha: float = 0.0

    def magnitudes(self) -> List[Tuple[str, float]]:
        """Return (field_name, value) pairs in declaration order."""
        return [
            ("protected_area_ha", self.protected_area_ha),
            ("extended_area_ha", self.extended_area_ha),
            ("river_km", self.river_km),
            ("lake_ha", self.lake_ha),
            ("delta_ha", self.delta_ha),
            ("aquifer_ha", self.aquifer_ha),
        ]


@dataclass(frozen=True)
class FinancialCost:
    """Cost of damage, same currency for both fields."""

    onsite: float = 0.0
    offsite: float = 0.0


@dataclass(frozen=True)
class ReleaseCharacteristics:
    """
    Nature of any dangerous substance release.

    quantity_pct_of_qualifying is the released quantity as a
    percentage of the substance's qualifying quantity.
    """

    event_type: ReleaseEventType = ReleaseEventType.NONE
    substance: str = ""
    quantity_pct_of_qualifying: float = 0.0


@dataclass(frozen=True)
class ImpactRecord:
    """
    Complete answer set for one incident.

    recorded_at is the date the record was created. It is the
    reference point for the "incident date not in the future"
    invariant, so classification never reads the clock.
    """

    company_name: str
    incident_date: date
    recorded_at: date
    description: str = ""
    classifier_name: str = ""

    human_harm: HumanHarm = field(default_factory=HumanHarm)
    homes_damaged: HomesDamaged = HomesDamaged.NONE
    evacuation: Evacuation = field(default_factory=Evacuation)
    service_disruption: ServiceDisruption = field(default_factory=ServiceDisruption)
    environmental_damage: EnvironmentalDamage = field(default_factory=EnvironmentalDamage)
    financial_cost: FinancialCost = field(default_factory=FinancialCost)
    transboundary: Transboundary = Transboundary.NO
    release: ReleaseCharacteristics = field(default_factory=ReleaseCharacteristics)


# ============================================================
# OUTPUT DATA CONTRACTS
# ============================================================


@dataclass(frozen=True)
class CriterionOutcome:
    """
    Result of a single criterion evaluator.

    factors lists every sub-field that escalated or crossed its
    reporting threshold, for audit.
    """

    criterion: Criterion
    tier: Tier
    triggers_report: bool
    reason: str
    factors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "criterion": self.criterion.value,
            "tier": self.tier.label,
            "tier_rank": self.tier.rank,
            "triggers_report": self.triggers_report,
            "reason": self.reason,
            "factors": list(self.factors),
        }


@dataclass(frozen=True)
class ClassificationResult:
    """
    Final classification of one Impact Record.

    ============================================================
    OUTPUT GUARANTEES
    ============================================================
    - tier: maximum tier over all criteria
    - report_required: True if ANY criterion crossed its
      mandatory reporting threshold, whatever the tier
    - criterion / justification: the single criterion that set
      the tier, ties broken by the configured priority order
    - breakdown: one outcome per criterion, in priority order

    ============================================================
    """

    tier: Tier
    report_required: bool
    criterion: Criterion
    justification: str
    breakdown: Tuple[CriterionOutcome, ...] = ()
    report_triggers: Tuple[Criterion, ...] = ()
    rules_version: str = ""

    def get_outcome(self, criterion: Criterion) -> Optional[CriterionOutcome]:
        """Get the outcome for a specific criterion."""
        for outcome in self.breakdown:
            if outcome.criterion == criterion:
                return outcome
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "tier": self.tier.label,
            "tier_rank": self.tier.rank,
            "report_required": self.report_required,
            "criterion": self.criterion.value,
            "justification": self.justification,
            "report_triggers": [c.value for c in self.report_triggers],
            "breakdown": [o.to_dict() for o in self.breakdown],
            "rules_version": self.rules_version,
        }


# ============================================================
# ERROR TYPES
# ============================================================


class ClassificationError(Exception):
    """Base exception for incident classification errors."""
    pass


class ValidationError(ClassificationError):
    """
    Raised when an Impact Record violates an invariant.

    Always raised before any evaluator runs. The caller should
    treat it as a user-correctable input error.
    """

    def __init__(self, field: str, constraint: str) -> None:
        super().__init__(f"{field}: {constraint}")
        self.field = field
        self.constraint = constraint


class RuleConfigurationError(ClassificationError):
    """Raised when a rule table is malformed."""
    pass
