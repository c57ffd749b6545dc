"""
Incident Classification Engine - Criterion Evaluators.

============================================================
PURPOSE
============================================================
One evaluator per impact dimension.

Each evaluator:
1. Reads its own fields of the Impact Record
2. Climbs the configured threshold ladder
3. Returns a CriterionOutcome with tier, report flag and reason

============================================================
DESIGN PRINCIPLES
============================================================
- Pure functions: same input = same output
- No dependency on any other evaluator
- Inclusive thresholds: value >= threshold
- Total over a validated record: never raises

============================================================
EVALUATION PATTERN
============================================================
For each sub-field:
    tier = highest ladder step with value >= threshold
    triggered = value >= report_threshold

Criterion tier = MAX(sub-field tiers)
Criterion triggers report = ANY(sub-field triggered)

============================================================
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from .types import (
    Criterion,
    CriterionOutcome,
    ImpactRecord,
    ReleaseEventType,
    Tier,
)
from .config import (
    CategoryRule,
    ClassificationConfig,
    EnvironmentalDamageRules,
    EvacuationRules,
    FinancialCostRules,
    HumanHarmRules,
    PropertyDamageRules,
    ServiceDisruptionRules,
    SubstanceReleaseRules,
    ThresholdLadder,
    TierScale,
    TransboundaryRules,
)


class Reading(NamedTuple):
    """One sub-field checked against its ladder."""

    name: str
    value: float
    tier: Tier
    triggered: bool


# ============================================================
# BASE EVALUATOR
# ============================================================


class BaseCriterionEvaluator(ABC):
    """
    Abstract base class for criterion evaluators.

    Provides ladder climbing and aggregation of several
    sub-field readings into one outcome.
    """

    def __init__(self, scale: TierScale):
        self.scale = scale

    @property
    @abstractmethod
    def criterion(self) -> Criterion:
        """Return the criterion this evaluator handles."""
        pass

    @abstractmethod
    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        """Evaluate one Impact Record."""
        pass

    def _climb(self, value: float, ladder: ThresholdLadder) -> Tier:
        """Return the highest tier whose threshold is met."""
        tier = self.scale.lowest
        for threshold, label in ladder.steps:
            if value >= threshold:
                tier = self.scale.tier(label)
        return tier

    def _read(self, name: str, value: float, ladder: ThresholdLadder) -> Reading:
        triggered = ladder.report_threshold is not None and value >= ladder.report_threshold
        return Reading(name=name, value=value, tier=self._climb(value, ladder), triggered=triggered)

    def _categorical(self, name: str, answer: Enum, rules: Dict[str, CategoryRule]) -> CriterionOutcome:
        """Map an enumerated answer straight to its fixed outcome."""
        rule = rules[answer.value]
        tier = self.scale.tier(rule.tier)
        if tier == self.scale.lowest and not rule.report:
            reason = f"{name}: {answer.value}"
            factors: tuple = ()
        else:
            reason = f"{name}: {answer.value} ({tier.label})"
            factors = (f"{name}: {answer.value}",)
        return CriterionOutcome(
            criterion=self.criterion,
            tier=tier,
            triggers_report=rule.report,
            reason=reason,
            factors=factors,
        )

    def _aggregate(self, readings: List[Reading]) -> CriterionOutcome:
        """
        Aggregate sub-field readings into one outcome.

        The first reading at the maximum tier supplies the reason,
        so ties inside a criterion resolve in field order.
        """
        if not readings:
            return self._floor("No applicable impact")

        primary = readings[0]
        for reading in readings[1:]:
            if reading.tier > primary.tier:
                primary = reading

        factors = tuple(
            f"{r.name}: {_fmt(r.value)}" + (" (report threshold reached)" if r.triggered else "")
            for r in readings
            if r.tier > self.scale.lowest or r.triggered
        )
        triggers_report = any(r.triggered for r in readings)

        if primary.tier == self.scale.lowest:
            triggered = [r for r in readings if r.triggered]
            if triggered:
                reason = f"{triggered[0].name} {_fmt(triggered[0].value)} reached report threshold"
            else:
                reason = "Within limits"
        else:
            reason = f"{primary.name} {_fmt(primary.value)} reached {primary.tier.label} threshold"

        return CriterionOutcome(
            criterion=self.criterion,
            tier=primary.tier,
            triggers_report=triggers_report,
            reason=reason,
            factors=factors,
        )

    def _floor(self, reason: str) -> CriterionOutcome:
        return CriterionOutcome(
            criterion=self.criterion,
            tier=self.scale.lowest,
            triggers_report=False,
            reason=reason,
        )


# ============================================================
# HUMAN HARM
# ============================================================


class HumanHarmEvaluator(BaseCriterionEvaluator):
    """
    Deaths, on-site injuries and off-site injuries.

    Each count climbs its own ladder; the criterion takes the
    highest of the three.
    """

    def __init__(self, rules: Optional[HumanHarmRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or HumanHarmRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.HUMAN_HARM

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        harm = record.human_harm
        return self._aggregate([
            self._read("Deaths", harm.deaths, self.rules.deaths),
            self._read("Injured on site", harm.injured_onsite, self.rules.injured_onsite),
            self._read("Injured off site", harm.injured_offsite, self.rules.injured_offsite),
        ])


# ============================================================
# PROPERTY DAMAGE
# ============================================================


class PropertyDamageEvaluator(BaseCriterionEvaluator):
    """Homes damaged outside the site, mapped by answer."""

    def __init__(self, rules: Optional[PropertyDamageRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or PropertyDamageRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.PROPERTY_DAMAGE

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        return self._categorical("Homes damaged", record.homes_damaged, self.rules.homes)


# ============================================================
# EVACUATION
# ============================================================


class EvacuationEvaluator(BaseCriterionEvaluator):
    """
    Evacuation or confinement in person-hours.

    An evacuation shorter than the minimum duration does not
    count, whatever the number of people.
    """

    def __init__(self, rules: Optional[EvacuationRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or EvacuationRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.EVACUATION

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        evacuation = record.evacuation
        if evacuation.duration_hours < self.rules.min_duration_hours:
            return self._floor(
                f"Evacuation shorter than {_fmt(self.rules.min_duration_hours)}h"
                if evacuation.people else "No evacuation"
            )
        return self._aggregate([
            self._read("Evacuation person-hours", evacuation.person_hours, self.rules.person_hours),
        ])


# ============================================================
# SERVICE DISRUPTION
# ============================================================


class ServiceDisruptionEvaluator(BaseCriterionEvaluator):
    """Utility interruption in person-hours."""

    def __init__(self, rules: Optional[ServiceDisruptionRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or ServiceDisruptionRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.SERVICE_DISRUPTION

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        disruption = record.service_disruption
        if disruption.duration_hours < self.rules.min_duration_hours:
            return self._floor(
                f"Disruption shorter than {_fmt(self.rules.min_duration_hours)}h"
                if disruption.people_affected else "No service disruption"
            )
        return self._aggregate([
            self._read("Disruption person-hours", disruption.person_hours, self.rules.person_hours),
        ])


# ============================================================
# ENVIRONMENTAL DAMAGE
# ============================================================


class EnvironmentalDamageEvaluator(BaseCriterionEvaluator):
    """
    Six independent environmental magnitudes.

    Any single magnitude at or above its report threshold
    forces a report on its own.
    """

    LABELS = {
        "protected_area_ha": "Protected habitat (ha)",
        "extended_area_ha": "Widespread habitat (ha)",
        "river_km": "River or canal (km)",
        "lake_ha": "Lake or pond (ha)",
        "delta_ha": "Delta (ha)",
        "aquifer_ha": "Aquifer (ha)",
    }

    def __init__(self, rules: Optional[EnvironmentalDamageRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or EnvironmentalDamageRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.ENVIRONMENTAL_DAMAGE

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        return self._aggregate([
            self._read(self.LABELS[name], value, getattr(self.rules, name))
            for name, value in record.environmental_damage.magnitudes()
        ])


# ============================================================
# FINANCIAL COST
# ============================================================


class FinancialCostEvaluator(BaseCriterionEvaluator):
    """On-site and off-site damage cost."""

    def __init__(self, rules: Optional[FinancialCostRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or FinancialCostRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.FINANCIAL_COST

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        cost = record.financial_cost
        currency = self.rules.currency
        return self._aggregate([
            self._read(f"On-site cost ({currency})", cost.onsite, self.rules.onsite),
            self._read(f"Off-site cost ({currency})", cost.offsite, self.rules.offsite),
        ])


# ============================================================
# TRANSBOUNDARY EFFECT
# ============================================================


class TransboundaryEvaluator(BaseCriterionEvaluator):
    """Cross-border effect, mapped by answer."""

    def __init__(self, rules: Optional[TransboundaryRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or TransboundaryRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.TRANSBOUNDARY_EFFECT

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        return self._categorical("Transboundary effect", record.transboundary, self.rules.outcomes)


# ============================================================
# SUBSTANCE RELEASE
# ============================================================


class SubstanceReleaseEvaluator(BaseCriterionEvaluator):
    """
    Fire, explosion or discharge of a dangerous substance.

    The released quantity only counts when a release event
    actually occurred.
    """

    def __init__(self, rules: Optional[SubstanceReleaseRules] = None, scale: Optional[TierScale] = None):
        super().__init__(scale or TierScale())
        self.rules = rules or SubstanceReleaseRules()

    @property
    def criterion(self) -> Criterion:
        return Criterion.SUBSTANCE_RELEASE

    def evaluate(self, record: ImpactRecord) -> CriterionOutcome:
        release = record.release
        if release.event_type == ReleaseEventType.NONE:
            return self._floor("No substance release")

        name = f"{release.event_type.value.capitalize()}"
        if release.substance:
            name += f" of {release.substance}"
        return self._aggregate([
            self._read(f"{name} (% of qualifying quantity)", release.quantity_pct_of_qualifying, self.rules.quantity_pct),
        ])


# ============================================================
# FACTORY
# ============================================================


def create_evaluators(config: ClassificationConfig) -> List[BaseCriterionEvaluator]:
    """Build one evaluator per criterion from a configuration."""
    scale = config.tiers
    return [
        HumanHarmEvaluator(config.human_harm, scale),
        PropertyDamageEvaluator(config.property_damage, scale),
        EvacuationEvaluator(config.evacuation, scale),
        ServiceDisruptionEvaluator(config.service_disruption, scale),
        EnvironmentalDamageEvaluator(config.environmental_damage, scale),
        FinancialCostEvaluator(config.financial_cost, scale),
        TransboundaryEvaluator(config.transboundary, scale),
        SubstanceReleaseEvaluator(config.substance_release, scale),
    ]


def _fmt(value: float) -> str:
    if isinstance(value, int) or float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}"
