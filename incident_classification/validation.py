"""
Incident Classification Engine - Record Validation.

============================================================
PURPOSE
============================================================
Checks every Impact Record invariant before classification.

The first violation raises ValidationError naming the dotted
field path (e.g. "human_harm.deaths") and the constraint.
An invalid record never reaches an evaluator.

============================================================
INVARIANTS
============================================================
- Counts are non-negative integers (bool is not a count)
- Magnitudes are finite non-negative numbers
- Every number, and every person-hours product, fits in a float
- Categorical answers are members of their enum
- incident_date is not after recorded_at
- A released quantity requires a release event

============================================================
"""

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Type

from .types import (
    EnvironmentalDamage,
    Evacuation,
    FinancialCost,
    HomesDamaged,
    HumanHarm,
    ImpactRecord,
    ReleaseCharacteristics,
    ReleaseEventType,
    ServiceDisruption,
    Transboundary,
    ValidationError,
)


def validate_record(record: Any) -> None:
    """
    Validate an Impact Record.

    Raises:
        ValidationError: On the first violated invariant
    """
    if not isinstance(record, ImpactRecord):
        raise ValidationError("record", f"must be an ImpactRecord, got {type(record).__name__}")

    # --------------------------------------------------
    # Identification
    # --------------------------------------------------
    _require_text("company_name", record.company_name, allow_blank=False)
    _require_text("description", record.description)
    _require_text("classifier_name", record.classifier_name)
    _require_date("incident_date", record.incident_date)
    _require_date("recorded_at", record.recorded_at)
    if record.incident_date > record.recorded_at:
        raise ValidationError(
            "incident_date",
            f"must not be after the record date {record.recorded_at.isoformat()}",
        )

    # --------------------------------------------------
    # Human harm
    # --------------------------------------------------
    harm = _require_section("human_harm", record.human_harm, HumanHarm)
    _require_count("human_harm.deaths", harm.deaths)
    _require_count("human_harm.injured_onsite", harm.injured_onsite)
    _require_count("human_harm.injured_offsite", harm.injured_offsite)

    # --------------------------------------------------
    # Property, evacuation, service disruption
    # --------------------------------------------------
    _require_member("homes_damaged", record.homes_damaged, HomesDamaged)

    evacuation = _require_section("evacuation", record.evacuation, Evacuation)
    _require_count("evacuation.people", evacuation.people)
    _require_magnitude("evacuation.duration_hours", evacuation.duration_hours)
    _require_person_hours("evacuation.people", evacuation.people, evacuation.duration_hours)

    disruption = _require_section("service_disruption", record.service_disruption, ServiceDisruption)
    _require_count("service_disruption.people_affected", disruption.people_affected)
    _require_magnitude("service_disruption.duration_hours", disruption.duration_hours)
    _require_person_hours(
        "service_disruption.people_affected",
        disruption.people_affected,
        disruption.duration_hours,
    )

    # --------------------------------------------------
    # Environment and cost
    # --------------------------------------------------
    environment = _require_section("environmental_damage", record.environmental_damage, EnvironmentalDamage)
    for name, value in environment.magnitudes():
        _require_magnitude(f"environmental_damage.{name}", value)

    cost = _require_section("financial_cost", record.financial_cost, FinancialCost)
    _require_magnitude("financial_cost.onsite", cost.onsite)
    _require_magnitude("financial_cost.offsite", cost.offsite)

    # --------------------------------------------------
    # Transboundary and release
    # --------------------------------------------------
    _require_member("transboundary", record.transboundary, Transboundary)

    release = _require_section("release", record.release, ReleaseCharacteristics)
    _require_member("release.event_type", release.event_type, ReleaseEventType)
    _require_text("release.substance", release.substance)
    _require_magnitude("release.quantity_pct_of_qualifying", release.quantity_pct_of_qualifying)
    if release.event_type == ReleaseEventType.NONE and release.quantity_pct_of_qualifying > 0:
        raise ValidationError(
            "release.quantity_pct_of_qualifying",
            "must be 0 when no release event occurred",
        )


# ============================================================
# HELPERS
# ============================================================


def _require_section(path: str, value: Any, expected: Type[Any]) -> Any:
    if not isinstance(value, expected):
        raise ValidationError(path, f"must be a {expected.__name__}, got {type(value).__name__}")
    return value


def _require_text(path: str, value: Any, allow_blank: bool = True) -> None:
    if not isinstance(value, str):
        raise ValidationError(path, f"must be a string, got {type(value).__name__}")
    if not allow_blank and not value.strip():
        raise ValidationError(path, "must not be blank")


def _require_date(path: str, value: Any) -> None:
    if isinstance(value, datetime) or not isinstance(value, date):
        raise ValidationError(path, f"must be a date, got {type(value).__name__}")


def _require_count(path: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(path, f"must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValidationError(path, f"must be >= 0, got {value}")
    _require_float_range(path, value)


def _require_magnitude(path: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(path, f"must be a number, got {type(value).__name__}")
    _require_float_range(path, value)
    if not math.isfinite(value):
        raise ValidationError(path, f"must be finite, got {value}")
    if value < 0:
        raise ValidationError(path, f"must be >= 0, got {value}")


def _require_float_range(path: str, value: Any) -> None:
    # Evaluators compare and multiply in float.
    try:
        float(value)
    except OverflowError:
        raise ValidationError(path, "out of range") from None


def _require_person_hours(path: str, people: int, duration_hours: float) -> None:
    try:
        person_hours = float(people * duration_hours)
    except OverflowError:
        raise ValidationError(path, "out of range: person-hours too large") from None
    if not math.isfinite(person_hours):
        raise ValidationError(path, "out of range: person-hours too large")


def _require_member(path: str, value: Any, enum_cls: Type[Enum]) -> None:
    if not isinstance(value, enum_cls):
        allowed = [member.value for member in enum_cls]
        raise ValidationError(
            path,
            f"must be a {enum_cls.__name__} member ({allowed}), got {type(value).__name__} {value!r}",
        )
