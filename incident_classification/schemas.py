"""
Pydantic Schemas for the incident intake boundary.

Parses form submissions and stored payloads into an Impact
Record. Shape and type coercion happen here; invariant checks
stay with the engine so every caller goes through the same gate.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .types import (
    ClassificationResult,
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


# =============================================================
# SECTION SCHEMAS
# =============================================================

class HumanHarmSchema(BaseModel):
    deaths: int = 0
    injured_onsite: int = 0
    injured_offsite: int = 0

    class Config:
        extra = "forbid"


class EvacuationSchema(BaseModel):
    people: int = 0
    duration_hours: float = 0.0

    class Config:
        extra = "forbid"


class ServiceDisruptionSchema(BaseModel):
    people_affected: int = 0
    duration_hours: float = 0.0

    class Config:
        extra = "forbid"


class EnvironmentalDamageSchema(BaseModel):
    """Magnitudes in hectares, except river_km."""
    protected_area_ha: float = 0.0
    extended_area_ha: float = 0.0
    river_km: float = 0.0
    lake_ha: float = 0.0
    delta_ha: float = 0.0
    aquifer_ha: float = 0.0

    class Config:
        extra = "forbid"


class FinancialCostSchema(BaseModel):
    onsite: float = 0.0
    offsite: float = 0.0

    class Config:
        extra = "forbid"


class ReleaseSchema(BaseModel):
    event_type: str = ReleaseEventType.NONE.value
    substance: str = ""
    quantity_pct_of_qualifying: float = 0.0

    class Config:
        extra = "forbid"


# =============================================================
# IMPACT RECORD SCHEMA
# =============================================================

class ImpactRecordCreate(BaseModel):
    """Schema for a submitted impact questionnaire."""
    company_name: str
    incident_date: date
    recorded_at: Optional[date] = None
    description: str = ""
    classifier_name: str = ""

    human_harm: HumanHarmSchema = Field(default_factory=HumanHarmSchema)
    homes_damaged: str = HomesDamaged.NONE.value
    evacuation: EvacuationSchema = Field(default_factory=EvacuationSchema)
    service_disruption: ServiceDisruptionSchema = Field(default_factory=ServiceDisruptionSchema)
    environmental_damage: EnvironmentalDamageSchema = Field(default_factory=EnvironmentalDamageSchema)
    financial_cost: FinancialCostSchema = Field(default_factory=FinancialCostSchema)
    transboundary: str = Transboundary.NO.value
    release: ReleaseSchema = Field(default_factory=ReleaseSchema)

    class Config:
        extra = "forbid"

    def to_record(self, today: Optional[date] = None) -> ImpactRecord:
        """
        Convert to an immutable ImpactRecord.

        recorded_at defaults to `today` (or the current date):
        submission is when the record is created.

        Raises:
            ValidationError: If a categorical answer is not a known value
        """
        recorded_at = self.recorded_at or today or date.today()

        return ImpactRecord(
            company_name=self.company_name,
            incident_date=self.incident_date,
            recorded_at=recorded_at,
            description=self.description,
            classifier_name=self.classifier_name,
            human_harm=HumanHarm(**self.human_harm.model_dump()),
            homes_damaged=_to_member("homes_damaged", self.homes_damaged, HomesDamaged),
            evacuation=Evacuation(**self.evacuation.model_dump()),
            service_disruption=ServiceDisruption(**self.service_disruption.model_dump()),
            environmental_damage=EnvironmentalDamage(**self.environmental_damage.model_dump()),
            financial_cost=FinancialCost(**self.financial_cost.model_dump()),
            transboundary=_to_member("transboundary", self.transboundary, Transboundary),
            release=ReleaseCharacteristics(
                event_type=_to_member("release.event_type", self.release.event_type, ReleaseEventType),
                substance=self.release.substance,
                quantity_pct_of_qualifying=self.release.quantity_pct_of_qualifying,
            ),
        )


# =============================================================
# RESULT SCHEMAS
# =============================================================

class CriterionOutcomeResponse(BaseModel):
    """Per-criterion audit entry."""
    criterion: str
    tier: str
    tier_rank: int
    triggers_report: bool
    reason: str
    factors: List[str] = []


class ClassificationResultResponse(BaseModel):
    """Schema for display and persistence collaborators."""
    tier: str
    tier_rank: int
    report_required: bool
    criterion: str
    justification: str
    report_triggers: List[str] = []
    breakdown: List[CriterionOutcomeResponse] = []
    rules_version: str

    @classmethod
    def from_result(cls, result: ClassificationResult) -> "ClassificationResultResponse":
        return cls(**result.to_dict())


# =============================================================
# PARSING
# =============================================================

def parse_record(payload: Mapping[str, Any], today: Optional[date] = None) -> ImpactRecord:
    """
    Parse a JSON-like payload into an ImpactRecord.

    Pydantic shape errors are re-raised as ValidationError with
    the dotted path of the first offending field, so callers
    handle one error type.
    """
    try:
        schema = ImpactRecordCreate.model_validate(payload)
    except PydanticValidationError as e:
        first: Dict[str, Any] = e.errors()[0]
        path = ".".join(str(part) for part in first.get("loc", ())) or "record"
        raise ValidationError(path, first.get("msg", "invalid value")) from e

    return schema.to_record(today=today)


def _to_member(path: str, value: str, enum_cls: Type[Enum]) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise ValidationError(path, f"must be one of {allowed}, got {value!r}") from None
