"""
Incident Classification Engine - Package.

============================================================
PURPOSE
============================================================
Maps the impact questionnaire of a workplace safety incident
to a severity tier, a mandatory 24-hour reporting flag and a
justification naming the criterion that set the tier.

============================================================
WHAT IT IS
============================================================
- Deterministic, threshold-based classification
- Rule table as configuration (YAML), not code
- Stateless: recomputed on every call
- Fail closed: invalid records raise ValidationError

============================================================
WHAT IT IS NOT
============================================================
- NOT a storage layer (persistence is a collaborator)
- NOT a UI
- NOT probabilistic

============================================================
USAGE
============================================================
    from datetime import date
    from incident_classification import (
        ClassificationEngine,
        ImpactRecord,
        HumanHarm,
    )

    engine = ClassificationEngine()

    record = ImpactRecord(
        company_name="Acme Chemicals",
        incident_date=date(2025, 3, 2),
        recorded_at=date(2025, 3, 3),
        human_harm=HumanHarm(injured_onsite=7),
    )

    result = engine.classify(record)
    print(result.tier.label)          # major
    print(result.report_required)     # True
    print(result.justification)

============================================================
"""

# Types
from .types import (
    # Enums
    Criterion,
    HomesDamaged,
    Transboundary,
    ReleaseEventType,
    Tier,

    # Input types
    HumanHarm,
    Evacuation,
    ServiceDisruption,
    EnvironmentalDamage,
    FinancialCost,
    ReleaseCharacteristics,
    ImpactRecord,

    # Output types
    CriterionOutcome,
    ClassificationResult,

    # Exceptions
    ClassificationError,
    ValidationError,
    RuleConfigurationError,
)

# Configuration
from .config import (
    TierScale,
    ThresholdLadder,
    CategoryRule,
    HumanHarmRules,
    PropertyDamageRules,
    EvacuationRules,
    ServiceDisruptionRules,
    EnvironmentalDamageRules,
    FinancialCostRules,
    TransboundaryRules,
    SubstanceReleaseRules,
    ClassificationConfig,
    get_default_config,
    get_strict_config,
    load_config,
)

# Validation
from .validation import validate_record

# Evaluators
from .evaluators import (
    BaseCriterionEvaluator,
    HumanHarmEvaluator,
    PropertyDamageEvaluator,
    EvacuationEvaluator,
    ServiceDisruptionEvaluator,
    EnvironmentalDamageEvaluator,
    FinancialCostEvaluator,
    TransboundaryEvaluator,
    SubstanceReleaseEvaluator,
    create_evaluators,
)

# Resolver and engine
from .resolver import ClassificationResolver, resolve
from .engine import (
    ClassificationEngine,
    classify,
    format_classification_summary,
)

# Intake boundary
from .schemas import (
    ImpactRecordCreate,
    ClassificationResultResponse,
    parse_record,
)

# Batch
from .batch import (
    BatchItem,
    BatchResult,
    ClassificationSummary,
    classify_batch,
    summarize,
)


__all__ = [
    # Enums
    "Criterion",
    "HomesDamaged",
    "Transboundary",
    "ReleaseEventType",
    "Tier",

    # Input types
    "HumanHarm",
    "Evacuation",
    "ServiceDisruption",
    "EnvironmentalDamage",
    "FinancialCost",
    "ReleaseCharacteristics",
    "ImpactRecord",

    # Output types
    "CriterionOutcome",
    "ClassificationResult",

    # Exceptions
    "ClassificationError",
    "ValidationError",
    "RuleConfigurationError",

    # Configuration
    "TierScale",
    "ThresholdLadder",
    "CategoryRule",
    "HumanHarmRules",
    "PropertyDamageRules",
    "EvacuationRules",
    "ServiceDisruptionRules",
    "EnvironmentalDamageRules",
    "FinancialCostRules",
    "TransboundaryRules",
    "SubstanceReleaseRules",
    "ClassificationConfig",
    "get_default_config",
    "get_strict_config",
    "load_config",

    # Validation
    "validate_record",

    # Evaluators
    "BaseCriterionEvaluator",
    "HumanHarmEvaluator",
    "PropertyDamageEvaluator",
    "EvacuationEvaluator",
    "ServiceDisruptionEvaluator",
    "EnvironmentalDamageEvaluator",
    "FinancialCostEvaluator",
    "TransboundaryEvaluator",
    "SubstanceReleaseEvaluator",
    "create_evaluators",

    # Resolver and engine
    "ClassificationResolver",
    "resolve",
    "ClassificationEngine",
    "classify",
    "format_classification_summary",

    # Intake boundary
    "ImpactRecordCreate",
    "ClassificationResultResponse",
    "parse_record",

    # Batch
    "BatchItem",
    "BatchResult",
    "ClassificationSummary",
    "classify_batch",
    "summarize",
]


__version__ = "1.0.0"
