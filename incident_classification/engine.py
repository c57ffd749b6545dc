"""
Incident Classification Engine - Main Entry Point.

============================================================
PURPOSE
============================================================
The ClassificationEngine is the only entry point used by
external collaborators (intake form, persistence layer).

It orchestrates:
1. Record validation
2. Every criterion evaluator
3. Resolution into a single ClassificationResult

============================================================
DESIGN PRINCIPLES
============================================================
- Stateless: the full decision is recomputed on every call
- Deterministic: no clock, randomness or external state
- Fail closed: an invalid record raises ValidationError
  before any evaluator runs and never gets a classification
- No logging, no retries, no default classification

============================================================
USAGE
============================================================
    from incident_classification import ClassificationEngine, ImpactRecord

    engine = ClassificationEngine()
    result = engine.classify(record)

    print(result.tier.label, result.report_required)
    print(result.justification)

============================================================
"""

from typing import List, Optional

from .types import ClassificationResult, CriterionOutcome, ImpactRecord
from .config import ClassificationConfig, get_default_config
from .evaluators import BaseCriterionEvaluator, create_evaluators
from .resolver import ClassificationResolver
from .validation import validate_record


class ClassificationEngine:
    """
    Facade over the evaluators and the resolver.

    Holds only immutable configuration, so one instance can be
    shared across threads.
    """

    def __init__(self, config: Optional[ClassificationConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Rule table. Uses the built-in defaults if not provided.
        """
        self.config = config or get_default_config()
        self._evaluators: List[BaseCriterionEvaluator] = create_evaluators(self.config)
        self._resolver = ClassificationResolver(
            priority=self.config.priority,
            rules_version=self.config.rules_version,
        )

    def classify(self, record: ImpactRecord) -> ClassificationResult:
        """
        Classify one Impact Record.

        Args:
            record: Fully populated Impact Record snapshot

        Returns:
            ClassificationResult

        Raises:
            ValidationError: If the record violates an invariant
        """
        validate_record(record)

        outcomes: List[CriterionOutcome] = [
            evaluator.evaluate(record) for evaluator in self._evaluators
        ]

        return self._resolver.resolve(outcomes)

    def get_config(self) -> ClassificationConfig:
        """Return the active rule table."""
        return self.config


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================


def classify(
    record: ImpactRecord,
    config: Optional[ClassificationConfig] = None,
) -> ClassificationResult:
    """
    Classify a record in one call.

    For repeated classification, prefer a long-lived
    ClassificationEngine instance.
    """
    return ClassificationEngine(config=config).classify(record)


def format_classification_summary(result: ClassificationResult) -> str:
    """
    Format a human-readable classification summary.

    Useful for detail views, logs and the CLI.
    """
    lines = [
        "=" * 60,
        "INCIDENT CLASSIFICATION",
        "=" * 60,
        f"Tier:            {result.tier.label.upper()}",
        f"Report in 24h:   {'YES' if result.report_required else 'no'}",
        f"Justification:   {result.justification}",
        f"Rules version:   {result.rules_version}",
        "",
        "Criterion Breakdown:",
    ]

    for outcome in result.breakdown:
        flag = "REPORT" if outcome.triggers_report else ""
        lines.append(
            f"  {outcome.criterion.label:22s} {outcome.tier.label:14s} {flag:6s} {outcome.reason}"
        )

    lines.append("=" * 60)
    return "\n".join(lines)
