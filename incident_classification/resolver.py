"""
Incident Classification Engine - Classification Resolver.

============================================================
PURPOSE
============================================================
Combines the outcomes of all criterion evaluators into one
ClassificationResult.

============================================================
RESOLUTION RULES
============================================================
1. Final tier = MAX(outcome tiers)
2. Ties at the maximum are broken by the fixed criterion
   priority order (human harm first by default)
3. report_required = ANY(outcome triggers_report)
   A single criterion crossing its mandatory threshold forces
   a report regardless of the final tier. It is NOT derived
   from the tier.
4. Justification = reason of the winning criterion

============================================================
"""

from typing import Dict, Optional, Sequence

from .types import (
    Criterion,
    CriterionOutcome,
    ClassificationResult,
    RuleConfigurationError,
)


class ClassificationResolver:
    """
    Resolves evaluator outcomes into a final classification.

    Stateless; holds only the priority order and rule version.
    """

    def __init__(
        self,
        priority: Optional[Sequence[Criterion]] = None,
        rules_version: str = "",
    ):
        try:
            self.priority = tuple(Criterion(c) for c in priority or Criterion.default_priority())
        except ValueError as e:
            raise RuleConfigurationError(f"Unknown criterion in priority: {e}") from e
        if sorted(c.value for c in self.priority) != sorted(c.value for c in Criterion):
            raise RuleConfigurationError(
                f"priority must list every criterion exactly once, got {[c.value for c in self.priority]}"
            )
        self.rules_version = rules_version
        self._rank: Dict[Criterion, int] = {c: i for i, c in enumerate(self.priority)}

    def resolve(self, outcomes: Sequence[CriterionOutcome]) -> ClassificationResult:
        """
        Resolve a set of outcomes.

        Args:
            outcomes: One outcome per criterion, in any order

        Returns:
            ClassificationResult with breakdown in priority order
        """
        if not outcomes:
            raise ValueError("resolve() needs at least one criterion outcome")

        ordered = sorted(outcomes, key=lambda o: self._rank[o.criterion])

        # Strictly greater: the earlier (higher priority) criterion keeps a tie.
        winner = ordered[0]
        for outcome in ordered[1:]:
            if outcome.tier > winner.tier:
                winner = outcome

        report_triggers = tuple(o.criterion for o in ordered if o.triggers_report)

        return ClassificationResult(
            tier=winner.tier,
            report_required=bool(report_triggers),
            criterion=winner.criterion,
            justification=f"{winner.criterion.label}: {winner.reason}",
            breakdown=tuple(ordered),
            report_triggers=report_triggers,
            rules_version=self.rules_version,
        )


def resolve(
    outcomes: Sequence[CriterionOutcome],
    priority: Optional[Sequence[Criterion]] = None,
    rules_version: str = "",
) -> ClassificationResult:
    """Resolve outcomes in one call."""
    return ClassificationResolver(priority=priority, rules_version=rules_version).resolve(outcomes)
