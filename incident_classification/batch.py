"""
Incident Classification Engine - Batch Classification.

============================================================
PURPOSE
============================================================
Classifies many records independently and aggregates the
results for dashboard collaborators.

- One invalid record never aborts the batch
- An invalid record never receives a classification
- Summary counts: per tier, report required, per criterion

============================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .types import ClassificationResult, ImpactRecord, ValidationError
from .config import TierScale
from .engine import ClassificationEngine
from .schemas import parse_record


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItem:
    """Outcome for one record of a batch."""

    index: int
    result: Optional[ClassificationResult] = None
    error: Optional[ValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {
                "index": self.index,
                "error": {"field": self.error.field, "constraint": self.error.constraint},
            }
        return {"index": self.index, "result": self.result.to_dict()}


@dataclass(frozen=True)
class ClassificationSummary:
    """
    Aggregate view over many classifications.

    by_tier lists every tier of the scale, lowest first, with
    zero counts included so charts keep a stable axis.
    """

    total: int = 0
    report_required: int = 0
    by_tier: Dict[str, int] = field(default_factory=dict)
    by_criterion: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "report_required": self.report_required,
            "by_tier": dict(self.by_tier),
            "by_criterion": dict(self.by_criterion),
        }


@dataclass(frozen=True)
class BatchResult:
    """All items of a batch, in input order."""

    items: Tuple[BatchItem, ...] = ()

    @property
    def results(self) -> List[ClassificationResult]:
        return [item.result for item in self.items if item.result is not None]

    @property
    def failures(self) -> List[BatchItem]:
        return [item for item in self.items if not item.ok]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "failed": len(self.failures),
        }


def classify_batch(
    records: Iterable[Union[ImpactRecord, Mapping[str, Any]]],
    engine: Optional[ClassificationEngine] = None,
    today: Optional[date] = None,
) -> BatchResult:
    """
    Classify a batch of records.

    Args:
        records: ImpactRecords or JSON-like payloads
        engine: Engine to use (default rule table if None)
        today: Creation date for payloads without recorded_at

    Returns:
        BatchResult with one item per input record
    """
    engine = engine or ClassificationEngine()
    items: List[BatchItem] = []

    for index, record in enumerate(records):
        try:
            if not isinstance(record, ImpactRecord):
                record = parse_record(record, today=today)
            items.append(BatchItem(index=index, result=engine.classify(record)))
        except ValidationError as e:
            logger.warning(f"Record {index} rejected: {e}")
            items.append(BatchItem(index=index, error=e))

    batch = BatchResult(items=tuple(items))
    logger.info(
        f"Classified {len(batch.results)}/{len(items)} records "
        f"({len(batch.failures)} rejected)"
    )
    return batch


def summarize(
    results: Iterable[ClassificationResult],
    scale: Optional[TierScale] = None,
) -> ClassificationSummary:
    """
    Aggregate classifications for a dashboard.

    Args:
        results: Classification results
        scale: Tier scale used to seed zero counts (default scale if None)
    """
    scale = scale or TierScale()
    by_tier: Dict[str, int] = {label: 0 for label in scale.labels}
    by_criterion: Dict[str, int] = {}
    total = 0
    report_required = 0

    for result in results:
        total += 1
        by_tier[result.tier.label] = by_tier.get(result.tier.label, 0) + 1
        by_criterion[result.criterion.value] = by_criterion.get(result.criterion.value, 0) + 1
        if result.report_required:
            report_required += 1

    return ClassificationSummary(
        total=total,
        report_required=report_required,
        by_tier=by_tier,
        by_criterion=dict(sorted(by_criterion.items())),
    )
