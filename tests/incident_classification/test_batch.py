"""
Tests for batch classification and dashboard summaries.
"""

import logging
from datetime import date

from incident_classification import (
    ClassificationEngine,
    HumanHarm,
    TierScale,
    Transboundary,
    classify_batch,
    summarize,
)


class TestClassifyBatch:

    def test_mixed_batch(self, make_record, sample_payload, caplog):
        bad_payload = dict(sample_payload, human_harm={"deaths": "many"})
        records = [
            make_record(human_harm=HumanHarm(deaths=1)),
            bad_payload,
            sample_payload,
        ]

        with caplog.at_level(logging.WARNING):
            batch = classify_batch(records)

        assert len(batch.items) == 3
        assert [item.ok for item in batch.items] == [True, False, True]
        assert len(batch.results) == 2
        assert batch.failures[0].index == 1
        assert batch.failures[0].error.field == "human_harm.deaths"
        assert batch.failures[0].result is None
        assert "Record 1 rejected" in caplog.text

    def test_invalid_record_object_rejected(self, make_record):
        batch = classify_batch([make_record(company_name="")])

        assert batch.items[0].error.field == "company_name"

    def test_to_dict(self, make_record):
        batch = classify_batch([make_record(), make_record(company_name="")])
        data = batch.to_dict()

        assert data["failed"] == 1
        assert data["items"][0]["result"]["tier"] == "minor"
        assert data["items"][1]["error"]["field"] == "company_name"

    def test_uses_given_engine_and_today(self, sample_payload):
        del sample_payload["recorded_at"]
        engine = ClassificationEngine()

        batch = classify_batch([sample_payload], engine=engine, today=date(2025, 3, 5))

        assert batch.items[0].ok

    def test_empty_batch(self):
        batch = classify_batch([])

        assert batch.items == ()
        assert batch.failures == []


class TestSummarize:

    def test_counts(self, engine, make_record):
        results = [
            engine.classify(make_record()),
            engine.classify(make_record(human_harm=HumanHarm(deaths=1))),
            engine.classify(make_record(human_harm=HumanHarm(deaths=2))),
            engine.classify(make_record(transboundary=Transboundary.YES)),
        ]

        summary = summarize(results)

        assert summary.total == 4
        assert summary.report_required == 3
        assert summary.by_tier == {"minor": 1, "moderate": 1, "major": 0, "catastrophic": 2}
        assert summary.by_criterion == {"human_harm": 3, "transboundary_effect": 1}

    def test_empty_keeps_tier_axis(self):
        summary = summarize([], scale=TierScale(labels=("low", "high")))

        assert summary.total == 0
        assert summary.to_dict()["by_tier"] == {"low": 0, "high": 0}
