"""
Shared fixtures for Incident Classification tests.
"""

from dataclasses import replace
from datetime import date

import pytest

from incident_classification import ClassificationEngine, ImpactRecord


INCIDENT_DATE = date(2025, 3, 2)
RECORDED_AT = date(2025, 3, 3)


@pytest.fixture
def zero_record():
    """Record with every impact field at its minimum."""
    return ImpactRecord(
        company_name="Acme Chemicals",
        incident_date=INCIDENT_DATE,
        recorded_at=RECORDED_AT,
        description="Minor leak contained in bund",
        classifier_name="J. Doe",
    )


@pytest.fixture
def make_record(zero_record):
    """Build a record from the zero-impact baseline with overrides."""
    def _make(**overrides):
        return replace(zero_record, **overrides)
    return _make


@pytest.fixture
def engine():
    """Engine with the built-in rule table."""
    return ClassificationEngine()


@pytest.fixture
def sample_payload():
    """JSON-like payload as submitted by the intake form."""
    return {
        "company_name": "Acme Chemicals",
        "incident_date": "2025-03-02",
        "recorded_at": "2025-03-03",
        "description": "Chlorine release during tanker unloading",
        "classifier_name": "J. Doe",
        "human_harm": {"deaths": 0, "injured_onsite": 2, "injured_offsite": 0},
        "homes_damaged": "none",
        "evacuation": {"people": 300, "duration_hours": 3},
        "service_disruption": {"people_affected": 0, "duration_hours": 0},
        "environmental_damage": {"river_km": 0.5},
        "financial_cost": {"onsite": 150000, "offsite": 0},
        "transboundary": "no",
        "release": {
            "event_type": "discharge",
            "substance": "chlorine",
            "quantity_pct_of_qualifying": 2.5,
        },
    }
