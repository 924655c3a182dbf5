"""
Risk classification tests
"""
import pytest

from app.database.schemas import BloodPressure, Patient
from app.services.risk import (
    HIGH,
    LOW,
    MEDIUM,
    RISK_TIERS,
    classify,
    recommended_action,
    risk_factors,
    risk_score,
)


@pytest.mark.parametrize(
    "systolic, diastolic, sugar, pregnant, expected",
    [
        (120, 80, 100, False, LOW),
        (135, 80, 0, False, MEDIUM),
        (141, 70, 0, False, MEDIUM),
        (150, 95, 210, True, HIGH),
        (150, 95, 210, False, HIGH),
        (0, 0, 0, False, LOW),
        (0, 0, 0, True, MEDIUM),
        (145, 0, 150, False, HIGH),
        (131, 0, 141, True, HIGH),
        (131, 0, 141, False, MEDIUM),
    ],
)
def test_classify_examples(systolic, diastolic, sugar, pregnant, expected):
    assert classify(systolic, diastolic, sugar, pregnant) == expected


def test_thresholds_are_exclusive():
    """Values equal to a threshold add nothing"""
    assert classify(140, 90, 200, False) == MEDIUM  # only the elevated branches fire
    assert classify(130, 85, 140, False) == LOW
    assert risk_score(140, 0, 0, False) == 1
    assert risk_score(141, 0, 0, False) == 2


def test_bp_branches_are_mutually_exclusive():
    """Severe blood pressure scores 2, never 2 + 1"""
    assert risk_score(145, 88, 0, False) == 2
    assert risk_score(0, 0, 250, False) == 2


def test_tier_cutoffs_are_inclusive():
    assert risk_score(141, 0, 0, True) == 3
    assert classify(141, 0, 0, True) == HIGH
    assert risk_score(131, 0, 0, False) == 1
    assert classify(131, 0, 0, False) == MEDIUM


def test_classify_is_total_and_deterministic():
    for systolic in range(0, 301, 25):
        for diastolic in range(0, 201, 20):
            for sugar in range(0, 501, 50):
                for pregnant in (True, False):
                    first = classify(systolic, diastolic, sugar, pregnant)
                    assert first in RISK_TIERS
                    assert classify(systolic, diastolic, sugar, pregnant) == first


def test_risk_factors_name_contributors():
    factors = risk_factors(150, 95, 210, True)
    assert factors == [
        "High blood pressure (150/95 mmHg)",
        "High blood sugar (210 mg/dL)",
        "Pregnancy",
    ]
    assert risk_factors(120, 80, 100, False) == []
    assert risk_factors(135, 80, 150, False) == [
        "Elevated blood pressure (135/80 mmHg)",
        "Elevated blood sugar (150 mg/dL)",
    ]


def test_recommended_action_for_every_tier():
    for tier in RISK_TIERS:
        assert recommended_action(tier)


def test_patient_assess_risk_prefers_stored_tier():
    stored = Patient(id="p1", name="A", age=30, risk_level=LOW,
                     blood_pressure=BloodPressure(systolic=180, diastolic=110), sugar_level=300)
    assert stored.assess_risk() == LOW

    computed = Patient(id="p2", name="B", age=30,
                       blood_pressure=BloodPressure(systolic=180, diastolic=110), sugar_level=300)
    assert computed.assess_risk() == HIGH
