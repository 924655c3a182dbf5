"""
Risk classification

Coarse triage heuristic over blood pressure, blood sugar and pregnancy.
Not a clinical model. Every caller (store, stats, API) routes through
`classify` so there is exactly one copy of the thresholds.
"""
from typing import List, Literal

RiskTier = Literal["LOW", "MEDIUM", "HIGH"]

LOW: RiskTier = "LOW"
MEDIUM: RiskTier = "MEDIUM"
HIGH: RiskTier = "HIGH"

RISK_TIERS: List[RiskTier] = [LOW, MEDIUM, HIGH]

# Thresholds are exclusive (value must exceed them)
BP_SEVERE_SYSTOLIC = 140
BP_SEVERE_DIASTOLIC = 90
BP_ELEVATED_SYSTOLIC = 130
BP_ELEVATED_DIASTOLIC = 85
SUGAR_SEVERE = 200
SUGAR_ELEVATED = 140

# Tier cutoffs are inclusive
HIGH_SCORE = 3
MEDIUM_SCORE = 1

RECOMMENDED_ACTIONS = {
    HIGH: "Refer to the nearest health centre immediately and inform the ANM/medical officer",
    MEDIUM: "Schedule a follow-up visit within 7 days and recheck vitals",
    LOW: "Continue routine monitoring",
}


def _bp_points(systolic: int, diastolic: int) -> int:
    if systolic > BP_SEVERE_SYSTOLIC or diastolic > BP_SEVERE_DIASTOLIC:
        return 2
    if systolic > BP_ELEVATED_SYSTOLIC or diastolic > BP_ELEVATED_DIASTOLIC:
        return 1
    return 0


def _sugar_points(sugar: int) -> int:
    if sugar > SUGAR_SEVERE:
        return 2
    if sugar > SUGAR_ELEVATED:
        return 1
    return 0


def risk_score(systolic: int, diastolic: int, sugar: int, is_pregnant: bool) -> int:
    """
    Raw triage score (0-5)
    """
    score = _bp_points(systolic, diastolic) + _sugar_points(sugar)
    if is_pregnant:
        score += 1
    return score


def classify(systolic: int, diastolic: int, sugar: int, is_pregnant: bool) -> RiskTier:
    """
    Classify vitals into a risk tier

    Total over all integer inputs: zero or out-of-range values simply add
    nothing to the score.

    Args:
        systolic: Systolic blood pressure (mmHg)
        diastolic: Diastolic blood pressure (mmHg)
        sugar: Blood sugar (mg/dL)
        is_pregnant: Pregnancy flag

    Returns:
        "HIGH" for score >= 3, "MEDIUM" for score >= 1, otherwise "LOW"
    """
    score = risk_score(systolic, diastolic, sugar, is_pregnant)
    if score >= HIGH_SCORE:
        return HIGH
    if score >= MEDIUM_SCORE:
        return MEDIUM
    return LOW


def risk_factors(systolic: int, diastolic: int, sugar: int, is_pregnant: bool) -> List[str]:
    """
    Human-readable list of the factors that contributed to the score
    """
    factors = []
    bp_points = _bp_points(systolic, diastolic)
    if bp_points == 2:
        factors.append(f"High blood pressure ({systolic}/{diastolic} mmHg)")
    elif bp_points == 1:
        factors.append(f"Elevated blood pressure ({systolic}/{diastolic} mmHg)")

    sugar_points = _sugar_points(sugar)
    if sugar_points == 2:
        factors.append(f"High blood sugar ({sugar} mg/dL)")
    elif sugar_points == 1:
        factors.append(f"Elevated blood sugar ({sugar} mg/dL)")

    if is_pregnant:
        factors.append("Pregnancy")
    return factors


def recommended_action(tier: RiskTier) -> str:
    return RECOMMENDED_ACTIONS[tier]
