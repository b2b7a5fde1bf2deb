"""Insurance premium estimation from a driver profile."""

from collections import Counter
from typing import List

from telematics_core.risk.models import (
    DriverProfile,
    InsurancePremiumEstimate,
    RiskCategory,
    RiskFactor,
    RiskFactorType,
    TimeOfDay,
    TrendDirection,
    ViolationType,
)

DEFAULT_BASE_PREMIUM = 1200.0

CATEGORY_MULTIPLIERS = {
    RiskCategory.VERY_LOW: 0.85,
    RiskCategory.LOW: 0.95,
    RiskCategory.MODERATE: 1.0,
    RiskCategory.HIGH: 1.3,
    RiskCategory.VERY_HIGH: 1.6,
}

VIOLATION_FACTORS = {
    ViolationType.SPEEDING: RiskFactorType.SPEEDING,
    ViolationType.PHONE_USAGE: RiskFactorType.PHONE_USAGE,
    ViolationType.RECKLESS_DRIVING: RiskFactorType.AGGRESSIVE_ACCELERATION,
    ViolationType.TAILGATING: RiskFactorType.AGGRESSIVE_ACCELERATION,
}

VIOLATION_IMPACT = -10.0
AGGRESSIVENESS_IMPACT = -15.0
PHONE_USAGE_LIMIT = 0.1


def safety_multiplier(safety_rating: float) -> float:
    if safety_rating >= 90.0:
        return 0.8
    if safety_rating >= 80.0:
        return 0.9
    if safety_rating >= 70.0:
        return 1.0
    if safety_rating >= 60.0:
        return 1.2
    return 1.5


def mileage_multiplier(mileage: float) -> float:
    if mileage < 5000.0:
        return 0.9
    if mileage < 15000.0:
        return 1.0
    if mileage < 25000.0:
        return 1.1
    return 1.2


def is_discount_eligible(profile: DriverProfile) -> bool:
    return profile.safety_rating >= 85.0 and profile.risk_category in (
        RiskCategory.VERY_LOW,
        RiskCategory.LOW,
    )


def discount_percentage(profile: DriverProfile) -> float:
    if not is_discount_eligible(profile):
        return 0.0
    if profile.safety_rating >= 95.0:
        return 25.0
    if profile.safety_rating >= 90.0:
        return 20.0
    return 15.0


def premium_risk_factors(profile: DriverProfile) -> List[RiskFactor]:
    factors = []

    counts = Counter(v.violation_type for v in profile.driving_history.violation_history)
    for violation_type, count in counts.items():
        factors.append(
            RiskFactor(
                type=VIOLATION_FACTORS.get(violation_type, RiskFactorType.SPEEDING),
                impact=max(-100.0, VIOLATION_IMPACT * count),
                frequency=count,
                description=f"{count} {violation_type.value.replace('_', ' ')} violations",
            )
        )

    if profile.behavior_trends.aggressiveness_trend.direction == TrendDirection.DECLINING:
        factors.append(
            RiskFactor(
                type=RiskFactorType.AGGRESSIVE_ACCELERATION,
                impact=AGGRESSIVENESS_IMPACT,
                frequency=1,
                description="Increasing aggressive driving behavior",
            )
        )

    return factors


def recommendations(profile: DriverProfile) -> List[str]:
    advice = []

    if profile.safety_rating < 80.0:
        advice.append("Focus on smoother acceleration and braking to improve your safety score")

    if profile.behavior_trends.speeding_trend.direction == TrendDirection.DECLINING:
        advice.append("Monitor your speed more closely to avoid speeding violations")

    if profile.driving_habits.phone_usage_frequency > PHONE_USAGE_LIMIT:
        advice.append("Reduce phone usage while driving to lower your risk profile")

    if TimeOfDay.NIGHT in profile.driving_habits.preferred_driving_times:
        advice.append("Consider avoiding night driving when possible to reduce risk")

    return advice


def estimate_premium(
    profile: DriverProfile, base_premium: float = DEFAULT_BASE_PREMIUM
) -> InsurancePremiumEstimate:
    """Price a profile: base premium times safety, category and mileage bands."""
    multiplier = (
        safety_multiplier(profile.safety_rating)
        * CATEGORY_MULTIPLIERS[profile.risk_category]
        * mileage_multiplier(profile.total_mileage)
    )

    return InsurancePremiumEstimate(
        base_premium=base_premium,
        risk_multiplier=multiplier,
        estimated_premium=base_premium * multiplier,
        discount_eligible=is_discount_eligible(profile),
        discount_percentage=discount_percentage(profile),
        risk_factors=premium_risk_factors(profile),
        recommendations=recommendations(profile),
    )
