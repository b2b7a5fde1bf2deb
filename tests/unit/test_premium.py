"""Test insurance premium estimation."""

import pytest

from conftest import BASE_TIME
from telematics_core.risk import premium
from telematics_core.risk.models import (
    BehaviorTrends,
    DriverProfile,
    DrivingHabits,
    DrivingHistory,
    RiskCategory,
    RiskFactorType,
    TimeOfDay,
    Trend,
    TrendDirection,
    ViolationRecord,
    ViolationType,
)


def make_profile(
    safety: float = 95.0,
    category: RiskCategory = RiskCategory.VERY_LOW,
    mileage: float = 4000.0,
    violations=(),
    aggressiveness: TrendDirection = TrendDirection.STABLE,
    speeding: TrendDirection = TrendDirection.STABLE,
    phone_usage: float = 0.0,
    preferred_times=(),
) -> DriverProfile:
    return DriverProfile(
        driver_id="driver-1",
        total_mileage=mileage,
        safety_rating=safety,
        risk_category=category,
        driving_history=DrivingHistory(
            violation_history=[
                ViolationRecord(timestamp=BASE_TIME, violation_type=v) for v in violations
            ]
        ),
        behavior_trends=BehaviorTrends(
            aggressiveness_trend=Trend(direction=aggressiveness),
            speeding_trend=Trend(direction=speeding),
        ),
        driving_habits=DrivingHabits(
            phone_usage_frequency=phone_usage,
            preferred_driving_times=list(preferred_times),
        ),
    )


class TestPremiumEstimate:
    """Test premium pricing."""

    def test_best_driver(self):
        """Test the best bands and the top discount."""
        estimate = premium.estimate_premium(make_profile())

        assert estimate.base_premium == 1200.0
        assert estimate.risk_multiplier == pytest.approx(0.8 * 0.85 * 0.9)
        assert estimate.estimated_premium == pytest.approx(734.4)
        assert estimate.discount_eligible is True
        assert estimate.discount_percentage == 25.0
        assert estimate.risk_factors == []
        assert estimate.recommendations == []

    def test_worst_driver(self):
        """Test the worst bands."""
        estimate = premium.estimate_premium(
            make_profile(safety=40.0, category=RiskCategory.VERY_HIGH, mileage=30000.0)
        )

        assert estimate.risk_multiplier == pytest.approx(1.5 * 1.6 * 1.2)
        assert estimate.estimated_premium == pytest.approx(1200.0 * 1.5 * 1.6 * 1.2)
        assert estimate.discount_eligible is False
        assert estimate.discount_percentage == 0.0

    def test_custom_base_premium(self):
        """Test the base premium is configurable."""
        estimate = premium.estimate_premium(make_profile(), base_premium=1000.0)
        assert estimate.estimated_premium == pytest.approx(612.0)

    def test_bands(self):
        """Test band edges."""
        assert premium.safety_multiplier(90.0) == 0.8
        assert premium.safety_multiplier(80.0) == 0.9
        assert premium.safety_multiplier(70.0) == 1.0
        assert premium.safety_multiplier(60.0) == 1.2
        assert premium.safety_multiplier(59.9) == 1.5

        assert premium.mileage_multiplier(4999.0) == 0.9
        assert premium.mileage_multiplier(5000.0) == 1.0
        assert premium.mileage_multiplier(15000.0) == 1.1
        assert premium.mileage_multiplier(25000.0) == 1.2


class TestDiscount:
    """Test discount eligibility."""

    def test_discount_tiers(self):
        """Test discount percentage tiers for eligible drivers."""
        assert premium.discount_percentage(make_profile(safety=91.0, category=RiskCategory.LOW)) == 20.0
        assert premium.discount_percentage(make_profile(safety=86.0, category=RiskCategory.LOW)) == 15.0

    def test_ineligible(self):
        """Test low ratings or high categories get no discount."""
        assert not premium.is_discount_eligible(make_profile(safety=84.0))
        assert not premium.is_discount_eligible(
            make_profile(safety=95.0, category=RiskCategory.MODERATE)
        )
        assert premium.discount_percentage(make_profile(safety=84.0)) == 0.0

    @pytest.mark.parametrize("category", list(RiskCategory))
    def test_eligibility_requires_safety(self, category):
        """Test eligibility always implies a safety rating of at least 85."""
        for rating in range(0, 101, 5):
            profile = make_profile(safety=float(rating), category=category)
            if premium.is_discount_eligible(profile):
                assert profile.safety_rating >= 85.0


class TestRiskFactors:
    """Test premium risk factors."""

    def test_violation_factors(self):
        """Test one factor per violation type weighted by count."""
        profile = make_profile(
            violations=[ViolationType.SPEEDING] * 3 + [ViolationType.PHONE_USAGE]
        )

        factors = {f.type: f for f in premium.premium_risk_factors(profile)}

        assert factors[RiskFactorType.SPEEDING].impact == -30.0
        assert factors[RiskFactorType.SPEEDING].frequency == 3
        assert factors[RiskFactorType.PHONE_USAGE].impact == -10.0

    def test_impact_is_bounded(self):
        """Test many violations saturate at -100."""
        profile = make_profile(violations=[ViolationType.SPEEDING] * 12)

        (factor,) = premium.premium_risk_factors(profile)

        assert factor.impact == -100.0
        assert factor.frequency == 12

    def test_declining_aggressiveness(self):
        """Test a declining aggressiveness trend adds a fixed factor."""
        profile = make_profile(aggressiveness=TrendDirection.DECLINING)

        (factor,) = premium.premium_risk_factors(profile)

        assert factor.type == RiskFactorType.AGGRESSIVE_ACCELERATION
        assert factor.impact == -15.0


class TestRecommendations:
    """Test rule-based recommendations."""

    def test_all_rules(self):
        """Test every recommendation rule fires."""
        profile = make_profile(
            safety=70.0,
            category=RiskCategory.MODERATE,
            speeding=TrendDirection.DECLINING,
            phone_usage=0.2,
            preferred_times=[TimeOfDay.NIGHT],
        )

        assert len(premium.recommendations(profile)) == 4

    def test_phone_usage_threshold(self):
        """Test phone usage must exceed 10% of trips."""
        assert premium.recommendations(make_profile(phone_usage=0.1)) == []
        assert len(premium.recommendations(make_profile(phone_usage=0.11))) == 1
