"""Test driver profile aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import BASE_TIME, make_event, make_trip
from telematics_core.risk import profile
from telematics_core.risk.models import (
    AccidentRecord,
    AccidentSeverity,
    BehaviorSnapshot,
    BehaviorTrends,
    DrivingEventType,
    DrivingHabits,
    DrivingHistory,
    EventSeverity,
    LocationData,
    RiskCategory,
    TimeOfDay,
    Trend,
    TrendDirection,
    ViolationType,
)


def snapshot(level: float) -> BehaviorSnapshot:
    return BehaviorSnapshot(
        safety_score=level,
        aggressiveness_level=level,
        attentiveness_level=level,
        compliance_level=level,
    )


def trends(direction: TrendDirection) -> BehaviorTrends:
    return BehaviorTrends(overall_safety_trend=Trend(direction=direction))


class TestDrivingHistory:
    """Test driving history construction."""

    def test_improvement_needs_ten_trips(self):
        """Test improvement trend is zero with fewer than 10 trips."""
        trips = [make_trip(overall=50.0)] * 9
        assert profile.calculate_improvement_trend(trips) == 0.0

    def test_improvement_trend(self):
        """Test last five trips against the five before them."""
        trips = [make_trip(overall=60.0)] * 5 + [make_trip(overall=80.0)] * 5
        assert profile.calculate_improvement_trend(trips) == pytest.approx(20.0)

    def test_violations_from_events(self):
        """Test only speeding and phone usage events become violations."""
        events = [
            make_event(DrivingEventType.SPEEDING),
            make_event(DrivingEventType.PHONE_USAGE),
            make_event(DrivingEventType.HARD_BRAKING),
        ]

        violations = profile.extract_violation_history(events)

        assert [v.violation_type for v in violations] == [
            ViolationType.SPEEDING,
            ViolationType.PHONE_USAGE,
        ]
        assert all(v.detected_by_telematics for v in violations)

    def test_history_totals(self):
        """Test trip totals and averages."""
        trips = [
            make_trip(overall=70.0, distance_km=12.0, duration_ms=1000),
            make_trip(overall=90.0, distance_km=8.0, duration_ms=3000),
        ]
        accidents = [AccidentRecord(severity=AccidentSeverity.MINOR)]

        history = profile.build_driving_history(trips, [], accidents)

        assert history.total_trips == 2
        assert history.total_distance == pytest.approx(20.0)
        assert history.total_driving_time_ms == 4000
        assert history.average_trip_score == pytest.approx(80.0)
        assert history.accident_history == accidents

    def test_empty_history(self):
        """Test an empty history has neutral values."""
        history = profile.build_driving_history([], [], [])
        assert history.total_trips == 0
        assert history.average_trip_score == 0.0


class TestTrends:
    """Test trend detection."""

    def test_calculate_trend_directions(self):
        """Test the two-point threshold."""
        improving = profile.calculate_trend([80.0], [70.0])
        assert improving.direction == TrendDirection.IMPROVING
        assert improving.thirty_day_change == pytest.approx(10.0)
        assert improving.six_month_change == pytest.approx(60.0)

        assert profile.calculate_trend([70.0], [80.0]).direction == TrendDirection.DECLINING
        assert profile.calculate_trend([80.0], [79.0]).direction == TrendDirection.STABLE

    def test_empty_older_window(self):
        """Test an empty comparison window reads as stable."""
        trend = profile.calculate_trend([80.0, 90.0], [])
        assert trend.current_value == pytest.approx(85.0)
        assert trend.thirty_day_change == 0.0
        assert trend.direction == TrendDirection.STABLE

    def test_behavior_trends_improving(self):
        """Test recent snapshots compared against the previous window."""
        snapshots = [snapshot(60.0)] * 30 + [snapshot(90.0)] * 30

        result = profile.calculate_behavior_trends(snapshots, window=30)

        assert result.speeding_trend.direction == TrendDirection.IMPROVING
        assert result.aggressiveness_trend.direction == TrendDirection.IMPROVING
        assert result.overall_safety_trend.current_value == pytest.approx(90.0)
        assert result.overall_safety_trend.thirty_day_change == pytest.approx(30.0)

    def test_behavior_trends_short_history(self):
        """Test a single window reports stable trends."""
        result = profile.calculate_behavior_trends([snapshot(60.0), snapshot(90.0)], window=30)
        assert result.overall_safety_trend.direction == TrendDirection.STABLE


class TestRiskCategory:
    """Test risk category and safety rating."""

    def test_categories(self):
        """Test category thresholds."""
        improving = trends(TrendDirection.IMPROVING)
        stable = trends(TrendDirection.STABLE)

        assert (
            profile.determine_risk_category(DrivingHistory(average_trip_score=95.0), improving)
            == RiskCategory.VERY_LOW
        )
        assert (
            profile.determine_risk_category(DrivingHistory(average_trip_score=85.0), stable)
            == RiskCategory.LOW
        )
        assert (
            profile.determine_risk_category(
                DrivingHistory(average_trip_score=85.0, improvement_trend=-5.0), stable
            )
            == RiskCategory.MODERATE
        )
        assert (
            profile.determine_risk_category(DrivingHistory(average_trip_score=65.0), stable)
            == RiskCategory.HIGH
        )
        assert (
            profile.determine_risk_category(DrivingHistory(average_trip_score=50.0), improving)
            == RiskCategory.HIGH
        )
        assert (
            profile.determine_risk_category(DrivingHistory(average_trip_score=50.0), stable)
            == RiskCategory.VERY_HIGH
        )

    def test_safety_rating_accident_penalty(self):
        """Test accidents lower the safety rating."""
        history = DrivingHistory(
            average_trip_score=90.0,
            accident_history=[
                AccidentRecord(severity=AccidentSeverity.SEVERE),
                AccidentRecord(severity=AccidentSeverity.MINOR),
            ],
        )
        assert profile.calculate_safety_rating(history) == pytest.approx(65.0)

    def test_safety_rating_floor(self):
        """Test the safety rating never goes negative."""
        history = DrivingHistory(
            average_trip_score=10.0,
            accident_history=[AccidentRecord(severity=AccidentSeverity.SEVERE)],
        )
        assert profile.calculate_safety_rating(history) == 0.0


class TestSnapshots:
    """Test behavior snapshots derived from trips."""

    def test_snapshot_from_trip(self):
        """Test trip events lower the matching behavior levels."""
        trip = make_trip(
            safety=80.0,
            smoothness=90.0,
            compliance=75.0,
            events=[
                make_event(DrivingEventType.HARD_BRAKING, EventSeverity.HIGH),
                make_event(DrivingEventType.PHONE_USAGE, EventSeverity.MEDIUM),
            ],
        )

        result = profile.snapshot_from_trip(trip)

        assert result.timestamp == BASE_TIME
        assert result.safety_score == 80.0
        assert result.aggressiveness_level == pytest.approx(85.0)
        assert result.attentiveness_level == pytest.approx(90.0)
        assert result.compliance_level == 75.0

    def test_clean_trip(self):
        """Test a trip without events keeps its smoothness."""
        result = profile.snapshot_from_trip(make_trip(smoothness=70.0))
        assert result.aggressiveness_level == pytest.approx(70.0)
        assert result.attentiveness_level == pytest.approx(100.0)


class TestDrivingHabits:
    """Test habit extraction."""

    def test_no_trips(self):
        """Test habits default when there is no history."""
        assert profile.analyze_driving_habits([]) == DrivingHabits()

    def test_habits(self):
        """Test time buckets, weekday share and event frequencies."""
        monday = datetime(2024, 3, 4, tzinfo=timezone.utc)
        trips = [
            make_trip(
                ended_at=monday + timedelta(hours=23),
                events=[make_event(DrivingEventType.PHONE_USAGE)],
            ),
            make_trip(
                ended_at=monday + timedelta(hours=23, minutes=30),
                events=[make_event(DrivingEventType.HARD_BRAKING)],
            ),
            make_trip(ended_at=monday + timedelta(days=1, hours=22, minutes=15)),
            make_trip(ended_at=monday + timedelta(days=5, hours=8)),
        ]

        habits = profile.analyze_driving_habits(trips)

        assert habits.preferred_driving_times == [TimeOfDay.NIGHT, TimeOfDay.MORNING_RUSH]
        assert habits.average_trip_distance == pytest.approx(10.0)
        assert habits.weekday_vs_weekend_ratio == pytest.approx(0.75)
        assert habits.phone_usage_frequency == pytest.approx(0.25)
        assert habits.speeding_tendency == 0.0
        assert habits.aggressiveness_factor == pytest.approx(0.5)


class TestRoutePatterns:
    """Test route clustering."""

    HOME = LocationData(latitude=52.5200, longitude=13.4050)
    NEAR_HOME = LocationData(latitude=52.5205, longitude=13.4055)
    WORK = LocationData(latitude=52.5000, longitude=13.4500)

    def test_clusters_by_endpoints(self):
        """Test trips with nearby endpoints share a route."""
        trips = [
            make_trip(overall=80.0, start=self.HOME, end=self.WORK, duration_ms=1000),
            make_trip(overall=60.0, start=self.NEAR_HOME, end=self.WORK, duration_ms=3000),
            make_trip(overall=90.0, start=self.WORK, end=self.HOME),
            make_trip(overall=90.0),
        ]

        routes = profile.analyze_route_patterns(trips, radius_meters=300.0)

        assert len(routes) == 2
        commute = routes[0]
        assert commute.frequency == 2
        assert commute.start_location == self.HOME
        assert commute.average_trip_time_ms == 2000
        assert commute.risk_level == pytest.approx(30.0)
        assert commute.familiarity_score == pytest.approx(0.2)
        assert routes[1].frequency == 1

    def test_tight_radius_splits_routes(self):
        """Test a small radius keeps nearby starts apart."""
        trips = [
            make_trip(start=self.HOME, end=self.WORK),
            make_trip(start=self.NEAR_HOME, end=self.WORK),
        ]
        assert len(profile.analyze_route_patterns(trips, radius_meters=10.0)) == 2

    def test_no_locations(self):
        """Test trips without endpoints produce no routes."""
        assert profile.analyze_route_patterns([make_trip()]) == []
