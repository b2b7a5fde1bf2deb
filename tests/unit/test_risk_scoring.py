"""Test real-time risk scoring."""

import pytest

from conftest import make_event, make_trip
from telematics_core.risk import scoring
from telematics_core.risk.models import DrivingEventType, EventSeverity


class TestImmediateRisk:
    """Test event-based immediate risk."""

    def test_no_events(self):
        """Test immediate risk is zero without events."""
        assert scoring.calculate_immediate_risk([]) == 0.0

    def test_weighted_severity(self):
        """Test a single event is scored against the worst case."""
        event = make_event(DrivingEventType.PHONE_USAGE, EventSeverity.CRITICAL)
        assert scoring.calculate_immediate_risk([event]) == pytest.approx(5 * 4 / 24 * 100)

    def test_capped_at_100(self):
        """Test the worst possible events give exactly 100."""
        events = [
            make_event(DrivingEventType.DISTRACTED_DRIVING, EventSeverity.CRITICAL)
            for _ in range(3)
        ]
        assert scoring.calculate_immediate_risk(events) == pytest.approx(100.0)

    def test_positive_events_carry_no_risk(self):
        """Test unweighted event types contribute nothing."""
        events = [
            make_event(DrivingEventType.SMOOTH_DRIVING, EventSeverity.LOW),
            make_event(DrivingEventType.ECO_DRIVING, EventSeverity.LOW),
        ]
        assert scoring.calculate_immediate_risk(events) == 0.0

    def test_mixed_events(self):
        """Test weights are normalised by the event count."""
        events = [
            make_event(DrivingEventType.HARD_BRAKING, EventSeverity.MEDIUM),
            make_event(DrivingEventType.SPEEDING, EventSeverity.HIGH),
        ]
        expected = (2 * 2 + 4 * 3) / (2 * 6 * 4) * 100
        assert scoring.calculate_immediate_risk(events) == pytest.approx(expected)


class TestHistoricalRisk:
    """Test trip-based historical risk."""

    def test_no_trips_is_neutral(self):
        """Test historical risk defaults to 50."""
        assert scoring.calculate_historical_risk([]) == 50.0

    def test_inverse_of_trip_scores(self):
        """Test historical risk is 100 minus the mean of trip sub-scores."""
        trips = [make_trip(safety=90.0, compliance=80.0, smoothness=70.0)]
        assert scoring.calculate_historical_risk(trips) == pytest.approx(20.0)

    def test_averages_over_trips(self):
        """Test sub-scores are averaged across trips."""
        trips = [
            make_trip(safety=100.0, compliance=100.0, smoothness=100.0),
            make_trip(safety=50.0, compliance=50.0, smoothness=50.0),
        ]
        assert scoring.calculate_historical_risk(trips) == pytest.approx(25.0)


class TestCombinedRisk:
    """Test the real-time blend."""

    def test_weights(self):
        """Test the 30/70 blend."""
        assert scoring.combine_risk(100.0, 50.0) == pytest.approx(65.0)
        assert scoring.combine_risk(0.0, 50.0) == pytest.approx(35.0)
