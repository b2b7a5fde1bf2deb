"""Test configuration and fixtures for telematics-core."""

from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from telematics_core.config import TelematicsSettings
from telematics_core.models import MotionSample, SensorKind
from telematics_core.risk.models import (
    DrivingEvent,
    DrivingEventType,
    EventSeverity,
    LocationData,
    TripScore,
    TripStatistics,
)

BASE_TIME = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)  # a Monday


class FakeClock:
    """Manually advanced clock returning seconds."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeDateTimeClock:
    """Manually advanced clock returning aware datetimes."""

    def __init__(self, start: datetime = BASE_TIME):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def test_settings() -> TelematicsSettings:
    """Create test settings."""
    return TelematicsSettings(environment="test", log_level="DEBUG")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def datetime_clock() -> FakeDateTimeClock:
    return FakeDateTimeClock()


def make_samples(
    kind: SensorKind,
    values: List[tuple],
    start: datetime = BASE_TIME,
    step: timedelta = timedelta(milliseconds=100),
) -> List[MotionSample]:
    """Build a time-ordered sample series from (x, y, z) tuples."""
    return [
        MotionSample(kind=kind, x=x, y=y, z=z, timestamp=start + i * step)
        for i, (x, y, z) in enumerate(values)
    ]


def constant_samples(kind: SensorKind, value: tuple, count: int, **kwargs) -> List[MotionSample]:
    return make_samples(kind, [value] * count, **kwargs)


@pytest.fixture
def sample_factory() -> Callable[..., List[MotionSample]]:
    return make_samples


def make_event(
    event_type: DrivingEventType = DrivingEventType.HARD_BRAKING,
    severity: EventSeverity = EventSeverity.MEDIUM,
    timestamp: datetime = BASE_TIME,
    **kwargs,
) -> DrivingEvent:
    return DrivingEvent(event_type=event_type, severity=severity, timestamp=timestamp, **kwargs)


def make_trip(
    overall: float = 80.0,
    safety: float = 80.0,
    smoothness: float = 80.0,
    compliance: float = 80.0,
    ended_at: datetime = BASE_TIME,
    distance_km: float = 10.0,
    duration_ms: int = 600_000,
    events: List[DrivingEvent] = None,
    start: LocationData = None,
    end: LocationData = None,
) -> TripScore:
    return TripScore(
        overall_score=overall,
        safety_score=safety,
        smoothness_score=smoothness,
        legal_compliance_score=compliance,
        events=events or [],
        trip_statistics=TripStatistics(
            total_distance=distance_km,
            total_duration_ms=duration_ms,
            ended_at=ended_at,
            start_location=start,
            end_location=end,
        ),
    )


@pytest.fixture
def trip_factory() -> Callable[..., TripScore]:
    return make_trip


@pytest.fixture
def event_factory() -> Callable[..., DrivingEvent]:
    return make_event
