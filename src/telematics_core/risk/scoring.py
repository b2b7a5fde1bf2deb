"""Real-time risk scoring."""

from typing import Sequence

import numpy as np

from telematics_core.risk.models import DrivingEvent, DrivingEventType, TripScore

EVENT_RISK_WEIGHTS = {
    DrivingEventType.HARD_BRAKING: 2,
    DrivingEventType.RAPID_ACCELERATION: 2,
    DrivingEventType.HARSH_CORNERING: 3,
    DrivingEventType.SPEEDING: 4,
    DrivingEventType.PHONE_USAGE: 5,
    DrivingEventType.DISTRACTED_DRIVING: 6,
    DrivingEventType.AGGRESSIVE_DRIVING: 4,
}

MAX_EVENT_WEIGHT = 6
MAX_SEVERITY = 4
NEUTRAL_HISTORICAL_RISK = 50.0
IMMEDIATE_WEIGHT = 0.3
HISTORICAL_WEIGHT = 0.7


def calculate_immediate_risk(events: Sequence[DrivingEvent]) -> float:
    """Weighted event severity as a percentage of the worst possible total."""
    if not events:
        return 0.0

    points = sum(
        int(event.severity) * EVENT_RISK_WEIGHTS.get(event.event_type, 0) for event in events
    )
    max_points = len(events) * MAX_EVENT_WEIGHT * MAX_SEVERITY
    return min(100.0, points / max_points * 100.0)


def calculate_historical_risk(trips: Sequence[TripScore]) -> float:
    """Inverse of the mean safety, compliance and smoothness scores."""
    if not trips:
        return NEUTRAL_HISTORICAL_RISK

    safety = np.mean([t.safety_score for t in trips])
    compliance = np.mean([t.legal_compliance_score for t in trips])
    smoothness = np.mean([t.smoothness_score for t in trips])
    return float(100.0 - (safety + compliance + smoothness) / 3.0)


def combine_risk(immediate: float, historical: float) -> float:
    return immediate * IMMEDIATE_WEIGHT + historical * HISTORICAL_WEIGHT
