"""Driver profile aggregation: history, trends, habits and routes."""

from collections import Counter
from typing import Dict, List, Sequence

import numpy as np
from geopy.distance import distance

from telematics_core.risk.models import (
    AccidentRecord,
    AccidentSeverity,
    BehaviorSnapshot,
    BehaviorTrends,
    DriverProfile,
    DrivingEvent,
    DrivingEventType,
    DrivingHabits,
    DrivingHistory,
    RiskCategory,
    RoutePattern,
    TimeOfDay,
    Trend,
    TrendDirection,
    TripScore,
    ViolationRecord,
    ViolationType,
)

TREND_THRESHOLD = 2.0
IMPROVEMENT_MIN_TRIPS = 10
IMPROVEMENT_WINDOW = 5

ACCIDENT_PENALTIES = {
    AccidentSeverity.SEVERE: 20.0,
    AccidentSeverity.MAJOR: 15.0,
    AccidentSeverity.MODERATE: 10.0,
    AccidentSeverity.MINOR: 5.0,
}

VIOLATION_EVENTS = {
    DrivingEventType.SPEEDING: ViolationType.SPEEDING,
    DrivingEventType.PHONE_USAGE: ViolationType.PHONE_USAGE,
}

AGGRESSIVE_EVENTS = {
    DrivingEventType.HARD_BRAKING,
    DrivingEventType.RAPID_ACCELERATION,
    DrivingEventType.HARSH_CORNERING,
    DrivingEventType.AGGRESSIVE_DRIVING,
}

DISTRACTION_EVENTS = {
    DrivingEventType.PHONE_USAGE,
    DrivingEventType.DISTRACTED_DRIVING,
    DrivingEventType.FATIGUE_DETECTED,
}

# Behavior level points lost per severity step of a matching event
SNAPSHOT_EVENT_PENALTY = 5.0


def _clamp_score(value: float) -> float:
    return float(min(100.0, max(0.0, value)))


def _mean(values: Sequence[float], default: float = 0.0) -> float:
    return float(np.mean(values)) if len(values) else default


def extract_violation_history(events: Sequence[DrivingEvent]) -> List[ViolationRecord]:
    return [
        ViolationRecord(
            timestamp=event.timestamp,
            violation_type=VIOLATION_EVENTS[event.event_type],
            location=event.location,
            detected_by_telematics=True,
        )
        for event in events
        if event.event_type in VIOLATION_EVENTS
    ]


def calculate_improvement_trend(trips: Sequence[TripScore]) -> float:
    """Mean overall score of the last 5 trips minus that of the 5 before."""
    if len(trips) < IMPROVEMENT_MIN_TRIPS:
        return 0.0

    recent = trips[-IMPROVEMENT_WINDOW:]
    older = trips[-2 * IMPROVEMENT_WINDOW : -IMPROVEMENT_WINDOW]
    return _mean([t.overall_score for t in recent]) - _mean([t.overall_score for t in older])


def build_driving_history(
    trips: Sequence[TripScore],
    events: Sequence[DrivingEvent],
    accidents: Sequence[AccidentRecord],
) -> DrivingHistory:
    return DrivingHistory(
        total_trips=len(trips),
        total_distance=float(sum(t.trip_statistics.total_distance for t in trips)),
        total_driving_time_ms=sum(t.trip_statistics.total_duration_ms for t in trips),
        accident_history=list(accidents),
        violation_history=extract_violation_history(events),
        average_trip_score=_mean([t.overall_score for t in trips]),
        improvement_trend=calculate_improvement_trend(trips),
    )


def calculate_trend(recent: Sequence[float], older: Sequence[float]) -> Trend:
    recent_avg = _mean(recent)
    older_avg = _mean(older, default=recent_avg)

    change = recent_avg - older_avg
    if change > TREND_THRESHOLD:
        direction = TrendDirection.IMPROVING
    elif change < -TREND_THRESHOLD:
        direction = TrendDirection.DECLINING
    else:
        direction = TrendDirection.STABLE

    return Trend(
        current_value=recent_avg,
        thirty_day_change=change,
        six_month_change=change * 6,
        direction=direction,
    )


def calculate_behavior_trends(
    snapshots: Sequence[BehaviorSnapshot], window: int = 30
) -> BehaviorTrends:
    """Compare the latest ``window`` snapshots against the ``window`` before them."""
    recent = list(snapshots[-window:])
    older = list(snapshots[:-window][-window:]) if len(snapshots) > window else []

    def trend(field) -> Trend:
        return calculate_trend([field(s) for s in recent], [field(s) for s in older])

    return BehaviorTrends(
        speeding_trend=trend(lambda s: s.compliance_level),
        aggressiveness_trend=trend(lambda s: s.aggressiveness_level),
        smoothness_trend=trend(lambda s: s.safety_score),
        attentiveness_trend=trend(lambda s: s.attentiveness_level),
        overall_safety_trend=trend(lambda s: (s.safety_score + s.compliance_level) / 2.0),
    )


def determine_risk_category(history: DrivingHistory, trends: BehaviorTrends) -> RiskCategory:
    score = history.average_trip_score
    improving = trends.overall_safety_trend.direction == TrendDirection.IMPROVING

    if score >= 90.0 and improving:
        return RiskCategory.VERY_LOW
    if score >= 80.0 and history.improvement_trend >= 0.0:
        return RiskCategory.LOW
    if score >= 70.0:
        return RiskCategory.MODERATE
    if score >= 60.0 or improving:
        return RiskCategory.HIGH
    return RiskCategory.VERY_HIGH


def calculate_safety_rating(history: DrivingHistory) -> float:
    penalty = sum(ACCIDENT_PENALTIES[a.severity] for a in history.accident_history)
    return _clamp_score(history.average_trip_score - penalty)


def snapshot_from_trip(trip: TripScore) -> BehaviorSnapshot:
    """Summarize a finished trip as a behavior snapshot."""
    aggressive = sum(int(e.severity) for e in trip.events if e.event_type in AGGRESSIVE_EVENTS)
    distracted = sum(int(e.severity) for e in trip.events if e.event_type in DISTRACTION_EVENTS)

    return BehaviorSnapshot(
        timestamp=trip.ended_at,
        safety_score=trip.safety_score,
        aggressiveness_level=_clamp_score(
            min(trip.smoothness_score, 100.0 - aggressive * SNAPSHOT_EVENT_PENALTY)
        ),
        attentiveness_level=_clamp_score(100.0 - distracted * SNAPSHOT_EVENT_PENALTY),
        compliance_level=trip.legal_compliance_score,
    )


def _share(trips: Sequence[TripScore], event_type: DrivingEventType) -> float:
    if not trips:
        return 0.0
    hits = sum(1 for t in trips if any(e.event_type == event_type for e in t.events))
    return hits / len(trips)


def analyze_driving_habits(trips: Sequence[TripScore]) -> DrivingHabits:
    """Habits from trip end times and the events recorded on each trip.

    Time-of-day buckets use the hour in the timezone the trip end time carries.
    """
    if not trips:
        return DrivingHabits()

    buckets = Counter(TimeOfDay.from_hour(t.ended_at.hour) for t in trips)
    events = [e for t in trips for e in t.events]
    aggressive = sum(1 for e in events if e.event_type in AGGRESSIVE_EVENTS)

    return DrivingHabits(
        preferred_driving_times=[bucket for bucket, _ in buckets.most_common(2)],
        average_trip_distance=_mean([t.trip_statistics.total_distance for t in trips]),
        weekday_vs_weekend_ratio=sum(1 for t in trips if t.ended_at.weekday() < 5) / len(trips),
        phone_usage_frequency=_share(trips, DrivingEventType.PHONE_USAGE),
        speeding_tendency=_share(trips, DrivingEventType.SPEEDING),
        aggressiveness_factor=aggressive / len(events) if events else 0.0,
    )


def analyze_route_patterns(
    trips: Sequence[TripScore], radius_meters: float = 300.0
) -> List[RoutePattern]:
    """Group trips whose start and end points both lie within ``radius_meters``."""
    clusters: List[Dict] = []

    for trip in trips:
        stats = trip.trip_statistics
        if stats.start_location is None or stats.end_location is None:
            continue

        for cluster in clusters:
            if (
                distance(cluster["start"].point, stats.start_location.point).meters <= radius_meters
                and distance(cluster["end"].point, stats.end_location.point).meters <= radius_meters
            ):
                cluster["trips"].append(trip)
                break
        else:
            clusters.append(
                {"start": stats.start_location, "end": stats.end_location, "trips": [trip]}
            )

    patterns = []
    for index, cluster in enumerate(clusters, start=1):
        members = cluster["trips"]
        patterns.append(
            RoutePattern(
                route_id=f"route-{index}",
                start_location=cluster["start"],
                end_location=cluster["end"],
                frequency=len(members),
                average_trip_time_ms=int(_mean([t.trip_statistics.total_duration_ms for t in members])),
                risk_level=_clamp_score(100.0 - _mean([t.overall_score for t in members])),
                familiarity_score=min(1.0, len(members) / 10.0),
            )
        )

    return sorted(patterns, key=lambda p: p.frequency, reverse=True)


def build_profile(
    driver_id: str,
    window_trips: Sequence[TripScore],
    window_events: Sequence[DrivingEvent],
    accidents: Sequence[AccidentRecord],
    snapshots: Sequence[BehaviorSnapshot],
    all_trips: Sequence[TripScore],
    trend_window: int = 30,
    route_radius_meters: float = 300.0,
) -> DriverProfile:
    """Recompute the whole profile; habits and routes use the full trip history."""
    history = build_driving_history(window_trips, window_events, accidents)
    trends = calculate_behavior_trends(snapshots, trend_window)

    return DriverProfile(
        driver_id=driver_id,
        total_mileage=history.total_distance,
        safety_rating=calculate_safety_rating(history),
        risk_category=determine_risk_category(history, trends),
        driving_history=history,
        behavior_trends=trends,
        preferred_routes=analyze_route_patterns(all_trips, route_radius_meters),
        driving_habits=analyze_driving_habits(all_trips),
    )
