"""Risk assessment engine."""

import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Deque, List, Optional

import structlog

from telematics_core.channels import LatestValueChannel
from telematics_core.config import TelematicsSettings, settings as default_settings
from telematics_core.engine import PeriodicEngine
from telematics_core.models import utc_now
from telematics_core.risk import profile as profiles
from telematics_core.risk import scoring
from telematics_core.risk.models import (
    AccidentRecord,
    BehaviorSnapshot,
    DriverProfile,
    DrivingEvent,
    EventSeverity,
    InsurancePremiumEstimate,
    TripScore,
)
from telematics_core.risk.premium import estimate_premium

logger = structlog.get_logger(__name__)


class RiskAssessmentEngine(PeriodicEngine):
    """Accumulates driving history and derives risk, profile and premium.

    History survives ``stop``/``start`` and is only dropped by
    ``clear_history``. Readers work on copies taken under the history lock.
    """

    name = "risk"
    tick_on_start = True

    def __init__(
        self,
        driver_id: str = "local-driver",
        settings: Optional[TelematicsSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__()
        self.driver_id = driver_id
        self.settings = settings or default_settings
        self._clock = clock or utc_now

        self._lock = threading.RLock()
        self._trips: Deque[TripScore] = deque(maxlen=self.settings.trip_history_size)
        self._events: Deque[DrivingEvent] = deque(maxlen=self.settings.event_history_size)
        self._accidents: Deque[AccidentRecord] = deque(
            maxlen=self.settings.accident_history_size
        )
        self._snapshots: Deque[BehaviorSnapshot] = deque(
            maxlen=self.settings.behavior_history_size
        )

        self.risk_score: LatestValueChannel[float] = LatestValueChannel("risk_score")
        self.driver_profile: LatestValueChannel[DriverProfile] = LatestValueChannel(
            "driver_profile"
        )
        self.premium_estimate: LatestValueChannel[InsurancePremiumEstimate] = LatestValueChannel(
            "premium_estimate"
        )

    @property
    def trips(self) -> List[TripScore]:
        with self._lock:
            return list(self._trips)

    @property
    def events(self) -> List[DrivingEvent]:
        with self._lock:
            return list(self._events)

    @property
    def accidents(self) -> List[AccidentRecord]:
        with self._lock:
            return list(self._accidents)

    @property
    def snapshots(self) -> List[BehaviorSnapshot]:
        with self._lock:
            return list(self._snapshots)

    def interval_seconds(self) -> float:
        return self.settings.risk_profile_refresh_hours * 3600.0

    def tick(self) -> None:
        self.update_risk_score()
        self.refresh_profile()

    def add_trip_score(self, trip: TripScore) -> None:
        """Record a completed trip and recompute the real-time risk score."""
        with self._lock:
            self._trips.append(trip)
            self._events.extend(trip.events)
            self._snapshots.append(profiles.snapshot_from_trip(trip))

        logger.info(
            "Trip recorded",
            trip_id=trip.trip_id,
            overall_score=round(trip.overall_score, 1),
            events=len(trip.events),
        )
        self.update_risk_score()

    def add_driving_event(self, event: DrivingEvent) -> None:
        with self._lock:
            self._events.append(event)

        if event.severity == EventSeverity.CRITICAL:
            logger.warning("Critical driving event", event_type=event.event_type.value)
            self.update_risk_score()

    def add_accident_record(self, record: AccidentRecord) -> None:
        with self._lock:
            self._accidents.append(record)
        logger.info("Accident recorded", severity=record.severity.value)

    def record_behavior_snapshot(self, snapshot: BehaviorSnapshot) -> None:
        with self._lock:
            self._snapshots.append(snapshot)

    def clear_history(self) -> None:
        with self._lock:
            self._trips.clear()
            self._events.clear()
            self._accidents.clear()
            self._snapshots.clear()
        logger.info("Risk history cleared", driver_id=self.driver_id)

    def _trips_since(self, cutoff: datetime) -> List[TripScore]:
        return [t for t in self.trips if t.ended_at >= cutoff]

    def _events_since(self, cutoff: datetime) -> List[DrivingEvent]:
        return [e for e in self.events if e.timestamp >= cutoff]

    def update_risk_score(self) -> float:
        """Blend immediate event risk with historical trip risk and publish it."""
        now = self._clock()
        immediate = scoring.calculate_immediate_risk(
            self._events_since(now - timedelta(hours=self.settings.risk_immediate_window_hours))
        )
        historical = scoring.calculate_historical_risk(
            self._trips_since(now - timedelta(days=self.settings.risk_analysis_window_days))
        )
        score = scoring.combine_risk(immediate, historical)

        logger.debug(
            "Risk score updated",
            immediate=round(immediate, 2),
            historical=round(historical, 2),
            score=round(score, 2),
        )
        self.risk_score.publish(score)
        return score

    def build_profile(self) -> DriverProfile:
        cutoff = self._clock() - timedelta(days=self.settings.risk_analysis_window_days)
        return profiles.build_profile(
            driver_id=self.driver_id,
            window_trips=self._trips_since(cutoff),
            window_events=self._events_since(cutoff),
            accidents=self.accidents,
            snapshots=self.snapshots,
            all_trips=self.trips,
            trend_window=self.settings.behavior_trend_window,
            route_radius_meters=self.settings.route_cluster_radius_m,
        )

    def refresh_profile(self) -> DriverProfile:
        """Rebuild the driver profile and premium estimate and publish both."""
        profile = self.build_profile()
        premium = estimate_premium(profile, self.settings.base_premium)

        self.driver_profile.publish(profile)
        self.premium_estimate.publish(premium)

        logger.info(
            "Driver profile refreshed",
            driver_id=self.driver_id,
            safety_rating=round(profile.safety_rating, 1),
            risk_category=profile.risk_category.value,
            estimated_premium=round(premium.estimated_premium, 2),
        )
        return profile
