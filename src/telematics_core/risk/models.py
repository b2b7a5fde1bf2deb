"""Data models for risk assessment and insurance pricing."""

import uuid
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from telematics_core.models import ensure_utc, utc_now


class LocationData(BaseModel):
    """Fused location fix."""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    altitude: Optional[float] = Field(default=None, description="Meters above sea level")
    speed: Optional[float] = Field(default=None, description="Speed in m/s")
    accuracy: Optional[float] = Field(default=None, description="Accuracy in meters")
    bearing: Optional[float] = Field(default=None, description="Bearing in degrees")
    provider: str = "fused"
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def point(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)


class DrivingEventType(str, Enum):
    HARD_BRAKING = "hard_braking"
    RAPID_ACCELERATION = "rapid_acceleration"
    HARSH_CORNERING = "harsh_cornering"
    SPEEDING = "speeding"
    PHONE_USAGE = "phone_usage"
    DISTRACTED_DRIVING = "distracted_driving"
    FATIGUE_DETECTED = "fatigue_detected"
    AGGRESSIVE_DRIVING = "aggressive_driving"
    SMOOTH_DRIVING = "smooth_driving"
    ECO_DRIVING = "eco_driving"


class EventSeverity(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class WeatherConditions(str, Enum):
    CLEAR = "clear"
    RAIN = "rain"
    SNOW = "snow"
    FOG = "fog"
    ICE = "ice"
    STORM = "storm"


class TrafficDensity(str, Enum):
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"
    CONGESTED = "congested"


class RoadType(str, Enum):
    HIGHWAY = "highway"
    ARTERIAL = "arterial"
    RESIDENTIAL = "residential"
    PARKING_LOT = "parking_lot"
    UNKNOWN = "unknown"


class TimeOfDay(str, Enum):
    EARLY_MORNING = "early_morning"
    MORNING_RUSH = "morning_rush"
    MIDDAY = "midday"
    EVENING_RUSH = "evening_rush"
    EVENING = "evening"
    NIGHT = "night"

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        for bucket, (start, end) in TIME_OF_DAY_HOURS.items():
            if start <= hour < end:
                return bucket
        raise ValueError(f"hour out of range: {hour}")


TIME_OF_DAY_HOURS: Dict[TimeOfDay, Tuple[int, int]] = {
    TimeOfDay.EARLY_MORNING: (0, 6),
    TimeOfDay.MORNING_RUSH: (6, 10),
    TimeOfDay.MIDDAY: (10, 15),
    TimeOfDay.EVENING_RUSH: (15, 19),
    TimeOfDay.EVENING: (19, 22),
    TimeOfDay.NIGHT: (22, 24),
}


class EventContext(BaseModel):
    weather_conditions: Optional[WeatherConditions] = None
    traffic_density: TrafficDensity = TrafficDensity.MODERATE
    road_type: RoadType = RoadType.UNKNOWN
    time_of_day: TimeOfDay = TimeOfDay.MIDDAY
    is_rush_hour: bool = False
    school_zone: bool = False
    construction_zone: bool = False


class DrivingEvent(BaseModel):
    """Classified driving event from the external event detector."""

    event_type: DrivingEventType
    severity: EventSeverity
    timestamp: datetime = Field(default_factory=utc_now)
    location: Optional[LocationData] = None
    speed: float = Field(default=0.0, description="Speed in m/s")
    acceleration: float = Field(default=0.0, description="Peak acceleration in m/s²")
    duration_ms: int = Field(default=0, ge=0)
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    context: EventContext = Field(default_factory=EventContext)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class RiskFactorType(str, Enum):
    SPEEDING = "speeding"
    AGGRESSIVE_ACCELERATION = "aggressive_acceleration"
    HARD_BRAKING = "hard_braking"
    DISTRACTED_DRIVING = "distracted_driving"
    NIGHT_DRIVING = "night_driving"
    WEATHER_CONDITIONS = "weather_conditions"
    HIGH_TRAFFIC_AREAS = "high_traffic_areas"
    FATIGUE_INDICATORS = "fatigue_indicators"
    PHONE_USAGE = "phone_usage"
    ROUTE_FAMILIARITY = "route_familiarity"


class RiskFactor(BaseModel):
    type: RiskFactorType
    impact: float = Field(ge=-100.0, le=100.0)
    frequency: int = Field(default=1, ge=0)
    description: str = ""


class TripStatistics(BaseModel):
    total_distance: float = Field(default=0.0, ge=0.0, description="Distance in km")
    total_duration_ms: int = Field(default=0, ge=0)
    average_speed: float = Field(default=0.0, ge=0.0, description="km/h")
    max_speed: float = Field(default=0.0, ge=0.0, description="km/h")
    speeding_duration_ms: int = Field(default=0, ge=0)
    idle_time_ms: int = Field(default=0, ge=0)
    fuel_efficiency_score: float = 0.0
    night_driving_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    high_risk_road_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    started_at: Optional[datetime] = None
    ended_at: datetime = Field(default_factory=utc_now)
    start_location: Optional[LocationData] = None
    end_location: Optional[LocationData] = None

    @field_validator("started_at", "ended_at")
    @classmethod
    def _timestamps_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None


class TripScore(BaseModel):
    """Completed trip scoring from the external event detector."""

    trip_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    overall_score: float = Field(ge=0.0, le=100.0)
    safety_score: float = Field(ge=0.0, le=100.0)
    efficiency_score: float = Field(default=0.0, ge=0.0, le=100.0)
    smoothness_score: float = Field(ge=0.0, le=100.0)
    legal_compliance_score: float = Field(ge=0.0, le=100.0)
    events: List[DrivingEvent] = Field(default_factory=list)
    trip_statistics: TripStatistics = Field(default_factory=TripStatistics)
    risk_factors: List[RiskFactor] = Field(default_factory=list)

    @property
    def ended_at(self) -> datetime:
        return self.trip_statistics.ended_at


class RiskCategory(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"


class AccidentSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"
    SEVERE = "severe"


class FaultDetermination(str, Enum):
    AT_FAULT = "at_fault"
    NOT_AT_FAULT = "not_at_fault"
    PARTIAL_FAULT = "partial_fault"
    DISPUTED = "disputed"
    UNKNOWN = "unknown"


class AccidentRecord(BaseModel):
    timestamp: datetime = Field(default_factory=utc_now)
    severity: AccidentSeverity
    fault_determination: FaultDetermination = FaultDetermination.UNKNOWN
    damage_amount: Optional[float] = None
    location: Optional[LocationData] = None
    contributing_factors: List[str] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ViolationType(str, Enum):
    SPEEDING = "speeding"
    RECKLESS_DRIVING = "reckless_driving"
    PHONE_USAGE = "phone_usage"
    RUNNING_RED_LIGHT = "running_red_light"
    IMPROPER_LANE_CHANGE = "improper_lane_change"
    TAILGATING = "tailgating"
    PARKING_VIOLATION = "parking_violation"


class ViolationRecord(BaseModel):
    timestamp: datetime
    violation_type: ViolationType
    fine_amount: Optional[float] = None
    location: Optional[LocationData] = None
    detected_by_telematics: bool = True


class DrivingHistory(BaseModel):
    total_trips: int = 0
    total_distance: float = 0.0
    total_driving_time_ms: int = 0
    accident_history: List[AccidentRecord] = Field(default_factory=list)
    violation_history: List[ViolationRecord] = Field(default_factory=list)
    average_trip_score: float = 0.0
    improvement_trend: float = Field(default=0.0, description="Positive = improving")


class TrendDirection(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class Trend(BaseModel):
    current_value: float = 0.0
    thirty_day_change: float = 0.0
    six_month_change: float = 0.0
    direction: TrendDirection = TrendDirection.STABLE


class BehaviorTrends(BaseModel):
    speeding_trend: Trend = Field(default_factory=Trend)
    aggressiveness_trend: Trend = Field(default_factory=Trend)
    smoothness_trend: Trend = Field(default_factory=Trend)
    attentiveness_trend: Trend = Field(default_factory=Trend)
    overall_safety_trend: Trend = Field(default_factory=Trend)


class RoutePattern(BaseModel):
    route_id: str
    start_location: LocationData
    end_location: LocationData
    frequency: int = Field(ge=1)
    average_trip_time_ms: int = Field(ge=0)
    risk_level: float = Field(ge=0.0, le=100.0)
    familiarity_score: float = Field(ge=0.0, le=1.0)


class DrivingHabits(BaseModel):
    preferred_driving_times: List[TimeOfDay] = Field(default_factory=list)
    average_trip_distance: float = 0.0
    weekday_vs_weekend_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    phone_usage_frequency: float = Field(default=0.0, ge=0.0, le=1.0)
    speeding_tendency: float = Field(default=0.0, ge=0.0, le=1.0)
    aggressiveness_factor: float = Field(default=0.0, ge=0.0, le=1.0)


class DriverProfile(BaseModel):
    driver_id: str
    total_mileage: float = Field(ge=0.0)
    safety_rating: float = Field(ge=0.0, le=100.0)
    risk_category: RiskCategory
    driving_history: DrivingHistory = Field(default_factory=DrivingHistory)
    behavior_trends: BehaviorTrends = Field(default_factory=BehaviorTrends)
    preferred_routes: List[RoutePattern] = Field(default_factory=list)
    driving_habits: DrivingHabits = Field(default_factory=DrivingHabits)


class InsurancePremiumEstimate(BaseModel):
    base_premium: float = Field(gt=0.0)
    risk_multiplier: float = Field(gt=0.0)
    estimated_premium: float = Field(gt=0.0)
    discount_eligible: bool = False
    discount_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    risk_factors: List[RiskFactor] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class BehaviorSnapshot(BaseModel):
    """Point-in-time behavior summary; every level is 0-100, higher is better."""

    timestamp: datetime = Field(default_factory=utc_now)
    safety_score: float = Field(ge=0.0, le=100.0)
    aggressiveness_level: float = Field(ge=0.0, le=100.0)
    attentiveness_level: float = Field(ge=0.0, le=100.0)
    compliance_level: float = Field(ge=0.0, le=100.0)
