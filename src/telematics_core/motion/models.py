"""Data models for motion fusion."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from telematics_core.models import Vector3, utc_now


class ActivityType(str, Enum):
    """Types of activities detected."""

    STILL = "still"
    WALKING = "walking"
    RUNNING = "running"
    CYCLING = "cycling"
    IN_VEHICLE = "in_vehicle"
    ON_FOOT = "on_foot"
    TILTING = "tilting"
    UNKNOWN = "unknown"


class ActivityClassification(BaseModel):
    """Activity assigned to the current motion window."""

    activity_type: ActivityType = ActivityType.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class MotionData(BaseModel):
    """Motion fusion result published once per tick."""

    timestamp: datetime = Field(default_factory=utc_now)

    acceleration_magnitude: float = Field(ge=0.0, description="Latest accelerometer magnitude (m/s²)")
    gyroscope_magnitude: float = Field(ge=0.0, description="Latest gyroscope magnitude (rad/s)")
    magnetic_field_magnitude: float = Field(default=0.0, ge=0.0, description="Latest magnetometer magnitude (µT)")

    acceleration: Vector3 = Field(default_factory=Vector3)
    gyroscope: Vector3 = Field(default_factory=Vector3)
    linear_acceleration: Vector3 = Field(default_factory=Vector3)
    gravity: Vector3 = Field(default_factory=Vector3)

    activity: ActivityClassification = Field(default_factory=ActivityClassification)

    step_count: int = Field(default=0, ge=0)
    step_frequency: float = Field(default=0.0, ge=0.0, description="Steps per minute")
    vehicle_speed: float = Field(default=0.0, ge=0.0, description="Estimated vehicle speed (m/s)")

    parking_alert: bool = Field(
        default=False,
        description="Movement seen while parked; the vehicle may be departing",
    )
