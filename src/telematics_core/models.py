"""Sensor sample models shared by the motion and driver engines."""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


class SensorKind(str, Enum):
    """Sensor that produced a sample."""

    ACCELEROMETER = "accelerometer"
    GYROSCOPE = "gyroscope"
    MAGNETOMETER = "magnetometer"
    GRAVITY = "gravity"
    LINEAR_ACCELERATION = "linear_acceleration"
    STEP_DETECTOR = "step_detector"
    PROXIMITY = "proximity"
    LIGHT = "light"


class Vector3(BaseModel):
    """Tri-axis value."""

    model_config = ConfigDict(frozen=True)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


class MotionSample(BaseModel):
    """Raw sensor reading.

    Scalar sensors (proximity, light) carry their value in ``x``.
    """

    model_config = ConfigDict(frozen=True)

    kind: SensorKind = Field(description="Sensor that produced the reading")
    x: float = Field(default=0.0, description="X-axis value (or scalar value)")
    y: float = Field(default=0.0, description="Y-axis value")
    z: float = Field(default=0.0, description="Z-axis value")
    timestamp: datetime = Field(default_factory=utc_now, description="Reading time")

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    @property
    def vector(self) -> Vector3:
        return Vector3(x=self.x, y=self.y, z=self.z)
