"""Data models for driver detection."""

from datetime import datetime
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field

from telematics_core.models import utc_now


class PhonePosition(str, Enum):
    """Where the phone sits in the vehicle.

    Older payloads used ``center`` and ``driver_side``; they map to
    CENTER_CONSOLE and DRIVER_SIDE_DASHBOARD via ``PhonePosition.parse``.
    """

    DRIVER_SIDE_DASHBOARD = "driver_side_dashboard"
    DRIVER_HAND = "driver_hand"
    PASSENGER_SIDE = "passenger_side"
    CENTER_CONSOLE = "center_console"
    CUP_HOLDER = "cup_holder"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "PhonePosition":
        return cls(_POSITION_ALIASES.get(value.lower(), value.lower()))


class MovementPattern(str, Enum):
    """How the phone is moving relative to the vehicle.

    Legacy labels map as: ``distracted`` -> PHONE_HANDLING,
    ``passenger_like`` -> PASSIVE_MOVEMENT, ``driving_focused`` -> STABLE_MOUNT.
    """

    STEERING_MOTION = "steering_motion"
    GEAR_SHIFTING = "gear_shifting"
    PHONE_HANDLING = "phone_handling"
    STABLE_MOUNT = "stable_mount"
    PASSIVE_MOVEMENT = "passive_movement"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "MovementPattern":
        return cls(_PATTERN_ALIASES.get(value.lower(), value.lower()))


_POSITION_ALIASES = {
    "center": PhonePosition.CENTER_CONSOLE.value,
    "driver_side": PhonePosition.DRIVER_SIDE_DASHBOARD.value,
}

_PATTERN_ALIASES = {
    "distracted": MovementPattern.PHONE_HANDLING.value,
    "passenger_like": MovementPattern.PASSIVE_MOVEMENT.value,
    "driving_focused": MovementPattern.STABLE_MOUNT.value,
}


class PhonePositionEstimate(BaseModel):
    """Estimated phone mounting position."""

    position: PhonePosition = PhonePosition.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    tilt_angle: float = Field(default=0.0, description="Degrees from flat")
    magnetic_heading: float = Field(default=0.0, description="Degrees, atan2(y, x)")
    stability: float = Field(default=0.0, ge=0.0, le=1.0)


class DriverState(BaseModel):
    """Driver detection result published once per tick."""

    is_driver: bool
    confidence: float = Field(ge=0.0, le=1.0, description="Probability the holder is driving")
    phone_position: PhonePosition
    movement_pattern: MovementPattern
    evidence_factors: Dict[str, float] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)
