"""Driver versus passenger classification."""

from telematics_core.driver.engine import DriverClassificationEngine
from telematics_core.driver.models import (
    DriverState,
    MovementPattern,
    PhonePosition,
    PhonePositionEstimate,
)

__all__ = [
    "DriverClassificationEngine",
    "DriverState",
    "MovementPattern",
    "PhonePosition",
    "PhonePositionEstimate",
]
