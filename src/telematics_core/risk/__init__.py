"""Risk assessment, driver profiling and premium estimation."""

from telematics_core.risk.engine import RiskAssessmentEngine
from telematics_core.risk.models import (
    AccidentRecord,
    BehaviorSnapshot,
    DriverProfile,
    DrivingEvent,
    DrivingEventType,
    EventSeverity,
    InsurancePremiumEstimate,
    RiskCategory,
    TripScore,
    TripStatistics,
)
from telematics_core.risk.premium import estimate_premium

__all__ = [
    "RiskAssessmentEngine",
    "AccidentRecord",
    "BehaviorSnapshot",
    "DriverProfile",
    "DrivingEvent",
    "DrivingEventType",
    "EventSeverity",
    "InsurancePremiumEstimate",
    "RiskCategory",
    "TripScore",
    "TripStatistics",
    "estimate_premium",
]
