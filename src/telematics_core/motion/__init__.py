"""Motion fusion: activity classification, step cadence and vehicle speed."""

from telematics_core.motion.engine import MotionFusionEngine
from telematics_core.motion.models import ActivityClassification, ActivityType, MotionData

__all__ = ["MotionFusionEngine", "ActivityClassification", "ActivityType", "MotionData"]
