"""
Telematics session owning the motion, driver and risk engines
"""

from typing import Optional

import structlog

from telematics_core.config import TelematicsSettings, settings as default_settings
from telematics_core.driver import DriverClassificationEngine
from telematics_core.logging import setup_logging
from telematics_core.models import MotionSample
from telematics_core.motion import MotionFusionEngine
from telematics_core.risk import RiskAssessmentEngine
from telematics_core.risk.models import (
    AccidentRecord,
    BehaviorSnapshot,
    DrivingEvent,
    TripScore,
)

logger = structlog.get_logger(__name__)


class TelematicsSession:
    """One monitoring session: raw samples in, motion/driver/risk results out.

    Usage::

        async with TelematicsSession(driver_id="d-1") as session:
            session.motion.motion_data.subscribe(print)
            session.ingest(sample)
    """

    def __init__(
        self,
        driver_id: str = "local-driver",
        settings: Optional[TelematicsSettings] = None,
        configure_logging: bool = False,
    ):
        self.settings = settings or default_settings
        if configure_logging:
            setup_logging(settings=self.settings)

        self.motion = MotionFusionEngine(self.settings)
        self.driver = DriverClassificationEngine(self.settings)
        self.risk = RiskAssessmentEngine(driver_id=driver_id, settings=self.settings)
        self._started = False

    @property
    def is_started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return

        # Engine tasks copy the current context, so their logs carry driver_id
        structlog.contextvars.bind_contextvars(driver_id=self.risk.driver_id)
        logger.info("Starting telematics session")
        await self.motion.start()
        await self.driver.start()
        await self.risk.start()
        self._started = True

    async def stop(self) -> None:
        if not self._started:
            return

        self._started = False
        await self.motion.stop()
        await self.driver.stop()
        await self.risk.stop()
        logger.info("Telematics session stopped")
        structlog.contextvars.unbind_contextvars("driver_id")

    async def __aenter__(self) -> "TelematicsSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    def ingest(self, sample: MotionSample) -> bool:
        """Route a raw sample to both sensor engines.

        Returns False when the session is not started and the sample was dropped.
        """
        if not self._started:
            return False
        self.motion.add_sample(sample)
        self.driver.add_sample(sample)
        return True

    def add_driving_event(self, event: DrivingEvent) -> None:
        self.risk.add_driving_event(event)

    def add_trip_score(self, trip: TripScore) -> None:
        self.risk.add_trip_score(trip)

    def add_accident_record(self, record: AccidentRecord) -> None:
        self.risk.add_accident_record(record)

    def record_behavior_snapshot(self, snapshot: BehaviorSnapshot) -> None:
        self.risk.record_behavior_snapshot(snapshot)

    def enable_parking_mode(self) -> None:
        self.motion.enable_parking_mode()

    def disable_parking_mode(self) -> None:
        self.motion.disable_parking_mode()
