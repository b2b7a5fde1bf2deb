"""Driver classification engine."""

from typing import Optional

import structlog

from telematics_core import metrics
from telematics_core.buffers import SensorWindows
from telematics_core.channels import LatestValueChannel
from telematics_core.config import TelematicsSettings, settings as default_settings
from telematics_core.driver import patterns
from telematics_core.driver.models import DriverState, MovementPattern
from telematics_core.engine import PeriodicEngine
from telematics_core.models import MotionSample, SensorKind

logger = structlog.get_logger(__name__)

MIN_ACCEL_SAMPLES = 10
MIN_GYRO_SAMPLES = 10
PATTERN_WINDOW = 20


class DriverClassificationEngine(PeriodicEngine):
    """Estimates whether the phone's holder is driving or riding along."""

    name = "driver"

    def __init__(self, settings: Optional[TelematicsSettings] = None):
        super().__init__()
        self.settings = settings or default_settings

        motion_size = self.settings.driver_buffer_size
        ambient_size = self.settings.driver_ambient_buffer_size
        self.windows = SensorWindows(
            {
                SensorKind.ACCELEROMETER: motion_size,
                SensorKind.GYROSCOPE: motion_size,
                SensorKind.MAGNETOMETER: motion_size,
                SensorKind.PROXIMITY: ambient_size,
                SensorKind.LIGHT: ambient_size,
            }
        )
        self.driver_state: LatestValueChannel[DriverState] = LatestValueChannel("driver_state")

    def add_sample(self, sample: MotionSample) -> None:
        """Buffer a raw sample; safe to call from any thread."""
        if self.windows.add(sample):
            metrics.samples_ingested.labels(engine=self.name, kind=sample.kind.value).inc()

    def interval_seconds(self) -> float:
        return self.settings.driver_analysis_interval_ms / 1000.0

    def tick(self) -> None:
        state = self.analyze()
        if state is not None:
            self.driver_state.publish(state)

    def on_stop(self) -> None:
        self.windows.clear()

    def analyze(self) -> Optional[DriverState]:
        accel = self.windows[SensorKind.ACCELEROMETER].snapshot()
        if len(accel) < MIN_ACCEL_SAMPLES:
            return None

        gyro = self.windows[SensorKind.GYROSCOPE].snapshot()
        magnetic = self.windows[SensorKind.MAGNETOMETER].snapshot()
        proximity = self.windows[SensorKind.PROXIMITY].snapshot()
        light = self.windows[SensorKind.LIGHT].snapshot()

        position = patterns.detect_phone_position(accel, magnetic)
        stability = patterns.movement_stability(accel)

        if len(gyro) < MIN_GYRO_SAMPLES:
            circular = sharp = irregular = 0.0
            movement = MovementPattern.UNKNOWN
        else:
            recent_gyro = gyro[-PATTERN_WINDOW:]
            recent_accel = accel[-PATTERN_WINDOW:]
            circular = patterns.circular_motion_score(recent_gyro)
            sharp = patterns.sharp_movement_score(recent_accel)
            irregular = patterns.irregular_pattern_score(recent_accel, recent_gyro)
            movement = patterns.classify_movement(circular, sharp, irregular, stability)

        turn = patterns.turn_correlation(gyro, accel)
        handling = patterns.phone_handling_score(proximity, light, accel)

        probability = patterns.driver_probability(position, movement, turn, handling)
        is_driver = probability > self.settings.driver_confidence_threshold

        logger.debug(
            "Driver state estimated",
            position=position.position.value,
            movement=movement.value,
            probability=round(probability, 3),
            is_driver=is_driver,
        )

        return DriverState(
            is_driver=is_driver,
            confidence=probability,
            phone_position=position.position,
            movement_pattern=movement,
            evidence_factors={
                "phone_position": position.confidence,
                "movement_pattern": 1.0 if movement == MovementPattern.STEERING_MOTION else 0.0,
                "turn_correlation": turn,
                "stability": stability,
                "handling": handling,
                "circular_motion": circular,
                "sharp_movement": sharp,
                "irregular_pattern": irregular,
            },
        )
