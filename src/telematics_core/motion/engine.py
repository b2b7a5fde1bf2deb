"""Motion fusion engine."""

import threading
import time
from collections import deque
from typing import Callable, Deque, Optional

import numpy as np
import structlog

from telematics_core import metrics
from telematics_core.buffers import SensorWindows
from telematics_core.channels import LatestValueChannel
from telematics_core.config import TelematicsSettings, settings as default_settings
from telematics_core.engine import PeriodicEngine
from telematics_core.models import MotionSample, SensorKind, Vector3
from telematics_core.motion import features
from telematics_core.motion.models import ActivityClassification, ActivityType, MotionData

logger = structlog.get_logger(__name__)

BUFFERED_KINDS = (
    SensorKind.ACCELEROMETER,
    SensorKind.GYROSCOPE,
    SensorKind.MAGNETOMETER,
    SensorKind.GRAVITY,
    SensorKind.LINEAR_ACCELERATION,
)

PARKING_DEPARTURE_ACCEL = 2.0
CONSISTENCY_HISTORY = 5


def _vector(values) -> Vector3:
    x, y, z = values
    return Vector3(x=x, y=y, z=z)


class MotionFusionEngine(PeriodicEngine):
    """Classifies activity and estimates vehicle speed from raw motion samples."""

    name = "motion"

    def __init__(
        self,
        settings: Optional[TelematicsSettings] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__()
        self.settings = settings or default_settings
        self._clock = clock or time.monotonic

        self.windows = SensorWindows(
            {kind: self.settings.motion_buffer_size for kind in BUFFERED_KINDS}
        )
        self.motion_data: LatestValueChannel[MotionData] = LatestValueChannel("motion_data")

        # Guards step counter and integration state
        self._state_lock = threading.Lock()
        self._step_count = 0
        self._last_step_time: Optional[float] = None

        self._velocity = np.zeros(3)
        self._last_tick_time: Optional[float] = None
        self._speed_history: Deque[float] = deque(maxlen=self.settings.speed_history_size)
        self._activity_history: Deque[ActivityType] = deque(maxlen=CONSISTENCY_HISTORY)
        self._parking_mode = False

    @property
    def parking_mode(self) -> bool:
        return self._parking_mode

    @property
    def step_count(self) -> int:
        with self._state_lock:
            return self._step_count

    def add_sample(self, sample: MotionSample) -> None:
        """Buffer a raw sample; safe to call from any thread."""
        if sample.kind == SensorKind.STEP_DETECTOR:
            with self._state_lock:
                self._step_count += 1
                self._last_step_time = self._clock()
        elif not self.windows.add(sample):
            return

        metrics.samples_ingested.labels(engine=self.name, kind=sample.kind.value).inc()

    def enable_parking_mode(self) -> None:
        if self._parking_mode:
            return
        self._parking_mode = True
        self._reset_integration()
        logger.info("Parking mode enabled", interval_ms=self.settings.motion_parking_interval_ms)

    def disable_parking_mode(self) -> None:
        if not self._parking_mode:
            return
        self._parking_mode = False
        self._reset_integration()
        logger.info("Parking mode disabled", interval_ms=self.settings.motion_analysis_interval_ms)

    def interval_seconds(self) -> float:
        if self._parking_mode:
            return self.settings.motion_parking_interval_ms / 1000.0
        return self.settings.motion_analysis_interval_ms / 1000.0

    def tick(self) -> None:
        result = self.analyze_parking() if self._parking_mode else self.analyze()
        if result is not None:
            self.motion_data.publish(result)

    def on_stop(self) -> None:
        self.windows.clear()
        self._reset_integration()
        with self._state_lock:
            self._activity_history.clear()

    def _reset_integration(self) -> None:
        """Forget velocity so the next full tick starts a fresh integration.

        Parking ticks do not integrate, so the gap since the last full tick
        must never be treated as one integration step.
        """
        with self._state_lock:
            self._velocity = np.zeros(3)
            self._last_tick_time = None
            self._speed_history.clear()

    def step_frequency(self) -> float:
        with self._state_lock:
            count, last = self._step_count, self._last_step_time
        if last is None:
            return 0.0
        return features.step_frequency(count, last * 1000.0, self._clock() * 1000.0)

    def analyze(self) -> Optional[MotionData]:
        """Run full classification over the current buffers."""
        accel = self.windows[SensorKind.ACCELEROMETER].snapshot()
        if not accel:
            return None

        gyro = self.windows[SensorKind.GYROSCOPE].snapshot()
        linear = self.windows[SensorKind.LINEAR_ACCELERATION].snapshot(last=1)
        magnetic = self.windows[SensorKind.MAGNETOMETER].latest()
        gravity = self.windows[SensorKind.GRAVITY].latest()

        accel_vec = features.latest_vector(accel)
        gyro_vec = features.latest_vector(gyro)
        accel_mag = float(np.linalg.norm(accel_vec))
        gyro_mag = float(np.linalg.norm(gyro_vec))

        with self._state_lock:
            speed = self._update_vehicle_speed(linear, accel_mag, gyro_mag)

        cadence = self.step_frequency()
        pattern = features.acceleration_pattern_score(accel)
        sustained = features.sustained_motion_score(accel)
        vehicle_conf = features.vehicle_confidence(speed, pattern, sustained)

        activity = features.classify_activity(accel_mag, gyro_mag, vehicle_conf, cadence)
        confidence = self._confidence(activity, accel_mag, gyro_mag, cadence, speed, accel, gyro)

        return MotionData(
            acceleration_magnitude=accel_mag,
            gyroscope_magnitude=gyro_mag,
            magnetic_field_magnitude=magnetic.magnitude if magnetic else 0.0,
            acceleration=_vector(accel_vec),
            gyroscope=_vector(gyro_vec),
            linear_acceleration=_vector(features.latest_vector(linear)),
            gravity=gravity.vector if gravity else Vector3(),
            activity=ActivityClassification(activity_type=activity, confidence=confidence),
            step_count=self.step_count,
            step_frequency=cadence,
            vehicle_speed=speed,
        )

    def analyze_parking(self) -> Optional[MotionData]:
        """Cheap departure check used while parked."""
        latest = self.windows[SensorKind.ACCELEROMETER].latest()
        if latest is None:
            return None

        accel_mag = latest.magnitude
        if accel_mag <= PARKING_DEPARTURE_ACCEL:
            return None

        logger.info("Movement detected in parking mode", acceleration=round(accel_mag, 2))
        return MotionData(
            acceleration_magnitude=accel_mag,
            gyroscope_magnitude=0.0,
            acceleration=latest.vector,
            activity=ActivityClassification(activity_type=ActivityType.UNKNOWN, confidence=0.5),
            step_count=self.step_count,
            vehicle_speed=0.0,
            parking_alert=True,
        )

    def _update_vehicle_speed(self, linear, accel_mag: float, gyro_mag: float) -> float:
        """Integrate linear acceleration into the persistent velocity vector."""
        if not linear:
            return 0.0

        now = self._clock()
        if self._last_tick_time is None:
            self._last_tick_time = now
            return 0.0

        dt = now - self._last_tick_time
        self._last_tick_time = now

        self._velocity = self._velocity + np.array(features.latest_vector(linear)) * dt

        # Damping against sensor drift
        damping = 0.95 if accel_mag < 0.5 else 0.98
        self._velocity *= damping

        speed = float(np.linalg.norm(self._velocity))

        if not features.is_vehicle_motion(accel_mag, gyro_mag):
            self._velocity = np.zeros(3)
            return 0.0

        self._speed_history.append(speed)
        return max(0.0, float(np.mean(self._speed_history)))

    def _confidence(
        self,
        activity: ActivityType,
        accel_mag: float,
        gyro_mag: float,
        cadence: float,
        speed: float,
        accel,
        gyro,
    ) -> float:
        pattern = 0.0
        if activity == ActivityType.IN_VEHICLE:
            pattern = features.vehicle_pattern_score(accel, gyro)

        base = features.base_confidence(activity, accel_mag, gyro_mag, cadence, speed, pattern)

        with self._state_lock:
            boost = features.temporal_consistency(self._activity_history, activity)
            self._activity_history.append(activity)

        return float(np.clip(base + boost * 0.2, 0.0, 1.0))
