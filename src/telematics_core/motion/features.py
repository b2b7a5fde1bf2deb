"""Signal features used by motion fusion."""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from telematics_core.models import MotionSample
from telematics_core.motion.models import ActivityType

# Vehicle gate (m/s², rad/s)
VEHICLE_MIN_ACCEL = 2.0
VEHICLE_MIN_GYRO = 0.5
VEHICLE_STRONG_ACCEL = 8.0

SUSTAINED_MOTION_THRESHOLD = 1.5


def magnitudes(samples: Sequence[MotionSample]) -> np.ndarray:
    if not samples:
        return np.zeros(0)
    values = np.array([(s.x, s.y, s.z) for s in samples], dtype=float)
    return np.sqrt(np.sum(values**2, axis=1))


def is_vehicle_motion(accel_magnitude: float, gyro_magnitude: float) -> bool:
    """Heuristic gate separating vehicle-borne motion from other motion."""
    return accel_magnitude > VEHICLE_MIN_ACCEL and (
        gyro_magnitude > VEHICLE_MIN_GYRO or accel_magnitude > VEHICLE_STRONG_ACCEL
    )


def acceleration_pattern_score(accel_samples: Sequence[MotionSample]) -> float:
    """Score how vehicle-like the variance of recent accel magnitudes is."""
    if len(accel_samples) < 10:
        return 0.0

    variance = float(np.var(magnitudes(accel_samples[-10:])))

    if 2.0 <= variance <= 10.0:
        return 0.8
    if variance > 10.0:
        return 0.6
    if variance < 1.0:
        return 0.2
    return 0.4


def continuous_motion_seconds(
    accel_samples: Sequence[MotionSample], threshold: float = SUSTAINED_MOTION_THRESHOLD
) -> float:
    """Length of the trailing run of samples whose magnitude exceeds threshold."""
    if not accel_samples:
        return 0.0

    mags = magnitudes(accel_samples)
    start: Optional[int] = None
    for i in range(len(mags) - 1, -1, -1):
        if mags[i] > threshold:
            start = i
        else:
            break

    if start is None:
        return 0.0
    elapsed = accel_samples[-1].timestamp - accel_samples[start].timestamp
    return max(0.0, elapsed.total_seconds())


def sustained_motion_score(accel_samples: Sequence[MotionSample]) -> float:
    if len(accel_samples) < 20:
        return 0.0

    duration = continuous_motion_seconds(accel_samples)
    if duration >= 30.0:
        return 0.9
    if duration >= 15.0:
        return 0.7
    if duration >= 5.0:
        return 0.4
    return 0.1


def vehicle_confidence(speed: float, pattern_score: float, sustained_score: float) -> float:
    """Average of the vehicle indicators that fired; 0 when none did."""
    indicators: List[float] = []

    if speed > 5.0:
        indicators.append(0.9)
    elif speed > 2.0:
        indicators.append(0.6)

    if pattern_score > 0.7:
        indicators.append(0.8)

    if sustained_score > 0.6:
        indicators.append(0.7)

    return float(np.mean(indicators)) if indicators else 0.0


def classify_activity(
    accel_magnitude: float,
    gyro_magnitude: float,
    vehicle_conf: float,
    step_frequency: float,
) -> ActivityType:
    if vehicle_conf > 0.7:
        return ActivityType.IN_VEHICLE

    if accel_magnitude < 0.3 and gyro_magnitude < 0.05:
        return ActivityType.STILL

    # High-intensity driving
    if accel_magnitude > 15.0 and gyro_magnitude > 4.0:
        return ActivityType.IN_VEHICLE

    if 2.0 <= accel_magnitude <= 8.0 and step_frequency > 1.5:
        return ActivityType.RUNNING if step_frequency > 3.0 else ActivityType.WALKING

    if gyro_magnitude > 2.0 and accel_magnitude > 1.0:
        return ActivityType.TILTING

    if accel_magnitude > 1.0:
        return ActivityType.ON_FOOT

    return ActivityType.UNKNOWN


def turn_ratio(gyro_samples: Sequence[MotionSample], threshold: float = 1.0) -> float:
    if len(gyro_samples) < 10:
        return 0.0
    return float(np.mean(magnitudes(gyro_samples[-10:]) > threshold))


def high_acceleration_ratio(accel_samples: Sequence[MotionSample], threshold: float = 5.0) -> float:
    if len(accel_samples) < 10:
        return 0.0
    return float(np.mean(magnitudes(accel_samples[-10:]) > threshold))


def braking_ratio(accel_samples: Sequence[MotionSample]) -> float:
    """Share of the last four transitions that look like sudden deceleration."""
    if len(accel_samples) < 5:
        return 0.0

    mags = magnitudes(accel_samples[-5:])
    prev, curr = mags[:-1], mags[1:]
    braking = (prev > 3.0) & (curr < prev - 2.0)
    return float(np.sum(braking)) / 4.0


def vehicle_pattern_score(
    accel_samples: Sequence[MotionSample], gyro_samples: Sequence[MotionSample]
) -> float:
    return (
        turn_ratio(gyro_samples)
        + high_acceleration_ratio(accel_samples)
        + braking_ratio(accel_samples)
    ) / 3.0


def base_confidence(
    activity: ActivityType,
    accel_magnitude: float,
    gyro_magnitude: float,
    step_frequency: float,
    vehicle_speed: float,
    pattern_score: float,
) -> float:
    """Type-specific confidence before the temporal consistency boost."""
    if activity == ActivityType.STILL:
        return float(np.clip(1.0 - (accel_magnitude + gyro_magnitude) / 2.0, 0.0, 1.0))

    if activity == ActivityType.WALKING:
        if 3.0 <= accel_magnitude <= 7.0 and 1.5 <= step_frequency <= 3.0:
            return 0.85
        if 2.0 <= accel_magnitude <= 9.0:
            return 0.6
        return 0.3

    if activity == ActivityType.RUNNING:
        if accel_magnitude > 8.0 and step_frequency > 3.0:
            return 0.8
        if accel_magnitude > 6.0:
            return 0.6
        return 0.3

    if activity == ActivityType.IN_VEHICLE:
        speed_conf = 0.9 if vehicle_speed > 3.0 else 0.5
        motion_conf = 0.8 if accel_magnitude > 8.0 and gyro_magnitude > 2.0 else 0.4
        return (speed_conf + motion_conf + pattern_score) / 3.0

    if activity == ActivityType.CYCLING:
        if 4.0 <= accel_magnitude <= 10.0 and 1.0 <= gyro_magnitude <= 3.0:
            return 0.7
        return 0.4

    return 0.3


def temporal_consistency(history: Sequence[ActivityType], current: ActivityType) -> float:
    """Share of recent classifications that agree with the current one."""
    if not history:
        return 0.0
    return sum(1 for a in history if a == current) / len(history)


def step_frequency(step_count: int, last_step_ms: Optional[float], now_ms: float) -> float:
    """Steps per minute from the running count and time since the last pulse."""
    if step_count == 0 or last_step_ms is None:
        return 0.0

    elapsed = now_ms - last_step_ms
    if elapsed <= 0:
        return 0.0
    return (step_count * 60000.0) / elapsed


def latest_vector(samples: Sequence[MotionSample]) -> Tuple[float, float, float]:
    if not samples:
        return (0.0, 0.0, 0.0)
    s = samples[-1]
    return (s.x, s.y, s.z)
