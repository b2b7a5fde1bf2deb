"""Signal heuristics for driver detection.

All scores are in [0, 1]. Windows shorter than a detector needs score 0.
"""

import math
from typing import Sequence

import numpy as np
from scipy.ndimage import uniform_filter1d
from scipy.signal import find_peaks

from telematics_core.driver.models import MovementPattern, PhonePosition, PhonePositionEstimate
from telematics_core.models import MotionSample

POSITION_WEIGHTS = {
    PhonePosition.DRIVER_SIDE_DASHBOARD: 0.3,
    PhonePosition.DRIVER_HAND: 0.1,
    PhonePosition.PASSENGER_SIDE: -0.4,
    PhonePosition.CUP_HOLDER: 0.2,
}

PATTERN_WEIGHTS = {
    MovementPattern.STEERING_MOTION: 0.25,
    MovementPattern.GEAR_SHIFTING: 0.2,
    MovementPattern.STABLE_MOUNT: 0.1,
    MovementPattern.PHONE_HANDLING: -0.3,
    MovementPattern.PASSIVE_MOVEMENT: -0.1,
}

ROTATION_ACTIVE_THRESHOLD = 0.3  # rad/s
SHARP_JERK_THRESHOLD = 3.0  # m/s² change between samples
HANDLING_JERK_THRESHOLD = 1.0


def _clip(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return float(min(1.0, max(0.0, value)))


def vectors(samples: Sequence[MotionSample]) -> np.ndarray:
    if not samples:
        return np.zeros((0, 3))
    return np.array([(s.x, s.y, s.z) for s in samples], dtype=float)


def magnitudes(samples: Sequence[MotionSample]) -> np.ndarray:
    return np.linalg.norm(vectors(samples), axis=1)


def average_vector(samples: Sequence[MotionSample]) -> np.ndarray:
    if not samples:
        return np.zeros(3)
    return vectors(samples).mean(axis=0)


def tilt_angle(accel: np.ndarray) -> float:
    """Angle between the device z axis and gravity, in degrees."""
    return math.degrees(math.atan2(math.hypot(accel[0], accel[1]), accel[2]))


def magnetic_heading(mag: np.ndarray) -> float:
    return math.degrees(math.atan2(mag[1], mag[0]))


def movement_stability(accel: Sequence[MotionSample]) -> float:
    """1 / (1 + variance of the last 10 accel magnitudes)."""
    if len(accel) < 5:
        return 0.0
    variance = float(np.var(magnitudes(accel[-10:])))
    return _clip(1.0 / (1.0 + variance))


def position_confidence(position: PhonePosition, stability: float, tilt: float) -> float:
    if position == PhonePosition.DRIVER_SIDE_DASHBOARD:
        value = stability * 0.8 + (1.0 - tilt / 90.0) * 0.2
    elif position == PhonePosition.DRIVER_HAND:
        value = (1.0 - stability) * 0.6 + 0.4
    elif position == PhonePosition.PASSENGER_SIDE:
        value = 0.7
    else:
        value = 0.5
    return _clip(value)


def classify_position(stability: float, tilt: float, heading: float) -> PhonePosition:
    if stability > 0.8 and tilt < 15.0:
        return PhonePosition.DRIVER_SIDE_DASHBOARD
    if stability < 0.3:
        return PhonePosition.DRIVER_HAND
    if tilt > 45.0:
        return PhonePosition.CUP_HOLDER
    if 45.0 <= heading <= 135.0:
        return PhonePosition.PASSENGER_SIDE
    return PhonePosition.CENTER_CONSOLE


def detect_phone_position(
    accel: Sequence[MotionSample], magnetic: Sequence[MotionSample]
) -> PhonePositionEstimate:
    if not accel or not magnetic:
        return PhonePositionEstimate()

    tilt = tilt_angle(average_vector(accel[-10:]))
    heading = magnetic_heading(average_vector(magnetic[-10:]))
    stability = movement_stability(accel)

    position = classify_position(stability, tilt, heading)
    return PhonePositionEstimate(
        position=position,
        confidence=position_confidence(position, stability, tilt),
        tilt_angle=tilt,
        magnetic_heading=heading,
        stability=stability,
    )


def _dominant_axis(rotation: np.ndarray):
    """Index and energy share of the axis carrying most rotation energy."""
    energy = np.sum(rotation**2, axis=0)
    total = float(energy.sum())
    if total == 0.0:
        return 0, 0.0
    axis = int(np.argmax(energy))
    return axis, float(energy[axis]) / total


def circular_motion_score(gyro: Sequence[MotionSample]) -> float:
    """Steering-like rotation: one dominant axis, turning one way, sustained.

    Product of the dominant axis energy share, the sign consistency of the
    rate on that axis and the share of samples rotating above 0.3 rad/s.
    """
    if len(gyro) < 2:
        return 0.0

    rotation = vectors(gyro)
    axis, share = _dominant_axis(rotation)
    if share == 0.0:
        return 0.0

    rate = rotation[:, axis]
    mean_abs = float(np.mean(np.abs(rate)))
    consistency = abs(float(np.mean(rate))) / mean_abs if mean_abs > 0 else 0.0
    active = float(np.mean(np.linalg.norm(rotation, axis=1) > ROTATION_ACTIVE_THRESHOLD))

    return _clip(share * consistency * active)


def sharp_movement_score(accel: Sequence[MotionSample]) -> float:
    """Isolated jerk spikes typical of reaching for a gear lever."""
    if len(accel) < 3:
        return 0.0

    jerk = np.abs(np.diff(magnitudes(accel)))
    peaks, _ = find_peaks(jerk, height=SHARP_JERK_THRESHOLD, distance=3)
    return _clip(len(peaks) / 3.0)


def irregular_pattern_score(
    accel: Sequence[MotionSample], gyro: Sequence[MotionSample]
) -> float:
    """Rotation spread over all axes with erratic intensity, as when handled."""
    if len(gyro) < 2:
        return 0.0

    _, share = _dominant_axis(vectors(gyro))
    if share == 0.0:
        return 0.0

    # A single-axis rotation has share 1, an even spread 1/3
    spread = _clip((1.0 - share) * 1.5)
    gyro_jitter = float(np.std(magnitudes(gyro))) / 1.5
    accel_jitter = float(np.std(magnitudes(accel))) / 3.0 if len(accel) > 1 else 0.0
    intensity = _clip(max(gyro_jitter, accel_jitter))

    return _clip(spread * intensity)


def vehicle_turn_series(gyro: Sequence[MotionSample], length: int) -> np.ndarray:
    """Smoothed absolute rate on the dominant rotation axis."""
    rotation = vectors(gyro[-length:])
    axis, _ = _dominant_axis(rotation)
    return uniform_filter1d(np.abs(rotation[:, axis]), size=5, mode="nearest")


def phone_movement_series(accel: Sequence[MotionSample], length: int) -> np.ndarray:
    """Horizontal acceleration deviation from the window mean."""
    planar = vectors(accel[-length:])[:, :2]
    return np.linalg.norm(planar - planar.mean(axis=0), axis=1)


def correlation(a: np.ndarray, b: np.ndarray) -> float:
    """Positive Pearson correlation; flat or anti-correlated series give 0."""
    if len(a) < 2 or len(a) != len(b):
        return 0.0
    if float(np.std(a)) == 0.0 or float(np.std(b)) == 0.0:
        return 0.0
    return _clip(float(np.corrcoef(a, b)[0, 1]))


def turn_correlation(gyro: Sequence[MotionSample], accel: Sequence[MotionSample]) -> float:
    if len(gyro) < 20:
        return 0.0

    length = min(len(gyro), len(accel))
    if length < 10:
        return 0.0
    return correlation(vehicle_turn_series(gyro, length), phone_movement_series(accel, length))


def handling_acceleration_score(accel: Sequence[MotionSample]) -> float:
    """Share of recent sample-to-sample changes above 1 m/s²."""
    recent = accel[-20:]
    if len(recent) < 2:
        return 0.0
    jerk = np.abs(np.diff(magnitudes(recent)))
    return _clip(float(np.mean(jerk > HANDLING_JERK_THRESHOLD)))


def scalar_variance_score(samples: Sequence[MotionSample], scale: float) -> float:
    if len(samples) < 5:
        return 0.0
    values = np.array([s.x for s in samples[-10:]], dtype=float)
    return _clip(float(np.var(values)) / scale)


def phone_handling_score(
    proximity: Sequence[MotionSample],
    light: Sequence[MotionSample],
    accel: Sequence[MotionSample],
) -> float:
    """Evidence that the phone is being picked up and used."""
    if not proximity:
        return 0.0

    return (
        scalar_variance_score(proximity, 10.0)
        + scalar_variance_score(light, 1000.0)
        + handling_acceleration_score(accel)
    ) / 3.0


def classify_movement(
    circular: float, sharp: float, irregular: float, stability: float
) -> MovementPattern:
    if circular > 0.7:
        return MovementPattern.STEERING_MOTION
    if sharp > 0.6:
        return MovementPattern.GEAR_SHIFTING
    if irregular > 0.5:
        return MovementPattern.PHONE_HANDLING
    if stability > 0.8:
        return MovementPattern.STABLE_MOUNT
    return MovementPattern.PASSIVE_MOVEMENT


def driver_probability(
    position: PhonePositionEstimate,
    pattern: MovementPattern,
    turn: float,
    handling: float,
) -> float:
    probability = 0.5
    probability += POSITION_WEIGHTS.get(position.position, 0.0) * position.confidence
    probability += PATTERN_WEIGHTS.get(pattern, 0.0)
    probability += turn * 0.2
    probability -= handling * 0.15
    return _clip(probability)
