"""
Sensor Sample Schema.

One synchronized inertial sample handed from the sensor-ingest layer to the
dead-reckoning integrator. Vectors are device-frame numpy arrays of length 3.
"""

from dataclasses import dataclass, field

import numpy as np


def _vec3(value) -> np.ndarray:
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {arr.shape}")
    return arr


@dataclass
class SensorSample:
    """
    Inertial sample.

    Attributes:
        timestamp_ms: Sample time (ms)
        accelerometer: Raw acceleration incl. gravity (m/s²)
        gyroscope: Angular rate (rad/s)
        magnetic: Magnetic field (µT)
        gravity: Low-pass gravity estimate (m/s²)
        linear_acceleration: Acceleration with gravity removed (m/s²)
    """

    timestamp_ms: int
    accelerometer: np.ndarray = field(default_factory=lambda: np.zeros(3))
    gyroscope: np.ndarray = field(default_factory=lambda: np.zeros(3))
    magnetic: np.ndarray = field(default_factory=lambda: np.zeros(3))
    gravity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    linear_acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        """Coerce all vectors to float 3-vectors."""
        self.accelerometer = _vec3(self.accelerometer)
        self.gyroscope = _vec3(self.gyroscope)
        self.magnetic = _vec3(self.magnetic)
        self.gravity = _vec3(self.gravity)
        self.linear_acceleration = _vec3(self.linear_acceleration)

    def to_dict(self) -> dict:
        return {
            'timestamp_ms': self.timestamp_ms,
            'accelerometer': self.accelerometer.tolist(),
            'gyroscope': self.gyroscope.tolist(),
            'magnetic': self.magnetic.tolist(),
            'gravity': self.gravity.tolist(),
            'linear_acceleration': self.linear_acceleration.tolist(),
        }
