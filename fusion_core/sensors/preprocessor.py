"""
Sensor Preprocessor.

Turns raw accelerometer / gyroscope / magnetometer readings into
SensorSample values for the dead-reckoning integrator:

- Bias correction from an optional still-device calibration
- First-order low-pass gravity estimate:
      gravity_i = gravity_{i-1} + alpha * (accel_i - gravity_{i-1})
- Linear acceleration = accel - gravity
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging
import threading

import numpy as np

from fusion_core.proto.sensor_sample import SensorSample

logger = logging.getLogger(__name__)

STANDARD_GRAVITY = 9.80665


@dataclass
class PreprocessorConfig:
    """
    Configuration for sensor preprocessing.

    Attributes:
        gravity_alpha: Low-pass smoothing factor for the gravity estimate
        min_calibration_samples: Minimum samples accepted by calibrate()
    """

    gravity_alpha: float = 0.8
    min_calibration_samples: int = 10


class SensorPreprocessor:
    """
    Latest-value store for raw sensors plus gravity separation.

    Usage:
        pre = SensorPreprocessor()
        pre.on_accelerometer(accel)
        pre.on_gyroscope(gyro)
        pre.on_magnetic(mag)
        sample = pre.sample(now_ms)
        integrator.on_sample(sample)
    """

    def __init__(self, config: Optional[PreprocessorConfig] = None):
        self.config = config or PreprocessorConfig()
        self._lock = threading.Lock()

        self._accelerometer = np.zeros(3)
        self._gyroscope = np.zeros(3)
        self._magnetic = np.zeros(3)
        self._gravity = np.zeros(3)

        self._accel_bias = np.zeros(3)
        self._gyro_bias = np.zeros(3)

    def on_accelerometer(self, values: Sequence[float]):
        """Raw accelerometer reading (m/s², gravity included)."""
        accel = np.asarray(values, dtype=float) - self._accel_bias
        alpha = self.config.gravity_alpha
        with self._lock:
            self._accelerometer = accel
            self._gravity = self._gravity + alpha * (accel - self._gravity)

    def on_gyroscope(self, values: Sequence[float]):
        """Raw gyroscope reading (rad/s)."""
        with self._lock:
            self._gyroscope = np.asarray(values, dtype=float) - self._gyro_bias

    def on_magnetic(self, values: Sequence[float]):
        """Raw magnetometer reading (µT)."""
        with self._lock:
            self._magnetic = np.asarray(values, dtype=float)

    @property
    def gravity(self) -> np.ndarray:
        with self._lock:
            return self._gravity.copy()

    @property
    def linear_acceleration(self) -> np.ndarray:
        with self._lock:
            return self._accelerometer - self._gravity

    def sample(self, timestamp_ms: int) -> SensorSample:
        """Snapshot the latest readings into a SensorSample."""
        with self._lock:
            return SensorSample(
                timestamp_ms=timestamp_ms,
                accelerometer=self._accelerometer.copy(),
                gyroscope=self._gyroscope.copy(),
                magnetic=self._magnetic.copy(),
                gravity=self._gravity.copy(),
                linear_acceleration=self._accelerometer - self._gravity,
            )

    def calibrate(
        self,
        accel_samples: Sequence[Sequence[float]],
        gyro_samples: Sequence[Sequence[float]],
    ) -> bool:
        """
        Estimate sensor biases from readings taken on a still, level device.

        The accelerometer bias excludes standard gravity on the z axis.

        Returns:
            True if biases were updated, False if too few samples
        """
        min_samples = self.config.min_calibration_samples
        if len(accel_samples) < min_samples or len(gyro_samples) < min_samples:
            logger.warning(
                f"Calibration needs {min_samples} samples, got "
                f"{len(accel_samples)} accel / {len(gyro_samples)} gyro"
            )
            return False

        accel_bias = np.mean(np.asarray(accel_samples, dtype=float), axis=0)
        accel_bias[2] -= STANDARD_GRAVITY
        gyro_bias = np.mean(np.asarray(gyro_samples, dtype=float), axis=0)

        with self._lock:
            self._accel_bias = accel_bias
            self._gyro_bias = gyro_bias

        logger.info(f"Sensor calibration complete: accel_bias={accel_bias}, gyro_bias={gyro_bias}")
        return True

    @property
    def biases(self):
        """(accel_bias, gyro_bias) copies."""
        with self._lock:
            return self._accel_bias.copy(), self._gyro_bias.copy()
