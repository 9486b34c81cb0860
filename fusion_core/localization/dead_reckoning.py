"""
Dead-Reckoning Integrator.

Continuously integrates inertial samples into a position estimate:

    world_accel = R(orientation) @ linear_accel
    velocity   += world_accel * dt          (Euler; zeroed while stationary)
    lat        += v_north * dt / 111000
    lon        += v_east  * dt / (111000 * cos(lat))

Used as the authoritative source while satellite fixes are rejected, and as
the independent speed/bearing cross-check for the spoofing classifier.

Notes:
    - Sensor gaps (first sample, dt > 1 s) are skipped and resynced, never
      integrated across
    - Stationary periods hard-reset velocity to zero (zero-velocity update)
    - One lock covers the whole navigation state; initialize() and
      on_sample() are symmetric writers
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple
import logging
import math
import threading
import time

import numpy as np

from fusion_core.proto.fix import Fix, FixSource
from fusion_core.proto.sensor_sample import SensorSample
from fusion_core.sensors.orientation_estimator import OrientationEstimator
from fusion_core.sensors.movement_classifier import (
    MovementClassifier,
    MovementClassifierConfig,
)
from fusion_core.utils.geo_math import METERS_PER_DEGREE, normalize_bearing, normalize_longitude
from fusion_core.metrics import get_metrics

logger = logging.getLogger(__name__)


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class DeadReckoningConfig:
    """
    Configuration for the dead-reckoning integrator.

    Attributes:
        max_sample_gap_s: Gaps longer than this are skipped, not integrated
        confidence_decay_s: Time after a reseed over which confidence decays
        max_confidence_loss: Cap on the confidence decay
        movement_config: Stationary detection configuration
    """

    max_sample_gap_s: float = 1.0
    confidence_decay_s: float = 60.0
    max_confidence_loss: float = 0.9
    movement_config: MovementClassifierConfig = field(default_factory=MovementClassifierConfig)


@dataclass
class NavigationState:
    """
    Snapshot of the integrator's navigation state.

    Attributes:
        latitude, longitude: Current position (None until seeded)
        velocity_enu: World-frame velocity (east, north, up) m/s
        last_update_ms: Time of the last accepted sample or reseed
        seeded_at_ms: Time of the last initialize()
    """

    latitude: Optional[float]
    longitude: Optional[float]
    velocity_enu: Tuple[float, float, float]
    last_update_ms: Optional[int]
    seeded_at_ms: Optional[int]

    @property
    def is_seeded(self) -> bool:
        return self.latitude is not None

    @property
    def horizontal_speed_m_s(self) -> float:
        return math.hypot(self.velocity_enu[0], self.velocity_enu[1])


class DeadReckoningIntegrator:
    """
    Inertial position integrator.

    Usage:
        integrator = DeadReckoningIntegrator()
        integrator.initialize(trusted_fix)

        for sample in samples:
            inertial_fix = integrator.on_sample(sample)

        speed, bearing = integrator.speed_and_bearing()
    """

    def __init__(
        self,
        config: Optional[DeadReckoningConfig] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize integrator.

        Args:
            config: Integrator configuration (uses defaults if None)
            clock: Millisecond clock for initialize() without an explicit time
        """
        self.config = config or DeadReckoningConfig()
        self.metrics = get_metrics()
        self._clock = clock or _wall_clock_ms
        self._lock = threading.Lock()

        self.orientation = OrientationEstimator()
        self.movement = MovementClassifier(self.config.movement_config)

        self._velocity = np.zeros(3)
        self._position: Optional[Fix] = None
        self._last_update_ms: Optional[int] = None
        self._seeded_at_ms: Optional[int] = None

    def initialize(self, fix: Fix, now_ms: Optional[int] = None):
        """
        Reseed from a trusted fix: position = fix, velocity = 0.

        Args:
            fix: Trusted absolute fix
            now_ms: Reseed time (defaults to the injected clock)
        """
        now = self._clock() if now_ms is None else now_ms

        with self._lock:
            self._position = fix.derive(source=FixSource.INERTIAL, timestamp_ms=now)
            self._velocity = np.zeros(3)
            self._last_update_ms = now
            self._seeded_at_ms = now

        self.metrics.increment('inertial_reseeds')
        logger.info(f"Inertial navigation seeded at {fix.latitude:.6f}, {fix.longitude:.6f}")

    def on_sample(self, sample: SensorSample) -> Optional[Fix]:
        """
        Integrate one inertial sample.

        Args:
            sample: Synchronized sensor sample

        Returns:
            Updated INERTIAL fix, or None if the sample was skipped or the
            integrator has not been seeded yet
        """
        self.metrics.increment('sensor_samples_in')
        now = sample.timestamp_ms

        with self._lock:
            if self._last_update_ms is None:
                self._last_update_ms = now
                self.metrics.increment_drop('sensor_gap')
                return None

            dt = (now - self._last_update_ms) / 1000.0

            if dt <= 0:
                self.metrics.increment_drop('sensor_out_of_order')
                return None

            if dt > self.config.max_sample_gap_s:
                logger.debug(f"Sensor gap of {dt:.3f}s, skipping integration")
                self._last_update_ms = now
                self.metrics.increment_drop('sensor_gap')
                return None

            self.orientation.update_from_gravity_and_magnetic(sample.gravity, sample.magnetic)
            self.orientation.update_from_gyroscope(sample.gyroscope, dt)

            self.movement.update(sample.linear_acceleration, now)
            world_accel = self.orientation.rotate_to_world(sample.linear_acceleration)

            if self.movement.is_stationary:
                self._velocity = np.zeros(3)
            else:
                self._velocity = self._velocity + world_accel * dt

            self._last_update_ms = now

            if self._position is None:
                return None

            return self._advance_position(now, dt)

    def _advance_position(self, now: int, dt: float) -> Fix:
        """Flat-earth position step. Caller holds the lock."""
        v_east, v_north = float(self._velocity[0]), float(self._velocity[1])
        lat = self._position.latitude
        lon = self._position.longitude

        d_lat = v_north * dt / METERS_PER_DEGREE
        d_lon = v_east * dt / (METERS_PER_DEGREE * math.cos(math.radians(lat)))

        since_seed_s = (now - self._seeded_at_ms) / 1000.0
        loss = min(self.config.max_confidence_loss, since_seed_s / self.config.confidence_decay_s)

        self._position = self._position.derive(
            latitude=lat + d_lat,
            longitude=normalize_longitude(lon + d_lon),
            speed_m_s=math.hypot(v_east, v_north),
            bearing_deg=normalize_bearing(self.orientation.azimuth_deg),
            timestamp_ms=now,
            source=FixSource.INERTIAL,
            confidence=max(0.0, 1.0 - loss),
        )
        return self._position

    def speed_and_bearing(self) -> Tuple[float, float]:
        """
        Independent inertial speed (m/s) and bearing (deg) for cross-checks.

        Available whether or not the integrator has been seeded.
        """
        with self._lock:
            speed = math.hypot(self._velocity[0], self._velocity[1])
            return float(speed), normalize_bearing(self.orientation.azimuth_deg)

    @property
    def current_fix(self) -> Optional[Fix]:
        """Last inertial fix (None until seeded)."""
        with self._lock:
            return self._position

    @property
    def velocity(self) -> np.ndarray:
        with self._lock:
            return self._velocity.copy()

    @property
    def is_seeded(self) -> bool:
        with self._lock:
            return self._position is not None

    def navigation_state(self) -> NavigationState:
        """Consistent snapshot of the navigation state."""
        with self._lock:
            position = self._position
            return NavigationState(
                latitude=position.latitude if position else None,
                longitude=position.longitude if position else None,
                velocity_enu=tuple(float(v) for v in self._velocity),
                last_update_ms=self._last_update_ms,
                seeded_at_ms=self._seeded_at_ms,
            )

    def reset(self):
        """Forget position, velocity, orientation and timing."""
        with self._lock:
            self.orientation.reset()
            self.movement.reset()
            self._velocity = np.zeros(3)
            self._position = None
            self._last_update_ms = None
            self._seeded_at_ms = None
        logger.info("Inertial navigation reset")
