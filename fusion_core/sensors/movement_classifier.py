"""
Movement Classifier.

Debounced stationary/moving detection from linear-acceleration magnitude
(gravity removed). Asymmetric hysteresis:

- MOVING -> STATIONARY only after the magnitude stays below threshold for
  the whole debounce window
- STATIONARY -> MOVING immediately on a single sample at/above threshold
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from fusion_core.utils.geo_math import vector_magnitude


class MovementState(Enum):
    MOVING = "moving"
    STATIONARY = "stationary"


@dataclass
class MovementClassifierConfig:
    """
    Configuration for movement classifier.

    Attributes:
        stationary_threshold_m_s2: Magnitude below which a sample counts as still
        stationary_time_ms: Time still samples must persist before STATIONARY
    """

    stationary_threshold_m_s2: float = 0.1
    stationary_time_ms: int = 1000


class MovementClassifier:
    """
    Stationary/moving state machine (initial state MOVING).

    Usage:
        classifier = MovementClassifier()
        state = classifier.update(linear_accel, now_ms)
        if classifier.is_stationary:
            ...
    """

    def __init__(self, config: Optional[MovementClassifierConfig] = None):
        self.config = config or MovementClassifierConfig()
        self._state = MovementState.MOVING
        self._stationary_since_ms: Optional[int] = None
        self._magnitude = 0.0

    @property
    def state(self) -> MovementState:
        return self._state

    @property
    def is_stationary(self) -> bool:
        return self._state == MovementState.STATIONARY

    @property
    def acceleration_magnitude(self) -> float:
        """Magnitude of the last linear acceleration sample (m/s²)."""
        return self._magnitude

    def update(self, linear_acceleration: Sequence[float], now_ms: int) -> MovementState:
        """
        Classify one linear-acceleration sample.

        Args:
            linear_acceleration: Gravity-free acceleration (m/s²)
            now_ms: Sample time (ms)

        Returns:
            Current movement state
        """
        self._magnitude = vector_magnitude(linear_acceleration)

        if self._magnitude < self.config.stationary_threshold_m_s2:
            if self._stationary_since_ms is None:
                self._stationary_since_ms = now_ms
            elif now_ms - self._stationary_since_ms >= self.config.stationary_time_ms:
                self._state = MovementState.STATIONARY
        else:
            self._stationary_since_ms = None
            self._state = MovementState.MOVING

        return self._state

    def reset(self):
        self._state = MovementState.MOVING
        self._stationary_since_ms = None
        self._magnitude = 0.0
