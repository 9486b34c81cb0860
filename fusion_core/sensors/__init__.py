"""
Sensors Module: Orientation, movement detection, raw-sensor preprocessing.

Key classes:
- OrientationEstimator: gravity/magnetic compass + gyroscope quaternion
- MovementClassifier: debounced stationary/moving detection
- SensorPreprocessor: bias correction and low-pass gravity separation
"""

from .orientation_estimator import (
    OrientationEstimator,
    OrientationState,
    rotation_matrix_from_gravity_and_magnetic,
)
from .movement_classifier import (
    MovementClassifier,
    MovementClassifierConfig,
    MovementState,
)
from .preprocessor import (
    SensorPreprocessor,
    PreprocessorConfig,
)

__all__ = [
    'OrientationEstimator',
    'OrientationState',
    'rotation_matrix_from_gravity_and_magnetic',
    'MovementClassifier',
    'MovementClassifierConfig',
    'MovementState',
    'SensorPreprocessor',
    'PreprocessorConfig',
]
