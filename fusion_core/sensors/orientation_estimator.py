"""
Orientation Estimator.

Tracks device orientation as a 3x3 rotation matrix (device -> world,
world = east/north/up) from two sources:

- Absolute: gravity + magnetic field (tilt-compensated compass)
- Incremental: gyroscope rate integrated into a unit quaternion

Notes:
    - Angles are radians internally, degrees at the accessors
    - Azimuth/roll wrap at +/-180 deg; consumers must not assume continuity
"""

from dataclasses import dataclass
from typing import Optional, Sequence
import logging
import math

import numpy as np

logger = logging.getLogger(__name__)

EPSILON = 1e-6


@dataclass
class OrientationState:
    """
    Orientation snapshot.

    Attributes:
        rotation_matrix: 3x3 device->world rotation (orthonormal)
        azimuth_rad: Heading around world up, 0 = north
        pitch_rad: Rotation around device x
        roll_rad: Rotation around device y
    """

    rotation_matrix: np.ndarray
    azimuth_rad: float
    pitch_rad: float
    roll_rad: float

    @property
    def azimuth_deg(self) -> float:
        return math.degrees(self.azimuth_rad)

    @property
    def pitch_deg(self) -> float:
        return math.degrees(self.pitch_rad)

    @property
    def roll_deg(self) -> float:
        return math.degrees(self.roll_rad)


def quaternion_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Hamilton product q1 * q2, quaternions stored as [x, y, z, w]."""
    x1, y1, z1, w1 = q1
    x2, y2, z2, w2 = q2
    return np.array([
        w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
        w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
        w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
    ])


def quaternion_to_rotation_matrix(q: np.ndarray) -> np.ndarray:
    """Rotation matrix of a unit quaternion [x, y, z, w]."""
    x, y, z, w = q
    xx, xy, xz, xw = x * x, x * y, x * z, x * w
    yy, yz, yw = y * y, y * z, y * w
    zz, zw = z * z, z * w

    return np.array([
        [1 - 2 * (yy + zz), 2 * (xy - zw), 2 * (xz + yw)],
        [2 * (xy + zw), 1 - 2 * (xx + zz), 2 * (yz - xw)],
        [2 * (xz - yw), 2 * (yz + xw), 1 - 2 * (xx + yy)],
    ])


def rotation_matrix_to_quaternion(r: np.ndarray) -> np.ndarray:
    """Unit quaternion [x, y, z, w] of an orthonormal rotation matrix."""
    trace = r[0, 0] + r[1, 1] + r[2, 2]

    if trace > 0:
        s = 2.0 * math.sqrt(trace + 1.0)
        q = np.array([
            (r[2, 1] - r[1, 2]) / s,
            (r[0, 2] - r[2, 0]) / s,
            (r[1, 0] - r[0, 1]) / s,
            0.25 * s,
        ])
    elif r[0, 0] > r[1, 1] and r[0, 0] > r[2, 2]:
        s = 2.0 * math.sqrt(1.0 + r[0, 0] - r[1, 1] - r[2, 2])
        q = np.array([
            0.25 * s,
            (r[0, 1] + r[1, 0]) / s,
            (r[0, 2] + r[2, 0]) / s,
            (r[2, 1] - r[1, 2]) / s,
        ])
    elif r[1, 1] > r[2, 2]:
        s = 2.0 * math.sqrt(1.0 + r[1, 1] - r[0, 0] - r[2, 2])
        q = np.array([
            (r[0, 1] + r[1, 0]) / s,
            0.25 * s,
            (r[1, 2] + r[2, 1]) / s,
            (r[0, 2] - r[2, 0]) / s,
        ])
    else:
        s = 2.0 * math.sqrt(1.0 + r[2, 2] - r[0, 0] - r[1, 1])
        q = np.array([
            (r[0, 2] + r[2, 0]) / s,
            (r[1, 2] + r[2, 1]) / s,
            0.25 * s,
            (r[1, 0] - r[0, 1]) / s,
        ])

    return q / np.linalg.norm(q)


def rotation_matrix_from_gravity_and_magnetic(
    gravity: Sequence[float],
    magnetic: Sequence[float],
) -> Optional[np.ndarray]:
    """
    Tilt-compensated compass rotation matrix.

    Rows are the world east, north and up axes expressed in device
    coordinates: H = E x A, M = A x H.

    Args:
        gravity: Gravity vector in device frame (m/s²)
        magnetic: Magnetic field in device frame (µT)

    Returns:
        3x3 rotation matrix, or None if gravity is near zero (free fall)
        or the field is near parallel to gravity
    """
    a = np.asarray(gravity, dtype=float)
    e = np.asarray(magnetic, dtype=float)

    norm_a = np.linalg.norm(a)
    if norm_a < 0.1:
        return None

    h = np.cross(e, a)
    norm_h = np.linalg.norm(h)
    if norm_h < 0.1:
        return None

    h = h / norm_h
    a = a / norm_a
    m = np.cross(a, h)

    return np.vstack([h, m, a])


class OrientationEstimator:
    """
    Device orientation from accelerometer/magnetometer and gyroscope.

    Usage:
        estimator = OrientationEstimator()
        estimator.update_from_gravity_and_magnetic(gravity, magnetic)
        estimator.update_from_gyroscope(gyro, dt_s)

        world_accel = estimator.rotate_to_world(linear_accel)
        heading = estimator.azimuth_deg
    """

    def __init__(self):
        self._quaternion = np.array([0.0, 0.0, 0.0, 1.0])
        self._rotation_matrix = np.eye(3)
        self._angles = np.zeros(3)  # azimuth, pitch, roll (rad)

    @property
    def rotation_matrix(self) -> np.ndarray:
        """Copy of the current device->world rotation matrix."""
        return self._rotation_matrix.copy()

    @property
    def quaternion(self) -> np.ndarray:
        """Copy of the running unit quaternion [x, y, z, w]."""
        return self._quaternion.copy()

    @property
    def azimuth_deg(self) -> float:
        return math.degrees(self._angles[0])

    @property
    def pitch_deg(self) -> float:
        return math.degrees(self._angles[1])

    @property
    def roll_deg(self) -> float:
        return math.degrees(self._angles[2])

    @property
    def state(self) -> OrientationState:
        return OrientationState(
            rotation_matrix=self.rotation_matrix,
            azimuth_rad=float(self._angles[0]),
            pitch_rad=float(self._angles[1]),
            roll_rad=float(self._angles[2]),
        )

    def update_from_gravity_and_magnetic(
        self,
        gravity: Sequence[float],
        magnetic: Sequence[float],
    ) -> bool:
        """
        Set orientation directly from gravity and magnetic field.

        Returns:
            True if the matrix was updated, False for degenerate input
        """
        r = rotation_matrix_from_gravity_and_magnetic(gravity, magnetic)
        if r is None:
            return False

        self._rotation_matrix = r
        self._quaternion = rotation_matrix_to_quaternion(r)
        self._update_angles()
        return True

    def update_from_gyroscope(self, gyro: Sequence[float], dt_s: float):
        """
        Integrate gyroscope rate into the running quaternion.

        Args:
            gyro: Angular rate in device frame (rad/s)
            dt_s: Elapsed time (s)
        """
        w = np.asarray(gyro, dtype=float)
        magnitude = float(np.linalg.norm(w))

        if magnitude < EPSILON:
            return

        angle = magnitude * dt_s
        axis = w / magnitude
        half = angle / 2.0

        dq = np.empty(4)
        dq[:3] = axis * math.sin(half)
        dq[3] = math.cos(half)

        q = quaternion_multiply(self._quaternion, dq)
        norm = np.linalg.norm(q)
        if norm > EPSILON:
            q = q / norm
        self._quaternion = q

        self._rotation_matrix = quaternion_to_rotation_matrix(q)
        self._update_angles()

    def rotate_to_world(self, vector: Sequence[float]) -> np.ndarray:
        """Rotate a device-frame vector into the world frame."""
        return self._rotation_matrix @ np.asarray(vector, dtype=float)

    def reset(self):
        """Back to identity orientation."""
        self._quaternion = np.array([0.0, 0.0, 0.0, 1.0])
        self._rotation_matrix = np.eye(3)
        self._angles = np.zeros(3)

    def _update_angles(self):
        r = self._rotation_matrix
        self._angles = np.array([
            math.atan2(r[0, 1], r[1, 1]),
            math.asin(max(-1.0, min(1.0, -r[2, 1]))),
            math.atan2(-r[2, 0], r[2, 2]),
        ])
