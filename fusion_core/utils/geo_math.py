"""
Geodesy and vector helpers.

Small-area approximations used throughout the fusion engine:
- Great-circle (haversine) distance on a spherical Earth
- Flat metres <-> degrees conversion (~111 km per degree)
- Point-to-segment projection in lat/lon space
"""

import math
from typing import Sequence, Tuple

import numpy as np

EARTH_RADIUS_M = 6371000.0   # Mean Earth radius
METERS_PER_DEGREE = 111000.0  # Rough metres per degree of latitude


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points.

    Args:
        lat1, lon1: First point (degrees)
        lat2, lon2: Second point (degrees)

    Returns:
        Distance in meters
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def angle_difference(angle1: float, angle2: float) -> float:
    """
    Signed difference angle2 - angle1 normalized to [-180, 180).

    Args:
        angle1: First angle (degrees)
        angle2: Second angle (degrees)
    """
    return (angle2 - angle1 + 180.0) % 360.0 - 180.0


def normalize_bearing(bearing_deg: float) -> float:
    """Wrap a bearing into [0, 360)."""
    wrapped = bearing_deg % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def project_to_segment(
    px: float, py: float,
    ax: float, ay: float,
    bx: float, by: float,
) -> Tuple[float, float]:
    """
    Closest point to P on segment AB (scalar projection clamped to [0, 1]).

    A zero-length segment projects every point onto A.

    Returns:
        (x, y) of the closest point
    """
    abx = bx - ax
    aby = by - ay
    ab2 = abx * abx + aby * aby

    if ab2 == 0.0:
        return (ax, ay)

    t = ((px - ax) * abx + (py - ay) * aby) / ab2
    t = max(0.0, min(1.0, t))
    return (ax + t * abx, ay + t * aby)


def normalize_longitude(lon_deg: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return ((lon_deg + 180.0) % 360.0) - 180.0


def vector_magnitude(vector: Sequence[float]) -> float:
    """Euclidean norm of a 3-vector."""
    return float(np.linalg.norm(np.asarray(vector, dtype=float)))
