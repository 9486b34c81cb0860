"""Shared numeric helpers (geodesy, angles, vectors)."""

from .geo_math import (
    EARTH_RADIUS_M,
    METERS_PER_DEGREE,
    haversine_distance,
    angle_difference,
    normalize_bearing,
    project_to_segment,
    normalize_longitude,
    vector_magnitude,
)

__all__ = [
    'EARTH_RADIUS_M',
    'METERS_PER_DEGREE',
    'haversine_distance',
    'angle_difference',
    'normalize_bearing',
    'project_to_segment',
    'normalize_longitude',
    'vector_magnitude',
]
