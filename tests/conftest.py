"""
Pytest configuration and shared fixtures for the location fusion engine tests.

Provides reusable fixes, sensor sample factories, a small road network and a
metrics reset so counters never leak between tests.
"""

import sys
from pathlib import Path
from typing import Callable, Sequence

import pytest

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fusion_core.metrics import reset_metrics
from fusion_core.proto import Fix, FixSource, RoadSegment, SensorSample
from fusion_core.localization import RoadSegmentIndex
from fusion_core.utils.geo_math import METERS_PER_DEGREE


# =============================================================================
# Metrics
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_metrics():
    """Reset the global metrics collector around every test."""
    reset_metrics()
    yield
    reset_metrics()


# =============================================================================
# Fix Fixtures
# =============================================================================


BASE_LAT = 55.7558
BASE_LON = 37.6173


@pytest.fixture
def base_fix() -> Fix:
    """
    Stationary satellite fix in central Moscow at t=0.

    Returns:
        Fix with no speed and no bearing.
    """
    return Fix(latitude=BASE_LAT, longitude=BASE_LON, timestamp_ms=0)


@pytest.fixture
def make_fix() -> Callable[..., Fix]:
    """
    Factory for satellite fixes offset north/east of the base point.

    Usage:
        fix = make_fix(north_m=10.0, timestamp_ms=1000, speed_m_s=10.0)
    """

    def _make(north_m: float = 0.0, east_m: float = 0.0, **kwargs) -> Fix:
        kwargs.setdefault('source', FixSource.SATELLITE)
        return Fix(
            latitude=BASE_LAT + north_m / METERS_PER_DEGREE,
            longitude=BASE_LON + east_m / METERS_PER_DEGREE,
            **kwargs,
        )

    return _make


# =============================================================================
# Sensor Fixtures
# =============================================================================


@pytest.fixture
def make_sample() -> Callable[..., SensorSample]:
    """
    Factory for pre-processed sensor samples.

    Defaults to zero gravity/magnetic (orientation stays at identity) and
    zero gyroscope.
    """

    def _make(
        timestamp_ms: int,
        linear_acceleration: Sequence[float] = (0.0, 0.0, 0.0),
        gyroscope: Sequence[float] = (0.0, 0.0, 0.0),
        gravity: Sequence[float] = (0.0, 0.0, 0.0),
        magnetic: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> SensorSample:
        return SensorSample(
            timestamp_ms=timestamp_ms,
            gyroscope=gyroscope,
            magnetic=magnetic,
            gravity=gravity,
            linear_acceleration=linear_acceleration,
        )

    return _make


# =============================================================================
# Road Fixtures
# =============================================================================


@pytest.fixture
def east_west_road() -> RoadSegment:
    """
    Straight east-west segment of roughly 64 m at latitude 55.0.

    Returns:
        RoadSegment heading due east (bearing 90).
    """
    return RoadSegment(id=1, start_lat=55.0, start_lon=37.0, end_lat=55.0, end_lon=37.001)


@pytest.fixture
def road_index(east_west_road: RoadSegment) -> RoadSegmentIndex:
    """
    Index with the east-west road plus a distant decoy road.

    Returns:
        RoadSegmentIndex with two segments.
    """
    decoy = RoadSegment(id=2, start_lat=56.0, start_lon=38.0, end_lat=56.001, end_lon=38.0)
    return RoadSegmentIndex([east_west_road, decoy])
