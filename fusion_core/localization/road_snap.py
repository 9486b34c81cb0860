"""
Road Snap Matcher.

Snaps a position onto the nearest road segment:

1. Query the spatial index with a +/- radius box (rough 111 km/degree)
2. Project the point onto each candidate (clamped scalar projection in
   lat/lon space)
3. Keep the candidate with the smallest great-circle distance
4. Accept only if that distance is below the snap threshold

The search radius (50 m) is a candidate filter; the snap threshold (30 m)
is the acceptance gate.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math

from fusion_core.proto.fix import Fix, FixSource
from fusion_core.proto.road_segment import BoundingBox, RoadSegment
from fusion_core.localization.road_index import RoadSegmentIndex
from fusion_core.utils.geo_math import (
    haversine_distance,
    normalize_bearing,
    project_to_segment,
)
from fusion_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class RoadSnapConfig:
    """
    Configuration for road snapping.

    Attributes:
        search_radius_m: Candidate search radius
        max_snap_distance_m: Acceptance threshold for the best candidate
        max_candidates: Cap on candidates pulled from the index
    """

    search_radius_m: float = 50.0
    max_snap_distance_m: float = 30.0
    max_candidates: int = 100


def segment_bearing(segment: RoadSegment) -> float:
    """Direction of a segment, atan2(dLon, dLat) in [0, 360)."""
    d_lon = segment.end_lon - segment.start_lon
    d_lat = segment.end_lat - segment.start_lat
    return normalize_bearing(math.degrees(math.atan2(d_lon, d_lat)))


class RoadSnapMatcher:
    """
    Nearest-segment map matcher.

    Usage:
        matcher = RoadSnapMatcher(index)
        snapped = matcher.snap(fix)
        if snapped is None:
            # no road within tolerance, keep the raw fix
            ...
    """

    def __init__(self, index: RoadSegmentIndex, config: Optional[RoadSnapConfig] = None):
        self.index = index
        self.config = config or RoadSnapConfig()
        self.metrics = get_metrics()

    def snap(self, fix: Fix) -> Optional[Fix]:
        """
        Snap a fix onto the nearest road.

        Returns:
            MAP_MATCHED fix at the projected point, or None
        """
        result = self.snap_with_distance(fix)
        return result[0] if result is not None else None

    def snap_with_distance(self, fix: Fix) -> Optional[Tuple[Fix, float]]:
        """
        Snap a fix and report how far it moved.

        Returns:
            (snapped fix, snap distance in m), or None if no road accepted
        """
        cfg = self.config
        box = BoundingBox.around(fix.latitude, fix.longitude, cfg.search_radius_m)
        candidates = self.index.query(box, limit=cfg.max_candidates)

        best_segment = None
        best_point = None
        best_distance = math.inf

        for segment in candidates:
            point = project_to_segment(
                fix.latitude, fix.longitude,
                segment.start_lat, segment.start_lon,
                segment.end_lat, segment.end_lon,
            )
            distance = haversine_distance(fix.latitude, fix.longitude, point[0], point[1])

            if distance < best_distance:
                best_distance = distance
                best_segment = segment
                best_point = point

        if best_segment is None or best_distance >= cfg.max_snap_distance_m:
            self.metrics.increment('road_snap_misses')
            return None

        self.metrics.increment('road_snap_hits')
        self.metrics.record_histogram('road_snap_distance_m', best_distance)

        snapped = fix.derive(
            latitude=best_point[0],
            longitude=best_point[1],
            bearing_deg=segment_bearing(best_segment),
            source=FixSource.MAP_MATCHED,
            is_synthetic_provider=False,
            provider_id=None,
        )
        return snapped, best_distance
