"""
In-memory road segment spatial index.

Stores road segments with their bounding boxes and answers box-intersection
queries with a vectorized numpy filter. Populated by an external map
ingestion pipeline; persistence is out of scope.
"""

from typing import Iterable, List, Optional
import logging
import threading

import numpy as np

from fusion_core.proto.road_segment import BoundingBox, RoadSegment

logger = logging.getLogger(__name__)


class RoadSegmentIndex:
    """
    Bounding-box spatial index over road segments.

    Usage:
        index = RoadSegmentIndex()
        index.insert(segment)
        candidates = index.query(BoundingBox.around(lat, lon, 50.0), limit=100)
    """

    def __init__(self, segments: Optional[Iterable[RoadSegment]] = None):
        self._lock = threading.Lock()
        self._segments: List[RoadSegment] = []
        # Rows: min_lat, max_lat, min_lon, max_lon
        self._boxes = np.empty((0, 4))
        self._dirty = False

        if segments is not None:
            self.insert_many(segments)

    def insert(self, segment: RoadSegment):
        """Add one segment."""
        with self._lock:
            self._segments.append(segment)
            self._dirty = True

    def insert_many(self, segments: Iterable[RoadSegment]) -> int:
        """
        Add several segments.

        Returns:
            Number of segments added
        """
        segments = list(segments)
        with self._lock:
            self._segments.extend(segments)
            self._dirty = True
            total = len(self._segments)

        logger.debug(f"Indexed {len(segments)} road segments ({total} total)")
        return len(segments)

    def query(self, box: BoundingBox, limit: Optional[int] = None) -> List[RoadSegment]:
        """
        Segments whose bounding box intersects the query box.

        Args:
            box: Query box
            limit: Maximum number of candidates (None for all)

        Returns:
            Matching segments in insertion order, at most `limit`
        """
        with self._lock:
            if not self._segments:
                return []

            if self._dirty:
                self._rebuild_boxes()

            b = self._boxes
            mask = (
                (b[:, 0] <= box.max_lat) & (b[:, 1] >= box.min_lat)
                & (b[:, 2] <= box.max_lon) & (b[:, 3] >= box.min_lon)
            )
            hits = np.flatnonzero(mask)
            if limit is not None:
                hits = hits[:limit]

            return [self._segments[i] for i in hits]

    def clear(self):
        """Remove all segments."""
        with self._lock:
            self._segments = []
            self._boxes = np.empty((0, 4))
            self._dirty = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._segments)

    def _rebuild_boxes(self):
        """Caller holds the lock."""
        self._boxes = np.array([
            (s.bbox.min_lat, s.bbox.max_lat, s.bbox.min_lon, s.bbox.max_lon)
            for s in self._segments
        ], dtype=float)
        self._dirty = False
