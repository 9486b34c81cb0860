"""
Road Segment Schema.

Straight road segment between two lat/lon points, plus the axis-aligned
bounding box used by the spatial index as a coarse filter.
"""

from dataclasses import dataclass, field

from fusion_core.utils.geo_math import METERS_PER_DEGREE


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned lat/lon box (degrees)."""

    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    @classmethod
    def around(cls, lat: float, lon: float, radius_m: float) -> "BoundingBox":
        """
        Query box of +/- radius around a point.

        Uses the flat ~111 km/degree conversion on both axes. At high
        latitudes this overestimates the east-west extent in metres' terms;
        the box is only a candidate filter.
        """
        radius_deg = radius_m / METERS_PER_DEGREE
        return cls(
            min_lat=lat - radius_deg,
            max_lat=lat + radius_deg,
            min_lon=lon - radius_deg,
            max_lon=lon + radius_deg,
        )

    def intersects(self, other: "BoundingBox") -> bool:
        return (
            self.min_lat <= other.max_lat and self.max_lat >= other.min_lat
            and self.min_lon <= other.max_lon and self.max_lon >= other.min_lon
        )


@dataclass(frozen=True)
class RoadSegment:
    """
    Straight road segment.

    Attributes:
        id: Segment id
        start_lat, start_lon: Start point (degrees)
        end_lat, end_lon: End point (degrees)
        bbox: Derived bounding box (spatial filter only, not the true shape)
    """

    id: int
    start_lat: float
    start_lon: float
    end_lat: float
    end_lon: float
    bbox: BoundingBox = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'bbox', BoundingBox(
            min_lat=min(self.start_lat, self.end_lat),
            max_lat=max(self.start_lat, self.end_lat),
            min_lon=min(self.start_lon, self.end_lon),
            max_lon=max(self.start_lon, self.end_lon),
        ))

    @property
    def is_degenerate(self) -> bool:
        """True if start and end coincide (zero length)."""
        return self.start_lat == self.end_lat and self.start_lon == self.end_lon
