"""
Location Fix Schema.

Defines the single position/velocity/heading observation that flows between
every component of the fusion engine (satellite, inertial, peer, map-matched).

Notes:
    - Fix values are immutable; derived copies are made with Fix.derive()
    - bearing_deg == 0 means "no bearing" (unset/unknown)
"""

from dataclasses import dataclass, replace
from typing import Optional
from enum import Enum

from fusion_core.utils.geo_math import haversine_distance


class FixSource(Enum):
    """Provenance of a location fix."""

    SATELLITE = "satellite"      # Raw GNSS fix from the platform
    INERTIAL = "inertial"        # Dead-reckoning output
    PEER_FUSED = "peer_fused"    # Decoded from / fused over peer devices
    MAP_MATCHED = "map_matched"  # Snapped onto road geometry
    HYBRID = "hybrid"            # Mixed provenance


@dataclass(frozen=True)
class Fix:
    """
    Single location observation with provenance and confidence.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        speed_m_s: Ground speed (m/s)
        bearing_deg: Course over ground (degrees, 0 = unset)
        timestamp_ms: Observation time (milliseconds)
        source: Where this fix came from
        confidence: Confidence in [0, 1]
        altitude_m: Altitude (m)
        is_synthetic_provider: True if delivered by a test/mock location provider
        provider_id: Name of the delivering provider, if known
    """

    latitude: float
    longitude: float
    speed_m_s: float = 0.0
    bearing_deg: float = 0.0
    timestamp_ms: int = 0
    source: FixSource = FixSource.SATELLITE
    confidence: float = 1.0
    altitude_m: float = 0.0
    is_synthetic_provider: bool = False
    provider_id: Optional[str] = None

    def __post_init__(self):
        """Validate fix."""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be in [0,1]: {self.confidence}")

    @property
    def has_bearing(self) -> bool:
        """True if the fix carries a bearing (non-zero)."""
        return self.bearing_deg != 0.0

    def distance_to(self, other: "Fix") -> float:
        """Great-circle distance to another fix (m)."""
        return haversine_distance(
            self.latitude, self.longitude, other.latitude, other.longitude
        )

    def derive(self, **changes) -> "Fix":
        """Return a copy of this fix with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'latitude': self.latitude,
            'longitude': self.longitude,
            'speed_m_s': self.speed_m_s,
            'bearing_deg': self.bearing_deg,
            'timestamp_ms': self.timestamp_ms,
            'source': self.source.name,
            'confidence': self.confidence,
            'altitude_m': self.altitude_m,
            'is_synthetic_provider': self.is_synthetic_provider,
            'provider_id': self.provider_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Fix":
        """Build a fix from a dictionary (inverse of to_dict)."""
        source = data.get('source', FixSource.SATELLITE.name)
        return cls(
            latitude=float(data['latitude']),
            longitude=float(data['longitude']),
            speed_m_s=float(data.get('speed_m_s', 0.0)),
            bearing_deg=float(data.get('bearing_deg', 0.0)),
            timestamp_ms=int(data.get('timestamp_ms', 0)),
            source=FixSource[source.upper()],
            confidence=float(data.get('confidence', 1.0)),
            altitude_m=float(data.get('altitude_m', 0.0)),
            is_synthetic_provider=bool(data.get('is_synthetic_provider', False)),
            provider_id=data.get('provider_id'),
        )
