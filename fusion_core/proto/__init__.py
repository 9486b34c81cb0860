"""
Protocol Module: Value types and the peer wire format.

- Fix: immutable location observation with provenance
- TrustVerdict: spoofing classifier output
- PeerSyncCodec: 36-byte little-endian peer packet (the only bit-exact contract)
- RoadSegment / BoundingBox: road geometry for map matching
- SensorSample: synchronized inertial sample
"""

from .fix import (
    Fix,
    FixSource,
)
from .trust_verdict import (
    TrustVerdict,
    TrustLevel,
    SpoofingFlag,
)
from .peer_sync import (
    PeerEstimate,
    PeerSyncCodec,
    PACKET_SIZE,
    device_id_from_address,
)
from .road_segment import (
    RoadSegment,
    BoundingBox,
)
from .sensor_sample import SensorSample

__all__ = [
    'Fix',
    'FixSource',
    'TrustVerdict',
    'TrustLevel',
    'SpoofingFlag',
    'PeerEstimate',
    'PeerSyncCodec',
    'PACKET_SIZE',
    'device_id_from_address',
    'RoadSegment',
    'BoundingBox',
    'SensorSample',
]
