"""
Peer Sync Wire Protocol.

Fixed-size binary exchange of a position estimate between devices.

Packet layout (36 bytes, little-endian, no padding, no version byte):
    int64   timestamp_ms
    float64 latitude
    float64 longitude
    float32 confidence
    int64   device_id

Speed and bearing are not transmitted; decoded fixes carry zero for both.
The layout is defined entirely by size and field order, so any buffer that
is not exactly 36 bytes is rejected.
"""

import hashlib
import logging
import math
import struct
from dataclasses import dataclass
from typing import Optional

from .fix import Fix, FixSource

logger = logging.getLogger(__name__)

PACKET_FORMAT = '<qddfq'
PACKET_SIZE = struct.calcsize(PACKET_FORMAT)  # 8 + 8 + 8 + 4 + 8 = 36

_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class PeerEstimate:
    """
    Position estimate received from a peer device.

    Attributes:
        fix: Decoded fix (source PEER_FUSED, zero speed/bearing)
        device_id: Sender's 64-bit device id
        received_at_ms: Reception time (ms)
    """

    fix: Fix
    device_id: int
    received_at_ms: int

    @property
    def confidence(self) -> float:
        return self.fix.confidence


def _check_int64(name: str, value: int):
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"{name} does not fit in int64: {value}")


class PeerSyncCodec:
    """
    Encoder/decoder for the 36-byte peer sync packet.

    Usage:
        codec = PeerSyncCodec()
        packet = codec.encode(fix, device_id)
        estimate = codec.decode(packet)
        if estimate is None:
            # malformed packet: drop it
            ...
    """

    PACKET_SIZE = PACKET_SIZE

    def encode(self, fix: Fix, device_id: int) -> bytes:
        """
        Encode a fix for broadcast.

        Args:
            fix: Fix to share (only timestamp, position and confidence are sent)
            device_id: This device's 64-bit id

        Returns:
            36-byte packet

        Raises:
            ValueError: If timestamp or device_id do not fit in int64
        """
        _check_int64("device_id", device_id)
        _check_int64("timestamp_ms", fix.timestamp_ms)

        return struct.pack(
            PACKET_FORMAT,
            fix.timestamp_ms,
            fix.latitude,
            fix.longitude,
            fix.confidence,
            device_id,
        )

    def decode(self, packet: bytes, received_at_ms: Optional[int] = None) -> Optional[PeerEstimate]:
        """
        Decode a peer packet.

        Args:
            packet: Raw bytes from the transport
            received_at_ms: Reception time (defaults to the packet timestamp)

        Returns:
            PeerEstimate, or None if the packet is malformed

        Notes:
            - Length != 36 bytes is malformed
            - Non-finite coordinates or confidence outside [0, 1] are malformed
        """
        if len(packet) != PACKET_SIZE:
            logger.debug(f"Rejecting peer packet of {len(packet)} bytes (expected {PACKET_SIZE})")
            return None

        timestamp_ms, latitude, longitude, confidence, device_id = struct.unpack(
            PACKET_FORMAT, bytes(packet)
        )

        if not (math.isfinite(latitude) and math.isfinite(longitude)):
            logger.debug(f"Rejecting peer packet from {device_id}: non-finite position")
            return None

        if not 0.0 <= confidence <= 1.0:
            logger.debug(f"Rejecting peer packet from {device_id}: confidence {confidence}")
            return None

        fix = Fix(
            latitude=latitude,
            longitude=longitude,
            speed_m_s=0.0,
            bearing_deg=0.0,
            timestamp_ms=timestamp_ms,
            source=FixSource.PEER_FUSED,
            confidence=confidence,
        )

        return PeerEstimate(
            fix=fix,
            device_id=device_id,
            received_at_ms=timestamp_ms if received_at_ms is None else received_at_ms,
        )


def device_id_from_address(address: str) -> int:
    """
    Derive a stable signed 64-bit device id from a physical address.

    Args:
        address: Hardware address (e.g. "AA:BB:CC:DD:EE:FF"), case-insensitive

    Returns:
        Signed int64 id, identical for the same address on every device
    """
    digest = hashlib.blake2b(address.strip().upper().encode('ascii'), digest_size=8).digest()
    return int.from_bytes(digest, byteorder='little', signed=True)
