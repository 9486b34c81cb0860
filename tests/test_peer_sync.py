"""
Unit tests for the peer sync wire format.

Tests cover:
- Encode/decode round trip of the 36-byte packet
- Malformed packet rejection (size, non-finite values, confidence range)
- Device id validation and address-derived ids
"""

import math
import struct

import pytest

from fusion_core.proto import Fix, FixSource, PeerSyncCodec, PACKET_SIZE, device_id_from_address
from fusion_core.proto.peer_sync import PACKET_FORMAT


@pytest.fixture
def codec() -> PeerSyncCodec:
    return PeerSyncCodec()


class TestPacketLayout:
    """Tests for the fixed binary layout."""

    def test_packet_size_is_36_bytes(self):
        assert PACKET_SIZE == 36
        assert struct.calcsize(PACKET_FORMAT) == 36

    def test_field_order_little_endian(self, codec):
        """Timestamp, lat, lon, confidence, device id; little-endian."""
        fix = Fix(latitude=1.5, longitude=-2.25, timestamp_ms=0x0102030405060708, confidence=0.5)
        packet = codec.encode(fix, device_id=7)

        assert packet[:8] == (0x0102030405060708).to_bytes(8, 'little')
        assert struct.unpack('<d', packet[8:16])[0] == 1.5
        assert struct.unpack('<d', packet[16:24])[0] == -2.25
        assert struct.unpack('<f', packet[24:28])[0] == 0.5
        assert struct.unpack('<q', packet[28:36])[0] == 7


class TestRoundTrip:
    """Tests for encode -> decode."""

    def test_round_trip_preserves_fields(self, codec):
        """Test that position, timestamp, confidence and id survive."""
        fix = Fix(latitude=55.7558, longitude=37.6173, timestamp_ms=1700000000000, confidence=0.75)

        estimate = codec.decode(codec.encode(fix, device_id=-42))

        assert estimate is not None
        assert estimate.device_id == -42
        assert estimate.fix.latitude == fix.latitude
        assert estimate.fix.longitude == fix.longitude
        assert estimate.fix.timestamp_ms == fix.timestamp_ms
        assert estimate.confidence == pytest.approx(0.75)

    def test_decoded_fix_has_no_motion(self, codec):
        """Speed and bearing are not on the wire and decode as zero."""
        fix = Fix(latitude=10.0, longitude=20.0, speed_m_s=12.0, bearing_deg=270.0, timestamp_ms=5)

        estimate = codec.decode(codec.encode(fix, device_id=1))

        assert estimate.fix.speed_m_s == 0.0
        assert estimate.fix.bearing_deg == 0.0
        assert estimate.fix.source == FixSource.PEER_FUSED

    def test_received_at_defaults_to_packet_timestamp(self, codec):
        packet = codec.encode(Fix(latitude=0.0, longitude=0.0, timestamp_ms=1234), device_id=1)

        assert codec.decode(packet).received_at_ms == 1234
        assert codec.decode(packet, received_at_ms=9999).received_at_ms == 9999

    def test_confidence_is_single_precision(self, codec):
        """Confidence travels as float32."""
        fix = Fix(latitude=0.0, longitude=0.0, confidence=0.1)
        estimate = codec.decode(codec.encode(fix, device_id=1))

        assert estimate.confidence == pytest.approx(0.1, abs=1e-7)


class TestMalformedPackets:
    """Tests for malformed packet rejection."""

    @pytest.mark.parametrize("size", [0, 1, 35, 37, 64])
    def test_wrong_size_rejected(self, codec, size):
        assert codec.decode(bytes(size)) is None

    def test_non_finite_position_rejected(self, codec):
        packet = struct.pack(PACKET_FORMAT, 0, math.nan, 1.0, 0.5, 1)
        assert codec.decode(packet) is None

    def test_confidence_out_of_range_rejected(self, codec):
        packet = struct.pack(PACKET_FORMAT, 0, 1.0, 1.0, 1.5, 1)
        assert codec.decode(packet) is None

    def test_all_zero_packet_is_valid(self, codec):
        """A zeroed 36-byte buffer is a well-formed zero-confidence estimate."""
        estimate = codec.decode(bytes(36))

        assert estimate is not None
        assert estimate.confidence == 0.0


class TestDeviceIds:
    """Tests for device id validation and derivation."""

    def test_device_id_out_of_int64_range_raises(self, codec):
        with pytest.raises(ValueError):
            codec.encode(Fix(latitude=0.0, longitude=0.0), device_id=2 ** 63)

    def test_address_id_is_stable_and_case_insensitive(self):
        a = device_id_from_address("aa:bb:cc:dd:ee:ff")
        b = device_id_from_address(" AA:BB:CC:DD:EE:FF ")

        assert a == b
        assert -(2 ** 63) <= a < 2 ** 63

    def test_different_addresses_give_different_ids(self):
        assert device_id_from_address("00:11:22:33:44:55") != device_id_from_address("00:11:22:33:44:56")
