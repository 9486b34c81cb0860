"""
Fusion engine replay tool.

Reads a JSON-lines event log and drives a FusionOrchestrator with it,
printing the authoritative location stream and a metrics summary.

Record types (one JSON object per line, "type" selects the kind):
    {"type": "road", "id": 1, "start_lat": .., "start_lon": .., "end_lat": .., "end_lon": ..}
    {"type": "fix", "latitude": .., "longitude": .., "speed_m_s": .., "bearing_deg": .., "timestamp_ms": ..}
    {"type": "sample", "timestamp_ms": .., "gravity": [..], "magnetic": [..], "gyroscope": [..],
     "linear_acceleration": [..]}
    {"type": "raw_sample", "timestamp_ms": .., "accelerometer": [..], "gyroscope": [..], "magnetic": [..]}
    {"type": "peer", "packet": "<72 hex chars>", "received_at_ms": ..}
    {"type": "peer_disconnect", "device_id": ..}
"""

import sys
import json
import logging
import argparse
from typing import Iterable, Optional, TextIO

from fusion_core import config
from fusion_core.metrics import get_metrics
from fusion_core.proto import Fix, FixSource, RoadSegment, SensorSample
from fusion_core.sensors import SensorPreprocessor
from fusion_core.localization import FusionOrchestrator, RoadSegmentIndex

logging.basicConfig(
    level=getattr(logging, config.LOGGING_CONFIG["level"]),
    format=config.LOGGING_CONFIG["format"]
)
logger = logging.getLogger(__name__)


class ReplaySession:
    """Feeds recorded events into one engine instance."""

    def __init__(self, engine_config: Optional[config.EngineConfig] = None, out: TextIO = sys.stdout):
        self.engine_config = engine_config or config.build_engine_config()
        self.road_index = RoadSegmentIndex()
        self.engine = config.create_engine(self.engine_config, road_index=self.road_index)
        self.preprocessor = SensorPreprocessor(self.engine_config.preprocessor)
        self.metrics = get_metrics()
        self.out = out

        self.print_interval = max(1, int(config.REPLAY_CONFIG["print_interval"]))
        self.snap_published = bool(config.REPLAY_CONFIG["snap_published"])

        self.records = 0
        self.published_count = 0
        self.engine.add_location_sink(self._on_published)
        self.engine.add_status_sink(self._on_status)

    def run(self, lines: Iterable[str]) -> int:
        """
        Replay every line.

        Returns:
            Number of records processed
        """
        for line_no, line in enumerate(lines, start=1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            try:
                record = json.loads(line)
                self.handle(record)
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Line {line_no}: skipping malformed record ({e})")
                self.metrics.increment_drop('parse_error')
                continue

            self.records += 1

        return self.records

    def handle(self, record: dict):
        """Dispatch one decoded record."""
        kind = record.get("type")

        if kind == "road":
            self.road_index.insert(RoadSegment(
                id=int(record["id"]),
                start_lat=float(record["start_lat"]),
                start_lon=float(record["start_lon"]),
                end_lat=float(record["end_lat"]),
                end_lon=float(record["end_lon"]),
            ))
        elif kind == "fix":
            fields = {k: v for k, v in record.items() if k != "type"}
            fields.setdefault("source", FixSource.SATELLITE.name)
            self.engine.on_satellite_fix(Fix.from_dict(fields))
        elif kind == "sample":
            self.engine.on_sensor_sample(SensorSample(
                timestamp_ms=int(record["timestamp_ms"]),
                accelerometer=record.get("accelerometer", [0.0, 0.0, 0.0]),
                gyroscope=record.get("gyroscope", [0.0, 0.0, 0.0]),
                magnetic=record.get("magnetic", [0.0, 0.0, 0.0]),
                gravity=record.get("gravity", [0.0, 0.0, 0.0]),
                linear_acceleration=record.get("linear_acceleration", [0.0, 0.0, 0.0]),
            ))
        elif kind == "raw_sample":
            self.preprocessor.on_accelerometer(record["accelerometer"])
            if "gyroscope" in record:
                self.preprocessor.on_gyroscope(record["gyroscope"])
            if "magnetic" in record:
                self.preprocessor.on_magnetic(record["magnetic"])
            self.engine.on_sensor_sample(self.preprocessor.sample(int(record["timestamp_ms"])))
        elif kind == "peer":
            received_at = record.get("received_at_ms")
            self.engine.on_peer_packet(
                bytes.fromhex(record["packet"]),
                int(received_at) if received_at is not None else None,
            )
        elif kind == "peer_disconnect":
            self.engine.remove_peer(int(record["device_id"]))
        else:
            raise ValueError(f"unknown record type {kind!r}")

    def _on_published(self, fix: Fix):
        self.published_count += 1
        if self.published_count % self.print_interval:
            return

        line = (f"[{fix.timestamp_ms}] {fix.source.name:<10} "
                f"{fix.latitude:.6f}, {fix.longitude:.6f} "
                f"speed={fix.speed_m_s:.1f}m/s bearing={fix.bearing_deg:.0f} "
                f"conf={fix.confidence:.2f}")

        if self.snap_published:
            snapped = self.engine.snap_to_road(fix)
            if snapped is not None:
                line += f" road={snapped.latitude:.6f}, {snapped.longitude:.6f}"

        print(line, file=self.out)

    def _on_status(self, status: str):
        logger.debug(status)

    def print_report(self):
        """Final state and metrics summary."""
        engine: FusionOrchestrator = self.engine

        print(f"\nRecords replayed: {self.records}", file=self.out)
        print(f"Status: {engine.status}", file=self.out)

        location = engine.published_location
        if location is not None:
            print(f"Final location: {location.latitude:.6f}, {location.longitude:.6f} "
                  f"({location.source.name})", file=self.out)

        peers = engine.fused_peer_location()
        if peers is not None:
            print(f"Peer consensus: {peers.latitude:.6f}, {peers.longitude:.6f} "
                  f"(conf={peers.confidence:.2f}, {engine.fuser.peer_count} peers)", file=self.out)

        self.metrics.print_summary()


def main():
    """Entry point."""
    parser = argparse.ArgumentParser(description='Location fusion engine replay')
    parser.add_argument('events', nargs='?', default='-',
                       help='JSON-lines event log (default: stdin)')
    parser.add_argument('--debug', '-d', action='store_true',
                       help='Enable debug logging')
    parser.add_argument('--device-id', type=int, default=None,
                       help='Device id used in peer broadcast packets')
    parser.add_argument('--policy', choices=['always', 'while_spoofed'], default=None,
                       help='When inertial fixes are published')
    parser.add_argument('--snap', action='store_true',
                       help='Also print road-snapped locations')

    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    overrides = {}
    if args.device_id is not None:
        overrides["device_id"] = args.device_id
    if args.policy:
        overrides["inertial_publish_policy"] = args.policy
    if args.snap:
        config.REPLAY_CONFIG["snap_published"] = True

    session = ReplaySession(config.build_engine_config(overrides))

    if args.events == '-':
        session.run(sys.stdin)
    else:
        with open(args.events, 'r', encoding='utf-8') as f:
            session.run(f)

    session.print_report()


if __name__ == "__main__":
    main()
