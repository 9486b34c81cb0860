"""
Fusion Orchestrator.

Wires the estimators into one decision pipeline and owns the authoritative
location:

    satellite fix -> SpoofingTrustClassifier (vs. inertial speed/bearing)
        TRUSTED    -> publish + reseed dead reckoning
        SUSPICIOUS -> publish, no reseed
        SPOOFED    -> suppress
    sensor sample -> DeadReckoningIntegrator -> publish inertial fix
    peer packet   -> PeerSyncCodec -> PeerConsensusFuser

Satellite and inertial fixes both write the published location; the last
writer wins. Sinks (location injection, status display) are plain callables
invoked after every lock is released, in the order the published state
changed. A sink may feed a location straight back into the engine, and a
failing sink never breaks the pipeline.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional
import logging
import threading

from fusion_core.proto.fix import Fix
from fusion_core.proto.peer_sync import PeerEstimate, PeerSyncCodec
from fusion_core.proto.sensor_sample import SensorSample
from fusion_core.proto.trust_verdict import TrustLevel, TrustVerdict
from fusion_core.localization.dead_reckoning import (
    DeadReckoningConfig,
    DeadReckoningIntegrator,
)
from fusion_core.localization.peer_consensus import PeerConsensusFuser
from fusion_core.localization.road_index import RoadSegmentIndex
from fusion_core.localization.road_snap import RoadSnapConfig, RoadSnapMatcher
from fusion_core.localization.spoofing_classifier import (
    SpoofingClassifierConfig,
    SpoofingTrustClassifier,
)
from fusion_core.metrics import get_metrics

logger = logging.getLogger(__name__)

LocationSink = Callable[[Fix], None]
StatusSink = Callable[[str], None]


class InertialPublishPolicy(Enum):
    """When inertial fixes overwrite the published location."""

    ALWAYS = "always"
    WHILE_SPOOFED = "while_spoofed"


@dataclass
class OrchestratorConfig:
    """
    Configuration for the fusion orchestrator.

    Attributes:
        device_id: This device's id in peer broadcast packets
        inertial_publish_policy: When inertial fixes are published
        classifier: Spoofing classifier thresholds
        dead_reckoning: Integrator configuration
        road_snap: Road snapping thresholds
    """

    device_id: int = 0
    inertial_publish_policy: InertialPublishPolicy = InertialPublishPolicy.ALWAYS
    classifier: SpoofingClassifierConfig = field(default_factory=SpoofingClassifierConfig)
    dead_reckoning: DeadReckoningConfig = field(default_factory=DeadReckoningConfig)
    road_snap: RoadSnapConfig = field(default_factory=RoadSnapConfig)


@dataclass(frozen=True)
class FusionDecision:
    """Outcome of processing one satellite fix."""

    verdict: TrustVerdict
    published: bool
    reseeded: bool
    status: str


def status_text(verdict: TrustVerdict) -> str:
    """Human-readable status line for a verdict."""
    if verdict.level == TrustLevel.TRUSTED:
        return "GPS: Normal"
    if verdict.level == TrustLevel.SUSPICIOUS:
        return f"GPS: Suspicious - {verdict.description}"
    return f"GPS: SPOOFED! {verdict.description}"


class FusionOrchestrator:
    """
    Location fusion and trust engine.

    Usage:
        engine = FusionOrchestrator(road_index=index)
        engine.add_location_sink(inject_location)
        engine.add_status_sink(show_status)

        engine.on_sensor_sample(sample)       # high rate
        decision = engine.on_satellite_fix(fix)
        engine.on_peer_packet(packet)

        location = engine.published_location
    """

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        road_index: Optional[RoadSegmentIndex] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Orchestrator configuration (uses defaults if None)
            road_index: Road segment index for snapping (snapping disabled if None)
            clock: Millisecond clock handed to the integrator
        """
        self.config = config or OrchestratorConfig()
        self.metrics = get_metrics()

        self.classifier = SpoofingTrustClassifier(self.config.classifier)
        self.integrator = DeadReckoningIntegrator(self.config.dead_reckoning, clock=clock)
        self.fuser = PeerConsensusFuser()
        self.codec = PeerSyncCodec()
        self.road_index = road_index
        self.snapper = (
            RoadSnapMatcher(road_index, self.config.road_snap) if road_index is not None else None
        )

        self._satellite_lock = threading.Lock()
        self._publish_lock = threading.Lock()

        self._published: Optional[Fix] = None
        self._last_verdict: Optional[TrustVerdict] = None
        self._status = "GPS: Waiting"

        self._location_sinks: List[LocationSink] = []
        self._status_sinks: List[StatusSink] = []

        # Sink notifications queued under _publish_lock, delivered by one thread at a time
        self._pending = deque()
        self._dispatching = False

    # ------------------------------------------------------------------
    # Sinks
    # ------------------------------------------------------------------

    def add_location_sink(self, sink: LocationSink):
        self._location_sinks.append(sink)

    def add_status_sink(self, sink: StatusSink):
        self._status_sinks.append(sink)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def on_satellite_fix(self, fix: Fix) -> FusionDecision:
        """
        Classify a satellite fix and act on the verdict.

        Args:
            fix: Satellite fix

        Returns:
            FusionDecision describing what happened
        """
        self.metrics.increment('satellite_fixes_in')

        with self._satellite_lock:
            imu_speed, imu_bearing = self.integrator.speed_and_bearing()
            verdict = self.classifier.classify(fix, imu_speed, imu_bearing)
            status = status_text(verdict)

            published = verdict.level != TrustLevel.SPOOFED
            reseeded = verdict.level == TrustLevel.TRUSTED

            with self._publish_lock:
                if published:
                    self._set_published(fix)
                self._last_verdict = verdict
                self._status = status
                self._pending.append((self._status_sinks, status))

            if reseeded:
                # Reseed on the fix's own timeline so replayed logs stay consistent
                self.integrator.initialize(fix, now_ms=fix.timestamp_ms)
            elif not published:
                logger.warning(f"Spoofed fix suppressed at t={fix.timestamp_ms}: {verdict.description}")
                self.metrics.increment_drop('spoofed_fix')

        self._dispatch()

        return FusionDecision(verdict=verdict, published=published, reseeded=reseeded, status=status)

    def on_sensor_sample(self, sample: SensorSample) -> Optional[Fix]:
        """
        Feed one inertial sample to dead reckoning.

        Returns:
            The inertial fix, or None if the sample was skipped or the
            integrator is not seeded yet
        """
        fix = self.integrator.on_sample(sample)
        if fix is None:
            return None

        policy = self.config.inertial_publish_policy
        with self._publish_lock:
            verdict = self._last_verdict
            spoofing = verdict is not None and verdict.is_spoofed
            if policy == InertialPublishPolicy.ALWAYS or spoofing:
                self._set_published(fix)

        self._dispatch()

        return fix

    def on_peer_packet(self, packet: bytes, received_at_ms: Optional[int] = None) -> Optional[PeerEstimate]:
        """
        Decode a peer packet and update the consensus.

        Returns:
            The decoded estimate, or None if the packet was malformed
        """
        self.metrics.increment('peer_packets_in')

        estimate = self.codec.decode(packet, received_at_ms)
        if estimate is None:
            self.metrics.increment_drop('parse_error')
            return None

        self.fuser.update(estimate)
        return estimate

    def remove_peer(self, device_id: int) -> bool:
        """Forget a peer, e.g. on transport disconnect."""
        return self.fuser.remove(device_id)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def fused_peer_location(self) -> Optional[Fix]:
        return self.fuser.fuse()

    def snap_to_road(self, fix: Optional[Fix] = None) -> Optional[Fix]:
        """
        Snap a fix (default: the published location) onto the road network.

        Returns:
            MAP_MATCHED fix, or None if there is no index, no location or
            no road within tolerance
        """
        if self.snapper is None:
            return None

        target = fix if fix is not None else self.published_location
        if target is None:
            return None

        return self.snapper.snap(target)

    def peer_packet(self, device_id: Optional[int] = None) -> Optional[bytes]:
        """
        Encode the published location for broadcast to peers.

        Args:
            device_id: Sender id (defaults to config.device_id)

        Returns:
            36-byte packet, or None if nothing has been published yet
        """
        location = self.published_location
        if location is None:
            return None

        sender = self.config.device_id if device_id is None else device_id
        return self.codec.encode(location, sender)

    @property
    def published_location(self) -> Optional[Fix]:
        with self._publish_lock:
            return self._published

    @property
    def last_verdict(self) -> Optional[TrustVerdict]:
        with self._publish_lock:
            return self._last_verdict

    @property
    def is_spoofing(self) -> bool:
        """True while the most recent satellite fix was classified SPOOFED."""
        verdict = self.last_verdict
        return verdict is not None and verdict.is_spoofed

    @property
    def status(self) -> str:
        with self._publish_lock:
            return self._status

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _set_published(self, fix: Fix):
        """Caller holds _publish_lock."""
        self._published = fix
        self._pending.append((self._location_sinks, fix))
        self.metrics.increment('locations_published')

    def _dispatch(self):
        """
        Deliver queued notifications with no lock held.

        Only one thread drains at a time, so sinks see values in the same
        order they were assigned. A sink that re-enters the engine queues
        its own notifications and returns; the draining thread delivers
        them after the current one.
        """
        with self._publish_lock:
            if self._dispatching:
                return
            self._dispatching = True

        while True:
            with self._publish_lock:
                if not self._pending:
                    self._dispatching = False
                    return
                sinks, value = self._pending.popleft()

            for sink in list(sinks):
                try:
                    sink(value)
                except Exception:
                    logger.exception("Sink failed")
                    self.metrics.increment_drop('sink_error')


def create_default_orchestrator(
    road_index: Optional[RoadSegmentIndex] = None,
    device_id: int = 0,
) -> FusionOrchestrator:
    """
    Create orchestrator with default thresholds.

    Args:
        road_index: Optional road network for snapping
        device_id: This device's peer id

    Returns:
        Configured FusionOrchestrator
    """
    config = OrchestratorConfig(device_id=device_id)
    return FusionOrchestrator(config, road_index=road_index)
