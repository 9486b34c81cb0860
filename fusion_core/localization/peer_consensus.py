"""
Peer Consensus Fuser.

Keeps the latest position estimate per peer device and fuses them into a
confidence-weighted centroid:

    lat = sum(lat_i * c_i) / sum(c_i)      (same for lon)
    confidence = sum(c_i) / peer_count

This is a pragmatic weighted average, not a Kalman filter. Peers are only
removed explicitly (e.g. on transport disconnect); a silent peer stays in
the average until replaced or removed.
"""

from typing import Dict, List, Optional
import logging
import threading

from fusion_core.proto.fix import Fix, FixSource
from fusion_core.proto.peer_sync import PeerEstimate
from fusion_core.metrics import get_metrics

logger = logging.getLogger(__name__)


class PeerConsensusFuser:
    """
    Latest-estimate-per-peer map with weighted fusion.

    Usage:
        fuser = PeerConsensusFuser()
        fuser.update(estimate)        # from any transport thread
        fused = fuser.fuse()          # None if no usable peers
    """

    def __init__(self):
        self.metrics = get_metrics()
        self._lock = threading.Lock()
        self._estimates: Dict[int, PeerEstimate] = {}

    def update(self, estimate: PeerEstimate):
        """Store an estimate, replacing any previous one from the same device."""
        with self._lock:
            is_new = estimate.device_id not in self._estimates
            self._estimates[estimate.device_id] = estimate

        if is_new:
            logger.info(f"New peer {estimate.device_id}")
        self.metrics.increment('peer_estimates_accepted')

    def remove(self, device_id: int) -> bool:
        """
        Drop a peer's estimate.

        Returns:
            True if the peer was known
        """
        with self._lock:
            removed = self._estimates.pop(device_id, None) is not None

        if removed:
            logger.info(f"Peer {device_id} removed")
        return removed

    def fuse(self) -> Optional[Fix]:
        """
        Confidence-weighted centroid of all known peers.

        Returns:
            PEER_FUSED fix, or None if no peers or total confidence is zero
        """
        with self._lock:
            if not self._estimates:
                return None

            weighted_lat = 0.0
            weighted_lon = 0.0
            total_weight = 0.0
            newest_ms = None

            for estimate in self._estimates.values():
                weight = estimate.confidence
                weighted_lat += estimate.fix.latitude * weight
                weighted_lon += estimate.fix.longitude * weight
                total_weight += weight
                if newest_ms is None or estimate.fix.timestamp_ms > newest_ms:
                    newest_ms = estimate.fix.timestamp_ms

            peer_count = len(self._estimates)

        if total_weight == 0.0:
            return None

        confidence = min(1.0, total_weight / peer_count)
        self.metrics.record_histogram('peer_fused_confidence', confidence)

        return Fix(
            latitude=weighted_lat / total_weight,
            longitude=weighted_lon / total_weight,
            timestamp_ms=newest_ms,
            source=FixSource.PEER_FUSED,
            confidence=confidence,
        )

    @property
    def peer_count(self) -> int:
        with self._lock:
            return len(self._estimates)

    def estimates(self) -> List[PeerEstimate]:
        """Snapshot of current peer estimates."""
        with self._lock:
            return list(self._estimates.values())

    def clear(self):
        with self._lock:
            self._estimates.clear()
