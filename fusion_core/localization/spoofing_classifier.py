"""
Spoofing Trust Classifier.

Classifies each satellite fix as TRUSTED / SUSPICIOUS / SPOOFED by
cross-checking it against the previous satellite fix and against the
independently integrated inertial speed and bearing.

Checks:
- Synthetic provider: fix delivered by a mock provider that is not ours
- Teleportation: implied speed between consecutive fixes > 300 m/s
- Speed mismatch: |fix speed - inertial speed| > 10 m/s
- Bearing mismatch: |fix bearing - inertial bearing| > 45 deg

The classifier remembers exactly one previous fix and always advances it,
including for fixes it rejects, so fixes must be classified in arrival order.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from fusion_core.proto.fix import Fix
from fusion_core.proto.trust_verdict import TrustVerdict, SpoofingFlag
from fusion_core.utils.geo_math import angle_difference
from fusion_core.metrics import get_metrics

logger = logging.getLogger(__name__)


@dataclass
class SpoofingClassifierConfig:
    """
    Configuration for the spoofing trust classifier.

    Attributes:
        max_realistic_speed_m_s: Implied speed above this is teleportation (~1080 km/h)
        speed_diff_threshold_m_s: Allowed fix vs inertial speed difference
        bearing_diff_threshold_deg: Allowed fix vs inertial bearing difference
        own_provider_id: Provider id of this engine's own location injection
    """

    max_realistic_speed_m_s: float = 300.0
    speed_diff_threshold_m_s: float = 10.0
    bearing_diff_threshold_deg: float = 45.0
    own_provider_id: str = "fusion-core"


class SpoofingTrustClassifier:
    """
    One-fix-memory trust classifier.

    Usage:
        classifier = SpoofingTrustClassifier()
        speed, bearing = integrator.speed_and_bearing()
        verdict = classifier.classify(fix, speed, bearing)

        if verdict.is_spoofed:
            ...
    """

    def __init__(self, config: Optional[SpoofingClassifierConfig] = None):
        self.config = config or SpoofingClassifierConfig()
        self.metrics = get_metrics()
        self._previous: Optional[Fix] = None

    @property
    def previous_fix(self) -> Optional[Fix]:
        return self._previous

    def classify(self, fix: Fix, imu_speed_m_s: float, imu_bearing_deg: float) -> TrustVerdict:
        """
        Classify a satellite fix.

        Args:
            fix: Newly arrived satellite fix
            imu_speed_m_s: Inertial horizontal speed
            imu_bearing_deg: Inertial heading

        Returns:
            TrustVerdict for this fix

        Side Effects:
            - Remembers this fix as the previous one
            - Updates metrics counters
        """
        cfg = self.config
        flags = set()

        if fix.is_synthetic_provider and fix.provider_id != cfg.own_provider_id:
            flags.add(SpoofingFlag.SYNTHETIC_PROVIDER)

        previous = self._previous
        if previous is not None:
            elapsed_s = (fix.timestamp_ms - previous.timestamp_ms) / 1000.0

            if elapsed_s > 0:
                apparent_speed = previous.distance_to(fix) / elapsed_s
                self.metrics.record_histogram('trust_apparent_speed_m_s', apparent_speed)

                if apparent_speed > cfg.max_realistic_speed_m_s:
                    flags.add(SpoofingFlag.TELEPORTATION)

                if abs(fix.speed_m_s - imu_speed_m_s) > cfg.speed_diff_threshold_m_s:
                    flags.add(SpoofingFlag.SPEED_MISMATCH)

            if fix.has_bearing:
                bearing_diff = abs(angle_difference(fix.bearing_deg, imu_bearing_deg))
                if bearing_diff > cfg.bearing_diff_threshold_deg:
                    flags.add(SpoofingFlag.BEARING_MISMATCH)

        self._previous = fix

        verdict = TrustVerdict.from_flags(flags)
        self.metrics.increment(f'fixes_{verdict.level.name.lower()}')

        if flags:
            logger.debug(f"Fix at t={fix.timestamp_ms} flagged: {verdict.description}")

        return verdict

    def reset(self):
        """Forget the previous fix."""
        self._previous = None
        logger.info("Spoofing classifier reset")


def create_default_classifier(own_provider_id: str = "fusion-core") -> SpoofingTrustClassifier:
    """
    Create classifier with default thresholds.

    Args:
        own_provider_id: Provider id used by this engine's own location injection

    Returns:
        Configured SpoofingTrustClassifier
    """
    config = SpoofingClassifierConfig(
        max_realistic_speed_m_s=300.0,
        speed_diff_threshold_m_s=10.0,
        bearing_diff_threshold_deg=45.0,
        own_provider_id=own_provider_id,
    )

    return SpoofingTrustClassifier(config)
