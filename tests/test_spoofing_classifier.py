"""
Unit tests for the spoofing trust classifier.

Tests cover:
- Individual checks (teleportation, speed, bearing, synthetic provider)
- Flag count bucketing into trust levels
- One-fix memory semantics
"""

import pytest

from fusion_core.localization import SpoofingTrustClassifier, create_default_classifier
from fusion_core.metrics import get_metrics
from fusion_core.proto import SpoofingFlag, TrustLevel


@pytest.fixture
def classifier() -> SpoofingTrustClassifier:
    return create_default_classifier()


class TestFirstFix:
    """Tests for a classifier without history."""

    def test_plain_first_fix_is_trusted(self, classifier, base_fix):
        verdict = classifier.classify(base_fix, 0.0, 0.0)

        assert verdict.level == TrustLevel.TRUSTED
        assert verdict.flags == frozenset()
        assert verdict.confidence == 1.0

    def test_speed_not_checked_without_history(self, classifier, make_fix):
        verdict = classifier.classify(make_fix(speed_m_s=50.0), 0.0, 0.0)

        assert verdict.is_trusted

    def test_bearing_not_checked_without_history(self, classifier, make_fix):
        verdict = classifier.classify(make_fix(bearing_deg=90.0), 0.0, 0.0)

        assert verdict.level == TrustLevel.TRUSTED
        assert verdict.flags == frozenset()

    def test_bearing_checked_once_history_exists(self, classifier, make_fix):
        classifier.classify(make_fix(bearing_deg=90.0, timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(bearing_deg=90.0, timestamp_ms=1000), 0.0, 0.0)

        assert verdict.flags == {SpoofingFlag.BEARING_MISMATCH}


class TestTeleportation:
    """Tests for the implied-speed check."""

    def test_100km_in_1s_flags_teleportation(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(north_m=100000.0, timestamp_ms=1000), 0.0, 0.0)

        assert SpoofingFlag.TELEPORTATION in verdict.flags
        assert verdict.level == TrustLevel.SUSPICIOUS

    def test_realistic_motion_is_trusted(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(north_m=10.0, timestamp_ms=1000), 0.0, 0.0)

        assert verdict.is_trusted

    def test_same_timestamp_skips_motion_checks(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=1000), 0.0, 0.0)

        verdict = classifier.classify(
            make_fix(north_m=100000.0, speed_m_s=80.0, timestamp_ms=1000), 0.0, 0.0
        )

        assert verdict.is_trusted

    def test_apparent_speed_recorded(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)
        classifier.classify(make_fix(north_m=20.0, timestamp_ms=2000), 0.0, 0.0)

        stats = get_metrics().get_histogram_stats('trust_apparent_speed_m_s')
        assert stats['count'] == 1
        assert stats['mean'] == pytest.approx(10.0, rel=0.01)


class TestInertialCrossChecks:
    """Tests for speed and bearing comparison against inertial data."""

    def test_speed_mismatch(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(north_m=5.0, speed_m_s=25.0, timestamp_ms=1000), 12.0, 0.0)

        assert verdict.flags == {SpoofingFlag.SPEED_MISMATCH}

    def test_speed_within_threshold(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(north_m=5.0, speed_m_s=15.0, timestamp_ms=1000), 6.0, 0.0)

        assert verdict.is_trusted

    def test_bearing_difference_wraps_around_north(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(bearing_deg=350.0, timestamp_ms=1000), 0.0, 10.0)

        assert verdict.is_trusted

    def test_bearing_mismatch_over_45_degrees(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(make_fix(bearing_deg=100.0, timestamp_ms=1000), 0.0, 50.0)

        assert verdict.flags == {SpoofingFlag.BEARING_MISMATCH}


class TestSyntheticProvider:
    """Tests for mock provider detection."""

    def test_foreign_synthetic_provider_flagged(self, classifier, make_fix):
        fix = make_fix(is_synthetic_provider=True, provider_id="fake-gps-app")

        verdict = classifier.classify(fix, 0.0, 0.0)

        assert verdict.flags == {SpoofingFlag.SYNTHETIC_PROVIDER}

    def test_own_synthetic_provider_not_flagged(self, classifier, make_fix):
        fix = make_fix(is_synthetic_provider=True, provider_id="fusion-core")

        assert classifier.classify(fix, 0.0, 0.0).is_trusted


class TestTrustLevels:
    """Tests for flag-count bucketing."""

    def test_three_flags_is_spoofed(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(
            make_fix(north_m=100000.0, speed_m_s=50.0, bearing_deg=180.0, timestamp_ms=1000),
            0.0,
            0.0,
        )

        assert verdict.level == TrustLevel.SPOOFED
        assert verdict.confidence == 0.0
        assert verdict.flags == {
            SpoofingFlag.TELEPORTATION,
            SpoofingFlag.SPEED_MISMATCH,
            SpoofingFlag.BEARING_MISMATCH,
        }
        assert verdict.description == "TELEPORTATION, SPEED_MISMATCH, BEARING_MISMATCH"

    def test_two_flags_is_suspicious(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(
            make_fix(north_m=100000.0, speed_m_s=50.0, timestamp_ms=1000), 0.0, 0.0
        )

        assert verdict.level == TrustLevel.SUSPICIOUS
        assert verdict.confidence == 0.5
        assert len(verdict.flags) == 2

    def test_four_flags_is_spoofed(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)

        verdict = classifier.classify(
            make_fix(
                north_m=100000.0, speed_m_s=50.0, bearing_deg=180.0, timestamp_ms=1000,
                is_synthetic_provider=True, provider_id="mock",
            ),
            0.0,
            0.0,
        )

        assert verdict.is_spoofed
        assert len(verdict.flags) == 4

    def test_verdict_counters(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)
        classifier.classify(make_fix(bearing_deg=90.0, timestamp_ms=1000), 0.0, 0.0)

        metrics = get_metrics()
        assert metrics.get_counter('fixes_trusted') == 1
        assert metrics.get_counter('fixes_suspicious') == 1


class TestMemory:
    """Tests for one-fix memory."""

    def test_rejected_fix_becomes_previous(self, classifier, make_fix):
        """The next fix is compared with the spoofed one, not the last good one."""
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)
        spoofed = make_fix(north_m=100000.0, speed_m_s=50.0, bearing_deg=180.0, timestamp_ms=1000)
        classifier.classify(spoofed, 0.0, 0.0)

        assert classifier.previous_fix is spoofed

        verdict = classifier.classify(make_fix(north_m=100010.0, timestamp_ms=2000), 0.0, 0.0)
        assert verdict.is_trusted

    def test_reset_forgets_previous(self, classifier, make_fix):
        classifier.classify(make_fix(timestamp_ms=0), 0.0, 0.0)
        classifier.reset()

        assert classifier.previous_fix is None
        verdict = classifier.classify(make_fix(north_m=100000.0, timestamp_ms=1000), 0.0, 0.0)
        assert verdict.is_trusted
