"""
Unit tests for engine configuration.

Tests cover:
- Defaults match the documented thresholds
- Nested overrides
- Rejection of unknown settings
"""

import pytest

from fusion_core import config
from fusion_core.localization import FusionOrchestrator, InertialPublishPolicy


class TestBuildEngineConfig:

    def test_defaults(self):
        engine_config = config.build_engine_config()
        orch = engine_config.orchestrator

        assert orch.device_id == 0
        assert orch.inertial_publish_policy == InertialPublishPolicy.ALWAYS
        assert orch.classifier.max_realistic_speed_m_s == 300.0
        assert orch.classifier.speed_diff_threshold_m_s == 10.0
        assert orch.classifier.bearing_diff_threshold_deg == 45.0
        assert orch.dead_reckoning.max_sample_gap_s == 1.0
        assert orch.dead_reckoning.movement_config.stationary_time_ms == 1000
        assert orch.road_snap.search_radius_m == 50.0
        assert orch.road_snap.max_snap_distance_m == 30.0
        assert orch.road_snap.max_candidates == 100
        assert engine_config.preprocessor.gravity_alpha == 0.8
        assert engine_config.event_queue_size == 1000

    def test_nested_override(self):
        engine_config = config.build_engine_config({
            "device_id": 99,
            "inertial_publish_policy": "while_spoofed",
            "trust": {"speed_diff_threshold_m_s": 5.0},
        })
        orch = engine_config.orchestrator

        assert orch.device_id == 99
        assert orch.inertial_publish_policy == InertialPublishPolicy.WHILE_SPOOFED
        assert orch.classifier.speed_diff_threshold_m_s == 5.0
        # Untouched siblings keep defaults
        assert orch.classifier.bearing_diff_threshold_deg == 45.0

    def test_override_does_not_mutate_module_defaults(self):
        config.build_engine_config({"trust": {"max_realistic_speed_m_s": 1.0}})

        assert config.ENGINE_CONFIG["trust"]["max_realistic_speed_m_s"] == 300.0

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError):
            config.build_engine_config({"no_such_setting": 1})

    def test_unknown_nested_key_rejected(self):
        with pytest.raises(ValueError):
            config.build_engine_config({"road_snap": {"radius": 10}})

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError):
            config.build_engine_config({"inertial_publish_policy": "sometimes"})


class TestCreateEngine:

    def test_create_engine_uses_config(self, road_index):
        engine = config.create_engine(
            config.build_engine_config({"device_id": 5}),
            road_index=road_index,
        )

        assert isinstance(engine, FusionOrchestrator)
        assert engine.config.device_id == 5
        assert engine.snapper is not None

    def test_create_engine_defaults(self):
        engine = config.create_engine()

        assert engine.snapper is None
