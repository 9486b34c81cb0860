"""
Fusion engine configuration.

Module-level dicts hold the tunable settings; build_engine_config() turns
them (plus optional overrides) into typed component configs.
"""

from dataclasses import dataclass, field
from typing import Optional
import copy

from fusion_core.sensors.movement_classifier import MovementClassifierConfig
from fusion_core.sensors.preprocessor import PreprocessorConfig
from fusion_core.localization.dead_reckoning import DeadReckoningConfig
from fusion_core.localization.fusion_orchestrator import (
    FusionOrchestrator,
    InertialPublishPolicy,
    OrchestratorConfig,
)
from fusion_core.localization.road_index import RoadSegmentIndex
from fusion_core.localization.road_snap import RoadSnapConfig
from fusion_core.localization.spoofing_classifier import SpoofingClassifierConfig

# Logging
LOGGING_CONFIG = {
    "level": "INFO",
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# Engine thresholds
ENGINE_CONFIG = {
    "device_id": 0,
    "inertial_publish_policy": "always",    # or "while_spoofed"
    "trust": {
        "max_realistic_speed_m_s": 300.0,   # ~1080 km/h
        "speed_diff_threshold_m_s": 10.0,
        "bearing_diff_threshold_deg": 45.0,
        "own_provider_id": "fusion-core",
    },
    "movement": {
        "stationary_threshold_m_s2": 0.1,
        "stationary_time_ms": 1000,
    },
    "dead_reckoning": {
        "max_sample_gap_s": 1.0,
        "confidence_decay_s": 60.0,
        "max_confidence_loss": 0.9,
    },
    "road_snap": {
        "search_radius_m": 50.0,
        "max_snap_distance_m": 30.0,
        "max_candidates": 100,
    },
    "preprocessor": {
        "gravity_alpha": 0.8,
        "min_calibration_samples": 10,
    },
    "event_queue_size": 1000,
}

# Replay CLI
REPLAY_CONFIG = {
    "print_interval": 1,        # print every Nth published location
    "snap_published": False,    # also print the road-snapped location
}


@dataclass
class EngineConfig:
    """All component configs for one engine instance."""

    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    preprocessor: PreprocessorConfig = field(default_factory=PreprocessorConfig)
    event_queue_size: int = 1000


def _merge(base: dict, overrides: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if key not in merged:
            raise ValueError(f"Unknown engine setting: {key}")
        if isinstance(merged[key], dict):
            if not isinstance(value, dict):
                raise ValueError(f"Engine setting '{key}' expects a mapping")
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_engine_config(overrides: Optional[dict] = None) -> EngineConfig:
    """
    Build typed engine config from ENGINE_CONFIG.

    Args:
        overrides: Nested dict with the same shape as ENGINE_CONFIG

    Returns:
        EngineConfig

    Raises:
        ValueError: On unknown keys or an unknown publish policy
    """
    settings = _merge(ENGINE_CONFIG, overrides or {})

    try:
        policy = InertialPublishPolicy(settings["inertial_publish_policy"])
    except ValueError:
        raise ValueError(
            f"Unknown inertial publish policy: {settings['inertial_publish_policy']}"
        ) from None

    dead_reckoning = DeadReckoningConfig(
        movement_config=MovementClassifierConfig(**settings["movement"]),
        **settings["dead_reckoning"],
    )

    orchestrator = OrchestratorConfig(
        device_id=int(settings["device_id"]),
        inertial_publish_policy=policy,
        classifier=SpoofingClassifierConfig(**settings["trust"]),
        dead_reckoning=dead_reckoning,
        road_snap=RoadSnapConfig(**settings["road_snap"]),
    )

    return EngineConfig(
        orchestrator=orchestrator,
        preprocessor=PreprocessorConfig(**settings["preprocessor"]),
        event_queue_size=int(settings["event_queue_size"]),
    )


def create_engine(
    config: Optional[EngineConfig] = None,
    road_index: Optional[RoadSegmentIndex] = None,
) -> FusionOrchestrator:
    """Create an orchestrator from an EngineConfig (defaults if None)."""
    config = config or build_engine_config()
    return FusionOrchestrator(config.orchestrator, road_index=road_index)
