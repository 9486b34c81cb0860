"""
Localization Module: dead reckoning, trust classification, peer fusion,
road snapping and the orchestrator that ties them together.

Key classes:
- DeadReckoningIntegrator: Inertial position integration with ZUPT
- SpoofingTrustClassifier: Satellite fix plausibility vs. inertial data
- PeerConsensusFuser: Confidence-weighted centroid of peer estimates
- RoadSegmentIndex / RoadSnapMatcher: Nearest-road map matching
- FusionOrchestrator: Publish / reseed / suppress decisions
"""

from .dead_reckoning import (
    DeadReckoningConfig,
    DeadReckoningIntegrator,
    NavigationState,
)
from .spoofing_classifier import (
    SpoofingClassifierConfig,
    SpoofingTrustClassifier,
    create_default_classifier,
)
from .peer_consensus import PeerConsensusFuser
from .road_index import RoadSegmentIndex
from .road_snap import (
    RoadSnapConfig,
    RoadSnapMatcher,
    segment_bearing,
)
from .fusion_orchestrator import (
    FusionDecision,
    FusionOrchestrator,
    InertialPublishPolicy,
    OrchestratorConfig,
    create_default_orchestrator,
    status_text,
)

__all__ = [
    # Dead reckoning
    'DeadReckoningConfig',
    'DeadReckoningIntegrator',
    'NavigationState',
    # Trust
    'SpoofingClassifierConfig',
    'SpoofingTrustClassifier',
    'create_default_classifier',
    # Peers
    'PeerConsensusFuser',
    # Roads
    'RoadSegmentIndex',
    'RoadSnapConfig',
    'RoadSnapMatcher',
    'segment_bearing',
    # Orchestration
    'FusionDecision',
    'FusionOrchestrator',
    'InertialPublishPolicy',
    'OrchestratorConfig',
    'create_default_orchestrator',
    'status_text',
]
