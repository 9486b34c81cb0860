"""
Location Fusion & Trust Engine Core Package.

Decides which location to trust by cross-checking satellite fixes against
inertial dead reckoning, falls back to inertial navigation while satellite
data looks spoofed, fuses peer device estimates and snaps to roads.

Package structure:
- io: Bounded event queue and worker thread
- proto: Value types and the peer sync wire format
- sensors: Orientation, movement detection, sensor preprocessing
- localization: Dead reckoning, trust classifier, peer fusion, road snap, orchestrator
- metrics: Diagnostics, counters, histograms
- utils: Geodesy helpers
"""

__version__ = "0.1.0"

from .metrics import get_metrics
from .localization import FusionOrchestrator
