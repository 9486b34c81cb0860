"""
Trust Verdict Schema.

Output of the spoofing trust classifier for one satellite fix.
"""

from dataclasses import dataclass
from typing import FrozenSet
from enum import Enum


class TrustLevel(Enum):
    """Categorical trust judgment of one satellite fix."""

    TRUSTED = 0
    SUSPICIOUS = 1
    SPOOFED = 2


class SpoofingFlag(Enum):
    """Individual anomaly raised while classifying a fix."""

    TELEPORTATION = "teleportation"            # Implied speed not physically possible
    SPEED_MISMATCH = "speed_mismatch"          # Fix speed disagrees with inertial speed
    BEARING_MISMATCH = "bearing_mismatch"      # Fix bearing disagrees with inertial heading
    SYNTHETIC_PROVIDER = "synthetic_provider"  # Foreign mock/test location provider
    NO_MOVEMENT = "no_movement"                # Reserved, not raised by the classifier


# Fixed level -> confidence mapping
LEVEL_CONFIDENCE = {
    TrustLevel.TRUSTED: 1.0,
    TrustLevel.SUSPICIOUS: 0.5,
    TrustLevel.SPOOFED: 0.0,
}


@dataclass(frozen=True)
class TrustVerdict:
    """
    Trust verdict for one satellite fix.

    Attributes:
        level: Trust level bucket
        flags: Anomaly flags that produced the level
        confidence: 1.0 trusted, 0.5 suspicious, 0.0 spoofed
    """

    level: TrustLevel
    flags: FrozenSet[SpoofingFlag] = frozenset()
    confidence: float = 1.0

    @classmethod
    def from_flags(cls, flags) -> "TrustVerdict":
        """
        Bucket a set of flags into a verdict.

        >= 3 flags is SPOOFED, 1-2 is SUSPICIOUS, none is TRUSTED.
        """
        flags = frozenset(flags)

        if len(flags) >= 3:
            level = TrustLevel.SPOOFED
        elif flags:
            level = TrustLevel.SUSPICIOUS
        else:
            level = TrustLevel.TRUSTED

        return cls(level=level, flags=flags, confidence=LEVEL_CONFIDENCE[level])

    @property
    def is_trusted(self) -> bool:
        return self.level == TrustLevel.TRUSTED

    @property
    def is_spoofed(self) -> bool:
        return self.level == TrustLevel.SPOOFED

    @property
    def description(self) -> str:
        """Comma-separated flag names, in declaration order."""
        return ", ".join(flag.name for flag in SpoofingFlag if flag in self.flags)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'level': self.level.name,
            'flags': [flag.name for flag in SpoofingFlag if flag in self.flags],
            'confidence': self.confidence,
        }
