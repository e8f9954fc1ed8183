"""
Pose Landmarks
==============

Timeline data supplied by the external pose estimator:
- Landmark: named 3-D point with visibility
- Frame: timestamped set of landmarks
- TorsoLandmark: the four points the motion extractor needs
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence


class TorsoLandmark(Enum):
    """Landmarks spanning the torso (shoulders to hips)"""
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"


TORSO_LANDMARKS = tuple(TorsoLandmark)


def normalize_landmark_name(name: str) -> str:
    """'Left-Shoulder', 'LEFT_SHOULDER' and 'left shoulder' -> 'left_shoulder'"""
    return name.strip().lower().replace("-", "_").replace(" ", "_")


@dataclass(frozen=True)
class Landmark:
    """A single pose landmark"""
    name: str
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0

    def is_finite(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.z))


@dataclass(frozen=True)
class Frame:
    """All landmarks for a single frame"""
    index: int
    timestamp_ms: float
    landmarks: Dict[str, Landmark] = field(default_factory=dict)

    def get(self, name) -> Optional[Landmark]:
        if isinstance(name, TorsoLandmark):
            name = name.value
        return self.landmarks.get(name)

    @classmethod
    def from_landmarks(cls, index: int, timestamp_ms: float,
                       landmarks: Iterable[Landmark]) -> "Frame":
        """Builds a frame, keyed by normalized landmark name"""
        mapping = {}
        for lm in landmarks:
            key = normalize_landmark_name(lm.name)
            if key != lm.name:
                lm = Landmark(key, lm.x, lm.y, lm.z, lm.visibility)
            mapping[key] = lm
        return cls(index=index, timestamp_ms=timestamp_ms, landmarks=mapping)


def timeline_duration_ms(timeline: Sequence[Frame]) -> float:
    """Time between first and last frame"""
    if len(timeline) < 2:
        return 0.0
    return float(timeline[-1].timestamp_ms - timeline[0].timestamp_ms)
