"""
Landmark topology shared by the posture evaluators and any visualizer.

Follows the MediaPipe 33-point pose model. Coordinates are normalized to the
frame: x, y in [0, 1] with y growing downward, z a relative depth.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple

NUM_LANDMARKS = 33


class PoseLandmark(IntEnum):
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


class JointIssue(str, Enum):
    """Body region a feedback item concerns."""

    KNEES = "knees"
    BACK = "back"
    ELBOWS = "elbows"


# Skeleton drawn by the visualizer: torso, arms, legs
POSE_CONNECTIONS: List[Tuple[int, int]] = [
    (PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER),
    (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP),
    (PoseLandmark.RIGHT_HIP, PoseLandmark.LEFT_HIP),
    (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_SHOULDER),
    (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW),
    (PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW),
    (PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
    (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE),
    (PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE),
    (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE),
    (PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE),
]

# Landmarks highlighted for each joint issue
JOINT_ISSUE_LANDMARKS: Dict[JointIssue, Tuple[int, ...]] = {
    JointIssue.KNEES: (PoseLandmark.LEFT_KNEE, PoseLandmark.RIGHT_KNEE),
    JointIssue.BACK: (
        PoseLandmark.LEFT_SHOULDER,
        PoseLandmark.RIGHT_SHOULDER,
        PoseLandmark.LEFT_HIP,
        PoseLandmark.RIGHT_HIP,
    ),
    JointIssue.ELBOWS: (PoseLandmark.LEFT_ELBOW, PoseLandmark.RIGHT_ELBOW),
}

# Skeleton segments highlighted for each joint issue
JOINT_ISSUE_CONNECTIONS: Dict[JointIssue, Tuple[Tuple[int, int], ...]] = {
    JointIssue.KNEES: (
        (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE),
        (PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE),
        (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE),
        (PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE),
    ),
    JointIssue.BACK: (
        (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP),
        (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP),
        (PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER),
        (PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP),
    ),
    JointIssue.ELBOWS: (
        (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW),
        (PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
        (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW),
        (PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    ),
}


@dataclass(frozen=True)
class Landmark:
    """A single landmark in normalized frame coordinates."""

    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Landmark":
        visibility = d.get("visibility")
        return cls(
            x=float(d["x"]),
            y=float(d["y"]),
            z=float(d.get("z") or 0.0),
            visibility=float(visibility) if visibility is not None else None,
        )

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_dict(self) -> Dict[str, float]:
        data = {"x": self.x, "y": self.y, "z": self.z}
        if self.visibility is not None:
            data["visibility"] = self.visibility
        return data


def to_landmark(raw: Any) -> Optional[Landmark]:
    """Coerce a dict, Landmark or MediaPipe landmark object; None if unusable."""
    if raw is None:
        return None
    if isinstance(raw, Landmark):
        return raw
    try:
        if isinstance(raw, dict):
            return Landmark.from_dict(raw)
        visibility = getattr(raw, "visibility", None)
        return Landmark(
            x=float(raw.x),
            y=float(raw.y),
            z=float(getattr(raw, "z", 0.0) or 0.0),
            visibility=float(visibility) if visibility is not None else None,
        )
    except (KeyError, AttributeError, TypeError, ValueError):
        return None


def parse_landmarks(raw_landmarks: Optional[Sequence[Any]]) -> List[Optional[Landmark]]:
    """Convert one detected pose into a list of landmarks, keeping gaps as None."""
    if not raw_landmarks:
        return []
    return [to_landmark(raw) for raw in raw_landmarks]


def get_landmark(landmarks: Sequence[Optional[Any]], index: int) -> Optional[Landmark]:
    """Landmark at `index`, or None when absent or not finite."""
    if index < 0 or index >= len(landmarks):
        return None
    lm = to_landmark(landmarks[index])
    if lm is None or not lm.is_finite:
        return None
    return lm


def topology_dict() -> Dict[str, Any]:
    """JSON-friendly description of the landmark table for downstream clients."""
    return {
        "num_landmarks": NUM_LANDMARKS,
        "landmarks": {lm.name.lower(): lm.value for lm in PoseLandmark},
        "connections": [[int(a), int(b)] for a, b in POSE_CONNECTIONS],
        "joint_issues": {
            issue.value: {
                "landmarks": [int(i) for i in JOINT_ISSUE_LANDMARKS[issue]],
                "connections": [[int(a), int(b)] for a, b in JOINT_ISSUE_CONNECTIONS[issue]],
            }
            for issue in JointIssue
        },
    }
