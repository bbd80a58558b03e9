import math
from typing import Dict, List, Optional, Tuple

import pytest

from landmarks import NUM_LANDMARKS, PoseLandmark


def _ray(origin: Tuple[float, float], theta_deg: float, length: float = 0.2) -> Tuple[float, float]:
    """Point at `length` from origin; theta 0 points up the image, 90 to the right."""
    theta = math.radians(theta_deg)
    return origin[0] + length * math.sin(theta), origin[1] - length * math.cos(theta)


def _make_pose(points: Dict[int, Optional[Tuple[float, float]]]) -> List[Optional[dict]]:
    """33 landmark dicts; unspecified ones sit at the frame centre, None marks a gap."""
    pose: List[Optional[dict]] = [
        {"x": 0.5, "y": 0.5, "z": 0.0, "visibility": 0.9} for _ in range(NUM_LANDMARKS)
    ]
    for idx, xy in points.items():
        if xy is None:
            pose[idx] = None
        else:
            pose[idx] = {"x": xy[0], "y": xy[1], "z": 0.0, "visibility": 0.9}
    return pose


def _squat_pose(knee_angle: float, back_angle: float) -> List[Optional[dict]]:
    points = {}
    for hip_idx, knee_idx, ankle_idx, shoulder_idx, x in (
        (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE, PoseLandmark.LEFT_SHOULDER, 0.45),
        (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE, PoseLandmark.RIGHT_SHOULDER, 0.55),
    ):
        knee = (x, 0.7)
        hip = _ray(knee, 0.0)
        points[knee_idx] = knee
        points[hip_idx] = hip
        points[ankle_idx] = _ray(knee, knee_angle)
        points[shoulder_idx] = _ray(hip, back_angle, 0.3)
    return _make_pose(points)


def _pushup_pose(elbow_angle: float, back_deviation: float) -> List[Optional[dict]]:
    points = {}
    for shoulder_idx, elbow_idx, wrist_idx in (
        (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
        (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    ):
        shoulder = (0.2, 0.5)
        elbow = (0.2, 0.6)
        points[shoulder_idx] = shoulder
        points[elbow_idx] = elbow
        points[wrist_idx] = _ray(elbow, elbow_angle, 0.1)

    # Body line: shoulders -> hips runs along +x, ankles bend away by phi
    phi = math.acos(1.0 - 2.0 * back_deviation)
    hip = (0.5, 0.5)
    ankle = (hip[0] + 0.3 * math.cos(phi), hip[1] + 0.3 * math.sin(phi))
    points[PoseLandmark.LEFT_HIP] = hip
    points[PoseLandmark.RIGHT_HIP] = hip
    points[PoseLandmark.LEFT_ANKLE] = ankle
    points[PoseLandmark.RIGHT_ANKLE] = ankle
    return _make_pose(points)


@pytest.fixture
def ray():
    return _ray


@pytest.fixture
def make_pose():
    return _make_pose


@pytest.fixture
def squat_pose():
    return _squat_pose


@pytest.fixture
def pushup_pose():
    return _pushup_pose
