"""
Kinematic utilities for posture evaluation.

Implements:
- Planar joint angles (angle at a vertex of three landmarks)
- Torso angle from vertical
- Three-point alignment deviation (how straight a chain of points is)
- Per-exercise metric extraction from one frame of landmarks

All computations use the (x, y) image plane; z is ignored.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from coaches.posture_config import ExerciseMode, parse_exercise_mode
from landmarks import Landmark, PoseLandmark, get_landmark


def _xy(point: Any) -> np.ndarray:
    """2D coordinates of a landmark object or an (x, y[, z]) sequence."""
    if hasattr(point, "x") and hasattr(point, "y"):
        return np.array([point.x, point.y], dtype=float)
    return np.array([point[0], point[1]], dtype=float)


def compute_joint_angle(a, b, c) -> float:
    """
    Planar angle at point b formed by points a-b-c, in degrees [0, 180].

    Coincident points are not special-cased: atan2(0, 0) is 0, so a
    zero-length ray yields a boundary value instead of NaN.
    """
    a, b, c = _xy(a), _xy(b), _xy(c)
    radians = np.arctan2(c[1] - b[1], c[0] - b[0]) - np.arctan2(a[1] - b[1], a[0] - b[0])
    angle = np.abs(radians * 180.0 / np.pi)
    if angle > 180.0:
        angle = 360.0 - angle
    return float(angle)


def compute_vertical_angle(top, bottom) -> float:
    """
    Deviation of the segment bottom->top from vertical, in degrees.

    Image y grows downward, so the offset is taken bottom minus top and an
    upright segment gives 0. No wraparound: a segment pointing straight down
    gives 180.
    """
    top, bottom = _xy(top), _xy(bottom)
    dx, dy = bottom - top
    return float(np.abs(np.degrees(np.arctan2(dx, dy))))


def compute_alignment_deviation(a, b, c) -> float:
    """
    How far the chain a->b->c is from a straight line, in [0, 1].

    0 means perfectly straight, 1 means folded back on itself. A zero-length
    segment has no direction and counts as aligned (0.0).
    """
    a, b, c = _xy(a), _xy(b), _xy(c)
    ab = b - a
    bc = c - b
    ab_mag = np.linalg.norm(ab)
    bc_mag = np.linalg.norm(bc)
    if ab_mag < 1e-9 or bc_mag < 1e-9:
        return 0.0
    dot = np.clip(np.dot(ab / ab_mag, bc / bc_mag), -1.0, 1.0)
    return float((1.0 - dot) / 2.0)


def midpoint(p, q) -> Tuple[float, float]:
    """Arithmetic mean of two points on the image plane."""
    m = (_xy(p) + _xy(q)) / 2.0
    return float(m[0]), float(m[1])


class PostureFeatureExtractor:
    """
    Extracts the metrics each posture check classifies.

    Every metric averages or combines the left and right side; when any
    landmark it needs is missing the metric is None.
    """

    @staticmethod
    def _points(landmarks: Sequence[Optional[Any]], *indices: int) -> Optional[Tuple[Landmark, ...]]:
        points = tuple(get_landmark(landmarks, idx) for idx in indices)
        if any(p is None for p in points):
            return None
        return points  # type: ignore[return-value]

    @staticmethod
    def knee_angle(landmarks: Sequence[Optional[Any]]) -> Optional[float]:
        pts = PostureFeatureExtractor._points(
            landmarks,
            PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE,
            PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE,
        )
        if pts is None:
            return None
        left = compute_joint_angle(pts[0], pts[1], pts[2])
        right = compute_joint_angle(pts[3], pts[4], pts[5])
        return (left + right) / 2.0

    @staticmethod
    def back_angle(landmarks: Sequence[Optional[Any]]) -> Optional[float]:
        pts = PostureFeatureExtractor._points(
            landmarks,
            PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP,
            PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP,
        )
        if pts is None:
            return None
        left = compute_vertical_angle(pts[0], pts[1])
        right = compute_vertical_angle(pts[2], pts[3])
        return (left + right) / 2.0

    @staticmethod
    def elbow_angle(landmarks: Sequence[Optional[Any]]) -> Optional[float]:
        pts = PostureFeatureExtractor._points(
            landmarks,
            PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST,
            PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST,
        )
        if pts is None:
            return None
        left = compute_joint_angle(pts[0], pts[1], pts[2])
        right = compute_joint_angle(pts[3], pts[4], pts[5])
        return (left + right) / 2.0

    @staticmethod
    def back_alignment(landmarks: Sequence[Optional[Any]]) -> Optional[float]:
        pts = PostureFeatureExtractor._points(
            landmarks,
            PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER,
            PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP,
            PoseLandmark.LEFT_ANKLE, PoseLandmark.RIGHT_ANKLE,
        )
        if pts is None:
            return None
        return compute_alignment_deviation(
            midpoint(pts[0], pts[1]),
            midpoint(pts[2], pts[3]),
            midpoint(pts[4], pts[5]),
        )

    @staticmethod
    def extract_metrics(landmarks: Sequence[Optional[Any]], mode) -> Dict[str, Optional[float]]:
        """
        Returns the named metrics for an exercise mode, e.g.
        {"knee_angle": 95.2, "back_angle": None} for a squat frame whose
        shoulders are out of view.
        """
        helper = PostureFeatureExtractor
        mode = parse_exercise_mode(mode)
        if mode is ExerciseMode.SQUAT:
            return {
                "knee_angle": helper.knee_angle(landmarks),
                "back_angle": helper.back_angle(landmarks),
            }
        return {
            "elbow_angle": helper.elbow_angle(landmarks),
            "back_alignment": helper.back_alignment(landmarks),
        }
