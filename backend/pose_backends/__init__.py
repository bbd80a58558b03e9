"""Pose backend registry for the posture service.

Allows the WebSocket server to swap between different pose-processing
implementations without touching the transport layer. Builders import
their model stack only when called.
"""

import os
from typing import Callable, Dict

from .base import PoseBackend, PoseEstimator
from .posture_processor import PostureProcessor


def _build_mediapipe_posture() -> PoseBackend:
    from .mediapipe_estimator import DEFAULT_MODEL_URL, MediaPipePoseEstimator

    estimator = MediaPipePoseEstimator(
        model_path=os.getenv("POSE_MODEL_PATH") or None,
        model_url=os.getenv("POSE_MODEL_URL", DEFAULT_MODEL_URL),
        delegate=os.getenv("POSE_DELEGATE", "gpu"),
    )
    return PostureProcessor(
        estimator,
        exercise=os.getenv("DEFAULT_EXERCISE_MODE", "squat"),
    )


BACKEND_REGISTRY: Dict[str, Callable[[], PoseBackend]] = {
    "mediapipe_posture": _build_mediapipe_posture,
}


def get_available_backends():
    """Return the list of registered backend names."""
    return list(BACKEND_REGISTRY.keys())


def build_pose_backend(name: str) -> PoseBackend:
    """Instantiate a pose backend by registry name."""
    builder = BACKEND_REGISTRY.get(name)
    if not builder:
        raise ValueError(
            f"Unknown pose backend '{name}'. "
            f"Available options: {', '.join(get_available_backends())}"
        )
    return builder()


__all__ = [
    "PoseBackend",
    "PoseEstimator",
    "PostureProcessor",
    "BACKEND_REGISTRY",
    "build_pose_backend",
    "get_available_backends",
]
