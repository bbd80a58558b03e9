"""
MediaPipe Pose Landmarker estimator implementing the PoseEstimator interface.

Provides:
- detect: normalized landmarks (x, y, z, visibility) for a single BGR frame,
  run in VIDEO mode so MediaPipe can track across frames.
- The lite landmarker model is downloaded on first use when missing.
- GPU delegate is tried first, falling back to CPU.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np
import requests
from mediapipe.tasks import python as mp_tasks
from mediapipe.tasks.python import vision

from landmarks import Landmark
from .base import PoseEstimator

logger = logging.getLogger(__name__)

DEFAULT_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
    "pose_landmarker_lite/float16/1/pose_landmarker_lite.task"
)
DEFAULT_MODEL_PATH = Path(__file__).resolve().parent.parent / "models" / "pose_landmarker_lite.task"


def ensure_model_asset(model_path: Path, model_url: str = DEFAULT_MODEL_URL, timeout: float = 60.0) -> Path:
    """Download the landmarker model to model_path unless it already exists."""
    if model_path.exists():
        return model_path
    logger.info("Downloading pose landmarker model from %s", model_url)
    model_path.parent.mkdir(parents=True, exist_ok=True)
    resp = requests.get(model_url, timeout=timeout)
    resp.raise_for_status()
    tmp_path = model_path.with_suffix(model_path.suffix + ".part")
    with open(tmp_path, "wb") as f:
        f.write(resp.content)
    os.replace(tmp_path, model_path)
    logger.info("Pose landmarker model saved to %s", model_path)
    return model_path


class MediaPipePoseEstimator(PoseEstimator):
    """Thin wrapper around the MediaPipe Pose Landmarker task."""

    def __init__(
        self,
        model_path: Optional[str] = None,
        model_url: str = DEFAULT_MODEL_URL,
        delegate: str = "gpu",
        num_poses: int = 1,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ):
        self.model_path = ensure_model_asset(
            Path(model_path) if model_path else DEFAULT_MODEL_PATH, model_url
        )
        self.num_poses = num_poses
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self.landmarker = self._create_landmarker(delegate)

    def _options(self, delegate) -> "vision.PoseLandmarkerOptions":
        return vision.PoseLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(
                model_asset_path=str(self.model_path),
                delegate=delegate,
            ),
            running_mode=vision.RunningMode.VIDEO,
            num_poses=self.num_poses,
            min_pose_detection_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence,
        )

    def _create_landmarker(self, delegate: str):
        Delegate = mp_tasks.BaseOptions.Delegate
        if delegate.lower() == "gpu":
            try:
                return vision.PoseLandmarker.create_from_options(self._options(Delegate.GPU))
            except (RuntimeError, NotImplementedError) as exc:
                logger.warning("GPU delegate unavailable (%s); falling back to CPU.", exc)
        return vision.PoseLandmarker.create_from_options(self._options(Delegate.CPU))

    @staticmethod
    def _to_landmarks(pose) -> List[Landmark]:
        return [
            Landmark(
                x=float(lm.x),
                y=float(lm.y),
                z=float(lm.z),
                visibility=float(lm.visibility) if lm.visibility is not None else None,
            )
            for lm in pose
        ]

    def detect(self, frame_bgr: np.ndarray, timestamp_ms: int) -> List[List[Landmark]]:
        """Return one landmark list per detected pose (empty when none)."""
        image_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image_rgb)
        results = self.landmarker.detect_for_video(mp_image, int(timestamp_ms))
        if not results.pose_landmarks:
            return []
        return [self._to_landmarks(pose) for pose in results.pose_landmarks]

    def close(self) -> None:
        self.landmarker.close()
