"""
Per-connection posture processor.

Drives the stateless form checkers frame by frame: it owns the caller-side
state (selected exercise, last processed timestamp, current result) and
nothing of it leaks into evaluation.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from coaches import ExerciseMode, RealtimeCoach, UnknownExerciseModeError, parse_exercise_mode
from feedback import FeedbackItem
from form_checker import evaluate, get_available_modes
from landmarks import Landmark, parse_landmarks
from .base import PoseBackend, PoseEstimator


class PostureProcessor(PoseBackend):
    name = "posture_2d"
    dimension_hint = "2D"

    def __init__(
        self,
        estimator: Optional[PoseEstimator] = None,
        exercise: Any = ExerciseMode.SQUAT,
    ):
        self.logger = logging.getLogger(__name__)
        self.estimator = estimator
        self.realtime_coach = RealtimeCoach()
        self.selected_exercise: ExerciseMode = parse_exercise_mode(exercise)
        self.last_timestamp_ms: Optional[int] = None
        self.reset_state()

    def reset_state(self) -> None:
        # last_timestamp_ms survives a reset: the estimator keeps its own
        # video clock and rejects any timestamp at or below the last one.
        self.landmarks: List[Optional[Landmark]] = []
        self.feedback: List[FeedbackItem] = []

    def select_exercise(self, exercise: Any) -> ExerciseMode:
        """Switch exercise mode; an unknown mode raises before anything changes."""
        mode = parse_exercise_mode(exercise)
        if mode is not self.selected_exercise:
            self.logger.info("Exercise mode changed: %s -> %s", self.selected_exercise.value, mode.value)
        self.selected_exercise = mode
        self.feedback = []
        return mode

    def handle_command(self, command_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        command = command_data.get("command")
        if command == "select_exercise":
            try:
                mode = self.select_exercise(command_data.get("exercise"))
            except UnknownExerciseModeError as exc:
                return {"event": "error", "command": command, "message": str(exc)}
            return {"event": "exercise_selected", "exercise": mode.value}
        if command == "reset":
            self.reset_state()
            return {"event": "reset", "exercise": self.selected_exercise.value}
        if command == "get_modes":
            return {"event": "modes", "modes": get_available_modes()}
        self.logger.warning("Unknown command: %s", command)
        return {"event": "error", "command": command, "message": f"Unknown command '{command}'"}

    def _accept_timestamp(self, timestamp_ms: int) -> bool:
        # Only evaluate a new frame; timestamps must also increase for the
        # estimator's video mode.
        if self.last_timestamp_ms is not None and timestamp_ms <= self.last_timestamp_ms:
            return False
        self.last_timestamp_ms = timestamp_ms
        return True

    def process_frame(
        self, frame_bgr: np.ndarray, timestamp_ms: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """Detect a pose in the frame and evaluate it; None when nothing new."""
        if self.estimator is None:
            raise RuntimeError("PostureProcessor has no pose estimator attached.")
        if timestamp_ms is None:
            timestamp_ms = int(time.monotonic() * 1000)
        if not self._accept_timestamp(timestamp_ms):
            return None
        poses = self.estimator.detect(frame_bgr, timestamp_ms)
        return self._update(poses, timestamp_ms)

    def process_landmarks(
        self, poses: Sequence[Sequence[Any]], timestamp_ms: int
    ) -> Optional[Dict[str, Any]]:
        """
        Evaluate already-detected poses (first pose only).

        Returns None and keeps the previous result when the timestamp is not
        new or no pose was detected.
        """
        if not self._accept_timestamp(timestamp_ms):
            return None
        return self._update(poses, timestamp_ms)

    def _update(self, poses: Sequence[Sequence[Any]], timestamp_ms: int) -> Optional[Dict[str, Any]]:
        if not poses:
            return None
        landmarks = parse_landmarks(poses[0])
        self.landmarks = landmarks
        self.feedback = evaluate(landmarks, self.selected_exercise)
        return self.build_payload(timestamp_ms)

    def build_payload(self, timestamp_ms: Optional[int] = None) -> Dict[str, Any]:
        coach = self.realtime_coach
        return {
            "mode": self.selected_exercise.value,
            "timestamp_ms": timestamp_ms,
            "landmarks": [lm.to_dict() if lm and lm.is_finite else None for lm in self.landmarks],
            "feedback": [item.to_dict() for item in self.feedback],
            "error_joints": coach.get_error_joints(self.feedback),
            "error_connections": [list(pair) for pair in coach.get_error_connections(self.feedback)],
            "issue_markers": coach.get_issue_markers(self.feedback, self.landmarks),
        }

    def close(self) -> None:
        if self.estimator is not None:
            self.estimator.close()
