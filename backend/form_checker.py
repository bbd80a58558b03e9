"""
Posture Form Checkers.
Classify one frame of landmarks into an ordered list of feedback items
for squats and push-ups.

Checkers are stateless: the same landmarks always give the same feedback,
and nothing carries over from one frame to the next.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from coaches.posture_config import POSTURE_CONFIG, ExerciseMode, parse_exercise_mode
from feedback import FeedbackItem
from kinematics import PostureFeatureExtractor
from landmarks import JointIssue

logger = logging.getLogger(__name__)


def classify_metric(check: Dict[str, Any], value: float) -> Optional[FeedbackItem]:
    """Apply one configured check to a metric value."""
    if value > check["error_above"]:
        return FeedbackItem.error(check["error_message"], JointIssue(check["joint_issue"]))
    if check.get("always_report"):
        return FeedbackItem.positive(check["positive_message"])
    if value < check["positive_below"]:
        return FeedbackItem.positive(check["positive_message"])
    return None


class PostureFormChecker:
    mode: ExerciseMode

    def __init__(self, checks: Optional[List[Dict[str, Any]]] = None):
        self.checks = checks if checks is not None else POSTURE_CONFIG[self.mode]

    def check(self, landmarks: Sequence[Optional[Any]]) -> List[FeedbackItem]:
        """
        Evaluate posture for a single frame.

        Args:
            landmarks: One detected pose (33 entries; any may be None).

        Returns:
            Feedback items in check order. A check whose landmarks are missing
            is skipped, as is a value in the check's middle band.
        """
        metrics = PostureFeatureExtractor.extract_metrics(landmarks, self.mode)
        feedback = []
        for check in self.checks:
            value = metrics.get(check["metric"])
            if value is None or not math.isfinite(value):
                logger.debug("Skipping %s check: landmarks missing", check["metric"])
                continue
            item = classify_metric(check, value)
            if item:
                feedback.append(item)
        return feedback


class SquatFormChecker(PostureFormChecker):
    """Knee depth first, then back angle."""

    mode = ExerciseMode.SQUAT


class PushUpFormChecker(PostureFormChecker):
    """Elbow depth first, then hip sag along the shoulder-hip-ankle line."""

    mode = ExerciseMode.PUSHUP


FORM_CHECKERS: Dict[ExerciseMode, PostureFormChecker] = {
    ExerciseMode.SQUAT: SquatFormChecker(),
    ExerciseMode.PUSHUP: PushUpFormChecker(),
}


def get_available_modes() -> List[str]:
    """Return the list of exercise modes the engine can evaluate."""
    return [mode.value for mode in FORM_CHECKERS]


def evaluate(landmarks: Sequence[Optional[Any]], mode) -> List[FeedbackItem]:
    """
    Evaluate one frame of landmarks for the given exercise mode.

    Raises UnknownExerciseModeError for a mode the engine does not know.
    """
    return FORM_CHECKERS[parse_exercise_mode(mode)].check(landmarks)
