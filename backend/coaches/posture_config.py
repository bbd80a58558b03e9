"""
Posture check thresholds and messages per exercise mode.

Each check classifies one metric from PostureFeatureExtractor:
- value > error_above            -> error item tagged with joint_issue
- value < positive_below         -> positive item
- otherwise                      -> nothing (the "middle band")

Checks with always_report=True have no middle band: any value that is not
an error is reported as positive. Only the push-up back alignment works this
way; squat checks stay silent in their middle band.
"""

from enum import Enum
from typing import Any, Dict, List


class ExerciseMode(str, Enum):
    SQUAT = "squat"
    PUSHUP = "pushup"


class UnknownExerciseModeError(ValueError):
    """Raised when a caller asks for an exercise mode the engine does not know."""

    def __init__(self, mode: Any):
        self.mode = mode
        super().__init__(
            f"Unknown exercise mode '{mode}'. "
            f"Available options: {', '.join(m.value for m in ExerciseMode)}"
        )


def parse_exercise_mode(mode: Any) -> ExerciseMode:
    if isinstance(mode, ExerciseMode):
        return mode
    try:
        return ExerciseMode(mode)
    except ValueError:
        raise UnknownExerciseModeError(mode) from None


POSTURE_CONFIG: Dict[ExerciseMode, List[Dict[str, Any]]] = {
    ExerciseMode.SQUAT: [
        {
            "metric": "knee_angle",
            "description": "Mean hip-knee-ankle angle of both legs.",
            "unit": "degrees",
            "error_above": 150.0,
            "positive_below": 80.0,
            "joint_issue": "knees",
            "error_message": "Bend your knees more for a proper squat depth",
            "positive_message": "Good squat depth",
        },
        {
            "metric": "back_angle",
            "description": "Mean shoulder-hip angle from vertical (0 = upright).",
            "unit": "degrees",
            "error_above": 45.0,
            "positive_below": 30.0,
            "joint_issue": "back",
            "error_message": "Keep your back more upright, you're leaning too far forward",
            "positive_message": "Good back position",
        },
    ],
    ExerciseMode.PUSHUP: [
        {
            "metric": "elbow_angle",
            "description": "Mean shoulder-elbow-wrist angle of both arms.",
            "unit": "degrees",
            "error_above": 120.0,
            "positive_below": 70.0,
            "joint_issue": "elbows",
            "error_message": "Lower your chest more, your elbows should bend to about 90 degrees",
            "positive_message": "Good depth on your push-up",
        },
        {
            "metric": "back_alignment",
            "description": "Deviation from a straight shoulder-hip-ankle line.",
            "unit": "ratio",
            "error_above": 0.05,
            "always_report": True,
            "joint_issue": "back",
            "error_message": "Keep your back straight, avoid sagging your hips",
            "positive_message": "Good back alignment",
        },
    ],
}
