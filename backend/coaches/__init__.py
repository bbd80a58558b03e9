"""
Posture Coaching System

Two components:
1. posture_config - Exercise modes, thresholds and messages per posture check
2. RealtimeCoach - Joint highlighting and arrow markers for the skeleton overlay
"""

from .posture_config import (
    POSTURE_CONFIG,
    ExerciseMode,
    UnknownExerciseModeError,
    parse_exercise_mode,
)
from .realtime_coach import RealtimeCoach

__all__ = [
    "POSTURE_CONFIG",
    "ExerciseMode",
    "UnknownExerciseModeError",
    "parse_exercise_mode",
    "RealtimeCoach",
]
