import copy

import pytest

from coaches import ExerciseMode, UnknownExerciseModeError
from coaches.posture_config import POSTURE_CONFIG
from feedback import FeedbackItem
from form_checker import (
    PushUpFormChecker,
    SquatFormChecker,
    classify_metric,
    evaluate,
    get_available_modes,
)
from landmarks import JointIssue, PoseLandmark


def summarize(feedback):
    return [(item.is_error, item.joint_issue) for item in feedback]


def test_squat_shallow_with_upright_back(squat_pose):
    feedback = evaluate(squat_pose(160.0, 20.0), "squat")
    assert summarize(feedback) == [(True, JointIssue.KNEES), (False, None)]
    assert feedback[0].message == "Bend your knees more for a proper squat depth"
    assert feedback[1].message == "Good back position"


def test_squat_middle_band_emits_nothing(squat_pose):
    assert evaluate(squat_pose(100.0, 35.0), "squat") == []


def test_squat_deep_with_forward_lean(squat_pose):
    feedback = evaluate(squat_pose(70.0, 50.0), ExerciseMode.SQUAT)
    assert feedback == [
        FeedbackItem.positive("Good squat depth"),
        FeedbackItem.error(
            "Keep your back more upright, you're leaning too far forward", JointIssue.BACK
        ),
    ]


def test_squat_knee_only_when_back_in_middle_band(squat_pose):
    feedback = evaluate(squat_pose(170.0, 40.0), "squat")
    assert summarize(feedback) == [(True, JointIssue.KNEES)]


def test_squat_missing_knee_skips_knee_check_only(squat_pose):
    pose = squat_pose(160.0, 20.0)
    pose[PoseLandmark.RIGHT_KNEE] = None
    feedback = evaluate(pose, "squat")
    assert feedback == [FeedbackItem.positive("Good back position")]


def test_squat_non_finite_landmark_counts_as_missing(squat_pose):
    pose = squat_pose(160.0, 50.0)
    pose[PoseLandmark.LEFT_ANKLE] = {"x": float("nan"), "y": 0.9, "z": 0.0}
    feedback = evaluate(pose, "squat")
    assert summarize(feedback) == [(True, JointIssue.BACK)]


def test_pushup_middle_elbow_and_sagging_back(pushup_pose):
    feedback = evaluate(pushup_pose(90.0, 0.10), "pushup")
    assert feedback == [
        FeedbackItem.error("Keep your back straight, avoid sagging your hips", JointIssue.BACK)
    ]


def test_pushup_high_position_straight_back(pushup_pose):
    feedback = evaluate(pushup_pose(160.0, 0.0), "pushup")
    assert summarize(feedback) == [(True, JointIssue.ELBOWS), (False, None)]
    assert feedback[0].message == "Lower your chest more, your elbows should bend to about 90 degrees"
    assert feedback[1].message == "Good back alignment"


def test_pushup_bottom_position(pushup_pose):
    feedback = evaluate(pushup_pose(60.0, 0.02), "pushup")
    assert [item.message for item in feedback] == [
        "Good depth on your push-up",
        "Good back alignment",
    ]


@pytest.mark.parametrize("deviation", [0.0, 0.01, 0.04, 0.06, 0.2, 0.5, 0.9])
def test_pushup_back_check_always_reports(pushup_pose, deviation):
    feedback = evaluate(pushup_pose(95.0, deviation), "pushup")
    assert len(feedback) == 1
    assert feedback[0].is_error == (deviation > 0.05)


def test_pushup_degenerate_body_line_reports_aligned(pushup_pose):
    pose = pushup_pose(95.0, 0.3)
    for idx in (PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP):
        pose[idx] = dict(pose[PoseLandmark.LEFT_SHOULDER])
    feedback = evaluate(pose, "pushup")
    assert feedback == [FeedbackItem.positive("Good back alignment")]


def test_pushup_missing_ankle_skips_back_check(pushup_pose):
    pose = pushup_pose(160.0, 0.3)
    pose[PoseLandmark.LEFT_ANKLE] = None
    feedback = evaluate(pose, "pushup")
    assert summarize(feedback) == [(True, JointIssue.ELBOWS)]


def test_short_or_empty_landmark_list():
    assert evaluate([], "squat") == []
    assert evaluate([None] * 12, "pushup") == []


def test_evaluate_is_pure(squat_pose):
    pose = squat_pose(160.0, 50.0)
    original = copy.deepcopy(pose)
    first = evaluate(pose, "squat")
    for _ in range(5):
        assert evaluate(pose, "squat") == first
    assert pose == original


def test_checker_classes_match_evaluate(squat_pose, pushup_pose):
    assert SquatFormChecker().check(squat_pose(160.0, 20.0)) == evaluate(squat_pose(160.0, 20.0), "squat")
    assert PushUpFormChecker().check(pushup_pose(90.0, 0.1)) == evaluate(pushup_pose(90.0, 0.1), "pushup")


@pytest.mark.parametrize("mode", ["lunge", "", None, "Squat"])
def test_unknown_mode_fails_fast(squat_pose, mode):
    with pytest.raises(UnknownExerciseModeError) as excinfo:
        evaluate(squat_pose(160.0, 20.0), mode)
    assert isinstance(excinfo.value, ValueError)


def test_available_modes():
    assert get_available_modes() == ["squat", "pushup"]


def test_threshold_boundaries_fall_in_middle_band():
    knee, back = POSTURE_CONFIG[ExerciseMode.SQUAT]
    assert classify_metric(knee, 150.0) is None
    assert classify_metric(knee, 80.0) is None
    assert classify_metric(knee, 150.01).is_error
    assert classify_metric(back, 45.0) is None
    assert classify_metric(back, 30.0) is None
    assert not classify_metric(back, 29.99).is_error


def test_pushup_back_threshold_is_inclusive_for_positive():
    _, back = POSTURE_CONFIG[ExerciseMode.PUSHUP]
    assert classify_metric(back, 0.05) == FeedbackItem.positive("Good back alignment")
    assert classify_metric(back, 0.0501).is_error
