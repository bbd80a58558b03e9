import pytest

from coaches import RealtimeCoach
from feedback import FeedbackItem
from landmarks import JointIssue, PoseLandmark

KNEES_ERROR = FeedbackItem.error("Bend your knees more for a proper squat depth", JointIssue.KNEES)
BACK_ERROR = FeedbackItem.error("Keep your back straight, avoid sagging your hips", JointIssue.BACK)
GOOD_DEPTH = FeedbackItem.positive("Good squat depth")


@pytest.fixture
def coach():
    return RealtimeCoach()


def test_error_joints(coach):
    assert coach.get_error_joints([KNEES_ERROR, BACK_ERROR]) == [11, 12, 23, 24, 25, 26]


def test_positive_items_highlight_nothing(coach):
    assert coach.get_error_joints([GOOD_DEPTH]) == []
    assert coach.get_error_connections([GOOD_DEPTH]) == []
    assert coach.get_error_joints([]) == []


def test_error_connections(coach):
    assert coach.get_error_connections([KNEES_ERROR]) == [(23, 25), (25, 27), (24, 26), (26, 28)]


def test_duplicate_issues_are_merged(coach):
    assert coach.get_joint_issues([BACK_ERROR, GOOD_DEPTH, BACK_ERROR]) == [JointIssue.BACK]


def test_issue_marker_at_region_center(coach, make_pose):
    pose = make_pose({
        PoseLandmark.LEFT_KNEE: (0.4, 0.7),
        PoseLandmark.RIGHT_KNEE: (0.6, 0.8),
    })
    markers = coach.get_issue_markers([GOOD_DEPTH, KNEES_ERROR], pose)
    assert len(markers) == 1
    assert markers[0]["joint_issue"] == "knees"
    assert markers[0]["direction"] == "down"
    assert markers[0]["position"] == pytest.approx([0.5, 0.75, 0.0])


def test_issue_marker_skipped_when_landmark_missing(coach, make_pose):
    pose = make_pose({PoseLandmark.RIGHT_HIP: None})
    assert coach.get_issue_markers([BACK_ERROR, KNEES_ERROR], pose) == [
        {"joint_issue": "knees", "position": [0.5, 0.5, 0.0], "direction": "down", "color": "#ef4444"}
    ]
