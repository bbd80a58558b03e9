"""
Realtime Coach - Joint Highlighting for the Skeleton Overlay

Turns a frame's feedback list into visualizer hints:
1. Error Joints - landmark indices to draw red
2. Error Connections - skeleton segments to draw red
3. Issue Markers - one arrow per error region, anchored on the landmarks

Only error items with a joint issue produce hints; positive items never do.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from feedback import FeedbackItem
from landmarks import JOINT_ISSUE_CONNECTIONS, JOINT_ISSUE_LANDMARKS, JointIssue, get_landmark


class RealtimeCoach:
    """
    Maps joint issues onto the landmark topology.

    Usage:
        coach = RealtimeCoach()

        # After each evaluation:
        joints = coach.get_error_joints(feedback)
        segments = coach.get_error_connections(feedback)
        markers = coach.get_issue_markers(feedback, landmarks)
    """

    MARKER_CONFIG = {
        JointIssue.KNEES: {
            "direction": "down",
            "color": "#ef4444",  # Red
        },
        JointIssue.BACK: {
            "direction": "side",
            "color": "#ef4444",
        },
        JointIssue.ELBOWS: {
            "direction": "out",
            "color": "#ef4444",
        },
    }

    @staticmethod
    def get_joint_issues(feedback: Iterable[FeedbackItem]) -> List[JointIssue]:
        """Distinct joint issues of the error items, in feedback order."""
        issues: List[JointIssue] = []
        for item in feedback:
            if item.is_error and item.joint_issue and item.joint_issue not in issues:
                issues.append(item.joint_issue)
        return issues

    def get_error_joints(self, feedback: Iterable[FeedbackItem]) -> List[int]:
        """
        Get joint indices that should be highlighted as errors.

        Returns:
            Sorted MediaPipe landmark indices to highlight red
        """
        joints = set()
        for issue in self.get_joint_issues(feedback):
            joints.update(int(idx) for idx in JOINT_ISSUE_LANDMARKS[issue])
        return sorted(joints)

    def get_error_connections(self, feedback: Iterable[FeedbackItem]) -> List[Tuple[int, int]]:
        """Skeleton segments (landmark index pairs) to highlight red."""
        connections: List[Tuple[int, int]] = []
        for issue in self.get_joint_issues(feedback):
            for a, b in JOINT_ISSUE_CONNECTIONS[issue]:
                pair = (int(a), int(b))
                if pair not in connections:
                    connections.append(pair)
        return connections

    def get_issue_markers(
        self,
        feedback: Iterable[FeedbackItem],
        landmarks: Sequence[Optional[Any]],
    ) -> List[Dict[str, Any]]:
        """
        Generate arrow markers for the AR overlay.

        Each marker sits at the mean position of its region's landmarks
        (normalized coordinates). A region with a missing landmark gets no
        marker.
        """
        markers = []
        for issue in self.get_joint_issues(feedback):
            anchor = self._region_center(landmarks, JOINT_ISSUE_LANDMARKS[issue])
            if anchor is None:
                continue
            config = self.MARKER_CONFIG[issue]
            markers.append({
                "joint_issue": issue.value,
                "position": anchor,
                "direction": config["direction"],
                "color": config["color"],
            })
        return markers

    @staticmethod
    def _region_center(landmarks: Sequence[Optional[Any]], indices: Sequence[int]) -> Optional[List[float]]:
        points = [get_landmark(landmarks, idx) for idx in indices]
        if any(p is None for p in points):
            return None
        coords = np.array([[p.x, p.y, p.z] for p in points], dtype=float)
        return [float(v) for v in coords.mean(axis=0)]
