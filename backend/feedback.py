"""
Feedback items produced by the posture evaluators.

A frame's feedback list is rebuilt from scratch on every evaluation and
replaces the previous list entirely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from landmarks import JointIssue


@dataclass(frozen=True)
class FeedbackItem:
    """
    One diagnostic message for a single frame.

    is_error=False marks a positive confirmation ("Good squat depth"),
    not merely the absence of an error.
    """

    message: str
    is_error: bool
    joint_issue: Optional[JointIssue] = None

    @classmethod
    def error(cls, message: str, joint_issue: JointIssue) -> "FeedbackItem":
        return cls(message=message, is_error=True, joint_issue=joint_issue)

    @classmethod
    def positive(cls, message: str) -> "FeedbackItem":
        return cls(message=message, is_error=False)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"message": self.message, "isError": self.is_error}
        if self.joint_issue is not None:
            data["jointIssue"] = self.joint_issue.value
        return data
