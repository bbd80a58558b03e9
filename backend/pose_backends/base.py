"""Common interfaces for posture pose-processing backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import numpy as np

from landmarks import Landmark


class PoseBackend(ABC):
    """Abstract base class for pose-processing implementations."""

    name: str = "base"
    dimension_hint: str = "2D"

    def handle_command(self, command_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Dispatch external commands (exercise selection, reset, etc.)."""
        return None

    @abstractmethod
    def process_frame(
        self, frame_bgr: np.ndarray, timestamp_ms: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """Process a decoded BGR frame and return data to send to clients."""

    def close(self) -> None:
        """Release resources."""
        return None


class PoseEstimator(ABC):
    @abstractmethod
    def detect(self, frame_bgr: np.ndarray, timestamp_ms: int) -> List[List[Landmark]]:
        """Detect poses in a decoded BGR frame; an empty list means no pose."""

    def close(self) -> None:
        """Release the underlying model."""
        return None
