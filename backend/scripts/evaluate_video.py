"""
Offline posture evaluation over a recorded video.

Runs a pose backend on every frame and writes one CSV row per evaluated
frame with the feedback messages and highlighted joints.

Usage example (from repo root):

  python -m backend.scripts.evaluate_video \\
    --video data/videos/squat_side.mp4 \\
    --mode squat \\
    --out results/squat_side.csv
"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import cv2


# Allow running via `python -m backend.scripts.evaluate_video` from repo root.
ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = ROOT / 'backend'
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from pose_backends import build_pose_backend, get_available_backends  # type: ignore

logger = logging.getLogger(__name__)

CSV_FIELDS = ["frame", "timestamp_ms", "mode", "feedback", "errors", "error_joints"]


def payload_to_row(frame_index: int, payload: Dict[str, object]) -> Dict[str, object]:
    feedback = payload.get("feedback") or []
    messages = [item["message"] for item in feedback]  # type: ignore[index]
    errors = [item["jointIssue"] for item in feedback if item.get("isError") and item.get("jointIssue")]  # type: ignore[union-attr]
    return {
        "frame": frame_index,
        "timestamp_ms": payload.get("timestamp_ms"),
        "mode": payload.get("mode"),
        "feedback": " | ".join(messages),
        "errors": " ".join(errors),
        "error_joints": " ".join(str(j) for j in payload.get("error_joints") or []),  # type: ignore[union-attr]
    }


def evaluate_video(
    video_path: Path,
    mode: str,
    backend_name: str,
    max_frames: Optional[int] = None,
) -> List[Dict[str, object]]:
    """Evaluate every frame of a video; frames without a pose produce no row."""
    backend = build_pose_backend(backend_name)
    response = backend.handle_command({"command": "select_exercise", "exercise": mode})
    if response and response.get("event") == "error":
        backend.close()
        raise ValueError(response["message"])

    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        backend.close()
        raise RuntimeError(f"Failed to open video: {video_path}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
    rows: List[Dict[str, object]] = []
    frame_index = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                break
            if max_frames is not None and frame_index >= max_frames:
                break
            timestamp_ms = int(frame_index * 1000.0 / fps)
            result = backend.process_frame(frame, timestamp_ms)
            if result:
                rows.append(payload_to_row(frame_index, result))
            frame_index += 1
    finally:
        cap.release()
        backend.close()

    logger.info("Evaluated %d frames, %d with a detected pose", frame_index, len(rows))
    return rows


def write_rows(rows: List[Dict[str, object]], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run posture evaluation over a video file.")
    parser.add_argument("--video", type=Path, required=True, help="Input video path.")
    parser.add_argument("--mode", required=True, help="Exercise mode: squat or pushup.")
    parser.add_argument("--out", type=Path, required=True, help="Output CSV path.")
    parser.add_argument(
        "--backend",
        default="mediapipe_posture",
        choices=get_available_backends(),
        help="Pose backend to use.",
    )
    parser.add_argument("--max-frames", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    rows = evaluate_video(args.video, args.mode, args.backend, args.max_frames)
    write_rows(rows, args.out)
    logger.info("Wrote %d rows to %s", len(rows), args.out)


if __name__ == "__main__":
    main()
