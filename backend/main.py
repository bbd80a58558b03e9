import base64
import json
import logging
import os
import time
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
import uvicorn
import uvloop
from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from coaches import RealtimeCoach, UnknownExerciseModeError
from form_checker import evaluate, get_available_modes
from landmarks import parse_landmarks, topology_dict
from pose_backends import build_pose_backend, get_available_backends

# Install and use uvloop as the default event loop
uvloop.install()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

POSE_BACKEND_NAME = os.getenv("POSE_BACKEND", "mediapipe_posture")

app = FastAPI()

realtime_coach = RealtimeCoach()


class LandmarkModel(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: Optional[float] = None


class EvaluateRequest(BaseModel):
    mode: str
    landmarks: List[Optional[LandmarkModel]]

    class Config:
        extra = "ignore"  # Ignore extra fields


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    return {
        "message": "Welcome to Posture Coach - Real-Time Exercise Form Feedback API",
        "pose_backend": POSE_BACKEND_NAME,
        "available_backends": get_available_backends(),
        "exercise_modes": get_available_modes(),
    }


@app.get("/topology")
def read_topology():
    """Landmark table shared with visualizers: names, skeleton, joint-issue regions."""
    return topology_dict()


@app.post("/evaluate")
def evaluate_landmarks(request: EvaluateRequest):
    """Evaluate one frame of landmarks sent by a client-side pose detector."""
    landmarks = parse_landmarks(
        [
            {"x": lm.x, "y": lm.y, "z": lm.z, "visibility": lm.visibility} if lm else None
            for lm in request.landmarks
        ]
    )
    try:
        feedback = evaluate(landmarks, request.mode)
    except UnknownExerciseModeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return {
        "mode": request.mode,
        "feedback": [item.to_dict() for item in feedback],
        "error_joints": realtime_coach.get_error_joints(feedback),
        "error_connections": [list(pair) for pair in realtime_coach.get_error_connections(feedback)],
    }


def decode_frame(data: str) -> Optional[np.ndarray]:
    """Decode a base64 JPEG data URL into a BGR frame."""
    _, encoded = data.split(",", 1)
    img_data = base64.b64decode(encoded)
    nparr = np.frombuffer(img_data, np.uint8)
    return cv2.imdecode(nparr, cv2.IMREAD_COLOR)


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    logger.info(
        "WebSocket connection attempt received (backend=%s).", POSE_BACKEND_NAME
    )
    await websocket.accept()
    logger.info("WebSocket connection accepted.")

    # First use may download the landmarker model; keep it off the event loop.
    backend = await run_in_threadpool(build_pose_backend, POSE_BACKEND_NAME)
    last_payload: Optional[Dict[str, Any]] = None

    try:
        while True:
            data = await websocket.receive_text()

            if data.startswith('{"command"'):
                command_data = json.loads(data)
                response = backend.handle_command(command_data)
                if response:
                    await websocket.send_json(response)
                if command_data.get("command") in ("select_exercise", "reset"):
                    last_payload = None
                continue

            frame_timestamp = None
            if data.startswith("{"):
                try:
                    parsed_payload = json.loads(data)
                except json.JSONDecodeError:
                    parsed_payload = None
                if isinstance(parsed_payload, dict) and "frame" in parsed_payload:
                    frame_timestamp = parsed_payload.get("ts")
                    data = parsed_payload["frame"]

            if not data.startswith("data:image/jpeg;base64,"):
                logger.warning("Received malformed data packet")
                continue

            try:
                frame = decode_frame(data)
            except (ValueError, cv2.error) as decode_error:
                logger.warning("Failed to decode frame: %s", decode_error)
                continue

            if frame is None:
                logger.warning("Decoded frame is None")
                continue

            try:
                backend_name = getattr(backend, "name", POSE_BACKEND_NAME)
                timestamp_ms = int(frame_timestamp) if isinstance(frame_timestamp, (int, float)) else None
                process_start = time.perf_counter()
                result = backend.process_frame(frame, timestamp_ms)
                latency_ms = (time.perf_counter() - process_start) * 1000
                if result:
                    payload_to_send = result
                    last_payload = result
                elif last_payload:
                    payload_to_send = dict(last_payload)
                else:
                    payload_to_send = {"landmarks": [], "feedback": []}

                payload_to_send["latency_ms"] = latency_ms
                if frame_timestamp is not None:
                    payload_to_send["client_ts"] = frame_timestamp
                payload_to_send.setdefault("backend", backend_name)
                await websocket.send_json(payload_to_send)
            except Exception as processing_error:
                logger.error("Error processing frame: %s", processing_error)

    except Exception as websocket_error:
        logger.error("WebSocket connection error: %s", websocket_error)
    finally:
        backend.close()
        logger.info("Client connection closed")


if __name__ == "__main__":
    # Same as: uvicorn main:app --host 0.0.0.0 --port 8000 (run from backend/)
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "8000")))
