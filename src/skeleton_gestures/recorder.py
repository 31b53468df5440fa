"""Pose stream recording and replay — capture skeletal frames to disk.

A recording stores every tick of a session, with all bodies seen in it,
so the engine can be exercised and tuned without a depth sensor.
Two formats: readable JSON and a compressed .npz with one
(ticks, bodies, 20, 3) position array.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import numpy as np

from skeleton_gestures.skeleton import (
    NUM_JOINTS,
    BodyTrackingState,
    FrameEdges,
    JointTrackingState,
    PoseFrame,
)

FORMAT_VERSION = 1

# Integer codes for the compact format; -1 marks an absent joint
_JOINT_STATE_CODES = {s: i for i, s in enumerate(JointTrackingState)}
_JOINT_STATES = list(JointTrackingState)
_BODY_STATE_CODES = {s: i for i, s in enumerate(BodyTrackingState)}
_BODY_STATES = list(BodyTrackingState)


@dataclass
class RecordedTick:
    """A single sensor tick in a recording."""
    timestamp: float  # seconds from recording start
    bodies: list[PoseFrame]


class PoseRecorder:
    """Records pose frames to a file.

    Usage:
        recorder = PoseRecorder()
        recorder.start()
        # In your frame loop:
        recorder.add_frame(bodies)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self):
        self._ticks: list[RecordedTick] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._ticks = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of ticks captured."""
        self._recording = False
        return len(self._ticks)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._ticks)

    @property
    def duration(self) -> float:
        if not self._ticks:
            return 0.0
        return self._ticks[-1].timestamp

    def add_frame(self, bodies: list[PoseFrame], timestamp: Optional[float] = None):
        """Add one tick. ``timestamp`` defaults to time since ``start()``."""
        if not self._recording:
            return

        if timestamp is None:
            timestamp = time.monotonic() - self._start_time
        self._ticks.append(RecordedTick(timestamp=timestamp, bodies=list(bodies)))

    def save(self, path: str | Path):
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "frame_count": len(self._ticks),
            "duration": self.duration,
            "frames": [
                {"timestamp": t.timestamp, "bodies": [b.to_dict() for b in t.bodies]}
                for t in self._ticks
            ],
        }

        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path) -> Path:
        """Save in compressed numpy format. Returns the path written."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        n = len(self._ticks)
        max_bodies = max((len(t.bodies) for t in self._ticks), default=0) or 1

        positions = np.full((n, max_bodies, NUM_JOINTS, 3), np.nan, dtype=np.float32)
        joint_states = np.full((n, max_bodies, NUM_JOINTS), -1, dtype=np.int8)
        body_states = np.zeros((n, max_bodies), dtype=np.int8)
        body_ids = np.zeros((n, max_bodies), dtype=np.int32)
        edges = np.zeros((n, max_bodies), dtype=np.int8)
        body_counts = np.array([len(t.bodies) for t in self._ticks], dtype=np.int32)
        timestamps = np.array([t.timestamp for t in self._ticks], dtype=np.float64)

        for i, tick in enumerate(self._ticks):
            for j, body in enumerate(tick.bodies):
                positions[i, j] = body.to_array()
                joint_states[i, j] = [
                    _JOINT_STATE_CODES[s] if s is not None else -1
                    for s in body.joint_states()
                ]
                body_states[i, j] = _BODY_STATE_CODES[body.state]
                body_ids[i, j] = body.body_id
                edges[i, j] = int(body.clipped_edges)

        np.savez_compressed(
            path,
            version=np.array([FORMAT_VERSION]),
            timestamps=timestamps,
            positions=positions,
            joint_states=joint_states,
            body_states=body_states,
            body_ids=body_ids,
            edges=edges,
            body_counts=body_counts,
        )
        return path


class PosePlayer:
    """Replays a recorded session as a frame source.

    Usage:
        player = PosePlayer.load("session.json")
        pipeline.run(player)

        # Paced by the recorded timestamps:
        for bodies in player.play_realtime():
            pipeline.process_frame(bodies)
    """

    def __init__(self, ticks: list[RecordedTick]):
        self._ticks = ticks

    @classmethod
    def load(cls, path: str | Path) -> PosePlayer:
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"Unsupported recording version: {version}")

        ticks = [
            RecordedTick(
                timestamp=float(t["timestamp"]),
                bodies=[PoseFrame.from_dict(b) for b in t.get("bodies", [])],
            )
            for t in data["frames"]
        ]
        return cls(ticks)

    @classmethod
    def _load_compact(cls, path: Path) -> PosePlayer:
        with np.load(path, allow_pickle=False) as data:
            version = int(data["version"][0])
            if version != FORMAT_VERSION:
                raise ValueError(f"Unsupported recording version: {version}")

            timestamps = data["timestamps"]
            positions = data["positions"]
            joint_states = data["joint_states"]
            body_states = data["body_states"]
            body_ids = data["body_ids"]
            edges = data["edges"]
            body_counts = data["body_counts"]

        ticks = []
        for i in range(len(timestamps)):
            bodies = []
            for j in range(int(body_counts[i])):
                states = [
                    _JOINT_STATES[c] if c >= 0 else None for c in joint_states[i, j]
                ]
                # Absent joints are NaN in positions and dropped by from_array
                bodies.append(PoseFrame.from_array(
                    int(body_ids[i, j]),
                    positions[i, j],
                    states,
                    state=_BODY_STATES[int(body_states[i, j])],
                    clipped_edges=FrameEdges(int(edges[i, j])),
                    timestamp=float(timestamps[i]),
                ))
            ticks.append(RecordedTick(timestamp=float(timestamps[i]), bodies=bodies))
        return cls(ticks)

    @property
    def frame_count(self) -> int:
        return len(self._ticks)

    @property
    def duration(self) -> float:
        if not self._ticks:
            return 0.0
        return self._ticks[-1].timestamp

    def play(self) -> Iterator[list[PoseFrame]]:
        """Yield every tick's bodies instantly (no timing)."""
        for tick in self._ticks:
            yield list(tick.bodies)

    def __iter__(self) -> Iterator[list[PoseFrame]]:
        return self.play()

    def play_realtime(self, speed: float = 1.0) -> Iterator[list[PoseFrame]]:
        """Replay at recorded timing (or scaled by speed factor)."""
        if not self._ticks:
            return

        start = time.monotonic()
        for tick in self._ticks:
            target_time = tick.timestamp / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield list(tick.bodies)

    def get_frame(self, index: int) -> Optional[RecordedTick]:
        if 0 <= index < len(self._ticks):
            return self._ticks[index]
        return None

