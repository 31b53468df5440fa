"""Windowed motion classification.

Detects motion gestures by comparing two samples of a few joint
coordinates taken a fixed number of frames apart, rather than keeping a
full time series. With the default window of 11 frames, the start sample
is taken when ``counter % 11 == 1`` and the end sample when
``counter % 11 == 0``; frames in between are not sampled.

A window is only evaluated if its start sample was captured in the same
cycle. Losing a body discards its window (``reset``), so a stale start
sample can never be paired with a fresh end sample.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from skeleton_gestures.gestures import GestureKind
from skeleton_gestures.skeleton import JointType, PoseFrame

logger = logging.getLogger("skeleton_gestures.motion")

WINDOW_SIZE = 11
JUMP_KNEE_THRESHOLD = 0.06


@dataclass(frozen=True)
class WindowSample:
    """Joint coordinates captured at a window boundary."""
    spine_x: float
    spine_y: float
    knee_right_y: float
    knee_left_y: float
    spine_base_y: float
    ankle_right_y: float

    @property
    def base_foot(self) -> float:
        """Vertical distance from the spine to the right ankle."""
        return self.spine_base_y - self.ankle_right_y

    @classmethod
    def capture(cls, pose: PoseFrame) -> Optional[WindowSample]:
        """Read the sampled joints from a pose, or None if any is missing."""
        spine = pose.get(JointType.SPINE)
        knee_right = pose.get(JointType.KNEE_RIGHT)
        knee_left = pose.get(JointType.KNEE_LEFT)
        ankle_right = pose.get(JointType.ANKLE_RIGHT)
        if spine is None or knee_right is None or knee_left is None or ankle_right is None:
            return None
        return cls(
            spine_x=spine.x,
            spine_y=spine.y,
            knee_right_y=knee_right.y,
            knee_left_y=knee_left.y,
            spine_base_y=spine.y,
            ankle_right_y=ankle_right.y,
        )


@dataclass(frozen=True)
class MotionDeltas:
    """End-minus-start deltas over one window.

    Only the knee deltas gate a gesture today; the rest are kept for
    classifiers that want them.
    """
    spine_dx: float
    spine_dy: float
    knee_right_dy: float
    knee_left_dy: float
    base_foot_delta: float

    @classmethod
    def between(cls, start: WindowSample, end: WindowSample) -> MotionDeltas:
        return cls(
            spine_dx=end.spine_x - start.spine_x,
            spine_dy=end.spine_y - start.spine_y,
            knee_right_dy=end.knee_right_y - start.knee_right_y,
            knee_left_dy=end.knee_left_y - start.knee_left_y,
            base_foot_delta=end.base_foot - start.base_foot,
        )


@dataclass
class MotionWindowState:
    """Per-body window bookkeeping."""
    frame_counter: int = 0
    start: Optional[WindowSample] = None
    last_deltas: Optional[MotionDeltas] = None


class MotionClassifier:
    """Detects jumps from knee rise over a fixed frame window, per body."""

    def __init__(
        self,
        window_size: int = WINDOW_SIZE,
        knee_threshold: float = JUMP_KNEE_THRESHOLD,
    ):
        if window_size < 2:
            raise ValueError("window_size must be at least 2")
        self.window_size = window_size
        self.knee_threshold = knee_threshold
        self._states: dict[int, MotionWindowState] = {}
        self._lock = threading.Lock()

    def observe(self, body_id: int, pose: PoseFrame) -> list[GestureKind]:
        """Advance the body's own frame counter and classify this frame."""
        with self._lock:
            state = self._states.setdefault(body_id, MotionWindowState())
            state.frame_counter += 1
            return self._step(body_id, state, pose, state.frame_counter)

    def on_frame(
        self, body_id: int, pose: PoseFrame, frame_counter: int
    ) -> list[GestureKind]:
        """Classify a frame at an externally supplied counter value."""
        with self._lock:
            state = self._states.setdefault(body_id, MotionWindowState())
            state.frame_counter = frame_counter
            return self._step(body_id, state, pose, frame_counter)

    def _step(
        self,
        body_id: int,
        state: MotionWindowState,
        pose: PoseFrame,
        frame_counter: int,
    ) -> list[GestureKind]:
        phase = frame_counter % self.window_size

        if phase == 1:
            state.start = WindowSample.capture(pose)
            if state.start is None:
                logger.debug("Body %d: window start skipped, joints missing", body_id)
            return []

        if phase != 0:
            return []

        start, state.start = state.start, None
        if start is None:
            return []

        end = WindowSample.capture(pose)
        if end is None:
            logger.debug("Body %d: window end skipped, joints missing", body_id)
            return []

        deltas = MotionDeltas.between(start, end)
        state.last_deltas = deltas

        if (
            deltas.knee_left_dy > self.knee_threshold
            and deltas.knee_right_dy > self.knee_threshold
        ):
            logger.debug(
                "Body %d: jump (knee dy L=%.3f R=%.3f)",
                body_id, deltas.knee_left_dy, deltas.knee_right_dy,
            )
            return [GestureKind.JUMP]
        return []

    def reset(self, body_id: Optional[int] = None):
        """Discard window state for one body, or for all bodies."""
        with self._lock:
            if body_id is not None:
                self._states.pop(body_id, None)
            else:
                self._states.clear()

    def state_for(self, body_id: int) -> Optional[MotionWindowState]:
        with self._lock:
            return self._states.get(body_id)

    def last_deltas(self, body_id: int) -> Optional[MotionDeltas]:
        with self._lock:
            state = self._states.get(body_id)
            return state.last_deltas if state else None

    @property
    def tracked_bodies(self) -> list[int]:
        with self._lock:
            return list(self._states.keys())
