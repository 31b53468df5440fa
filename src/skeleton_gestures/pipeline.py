"""Frame loop: pose frames → static and windowed classification → dispatch."""

from __future__ import annotations

import logging
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from skeleton_gestures.config import EngineConfig, TrackingMode
from skeleton_gestures.dispatcher import GestureDispatcher
from skeleton_gestures.gestures import GestureKind, StaticPoseClassifier
from skeleton_gestures.motion import MotionClassifier
from skeleton_gestures.skeleton import PoseFrame

logger = logging.getLogger("skeleton_gestures.pipeline")


@dataclass
class GestureEvent:
    """A recognized gesture for one body in one frame."""
    kind: GestureKind
    body_id: int
    frame_counter: int
    timestamp: float


@dataclass
class PipelineStats:
    """Runtime statistics."""
    fps: float
    avg_latency_ms: float
    total_ticks: int
    total_gestures: int
    tracked_bodies: int = 0
    gesture_counts: dict = field(default_factory=dict)
    dispatch: dict = field(default_factory=dict)


class GesturePipeline:
    """Drives classification for every tracked body on every tick.

    Per body and frame the order is fixed: static pose checks, then the
    windowed motion check. Each positive result is dispatched at once and
    the loop moves on without waiting for the action to finish.

    A body that is not Tracked in a tick, or missing from it, loses its
    motion window so the next window starts fresh.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        dispatcher: Optional[GestureDispatcher] = None,
    ):
        self.config = config if config is not None else EngineConfig()
        self.static = StaticPoseClassifier(arm_threshold=self.config.arm_raise_threshold)
        self.motion = MotionClassifier(
            window_size=self.config.window_size,
            knee_threshold=self.config.jump_knee_threshold,
        )
        self.dispatcher = dispatcher if dispatcher is not None else GestureDispatcher(
            sink=self.config.build_sink(),
            mapper=self.config.mapper,
            coalesce=self.config.coalesce_actions,
        )

        self._callbacks: list[Callable[[GestureEvent], None]] = []
        self._tracked: set[int] = set()
        self._tick_times: deque = deque(maxlen=60)
        self._total_ticks = 0
        self._gesture_counts: Counter = Counter()
        self._seated_warned = False

    def on_gesture(self, callback: Callable[[GestureEvent], None]):
        """Register a callback for gesture events."""
        self._callbacks.append(callback)

    def process_frame(self, bodies: Iterable[PoseFrame]) -> list[GestureEvent]:
        """Process one sensor tick (zero or more bodies)."""
        t_start = time.monotonic()
        self._total_ticks += 1
        bodies = list(bodies)

        seen = set()
        for pose in bodies:
            if pose.is_tracked:
                seen.add(pose.body_id)
        for body_id in self._tracked - seen:
            logger.debug("Body %d lost, discarding motion window", body_id)
            self.motion.reset(body_id)
        self._tracked = seen

        if self.config.tracking_mode == TrackingMode.SEATED:
            if not self._seated_warned:
                logger.warning("Seated tracking mode: gesture classification disabled")
                self._seated_warned = True
            self._tick_times.append(time.monotonic() - t_start)
            return []

        events = []
        for pose in bodies:
            if not pose.is_tracked:
                continue
            try:
                events.extend(self._classify(pose))
            except Exception as e:
                logger.error("Classification failed for body %d: %s", pose.body_id, e)

        self._tick_times.append(time.monotonic() - t_start)
        return events

    def _classify(self, pose: PoseFrame) -> list[GestureEvent]:
        kinds = self.static.classify(pose)
        kinds.extend(self.motion.observe(pose.body_id, pose))

        state = self.motion.state_for(pose.body_id)
        counter = state.frame_counter if state else 0
        now = time.monotonic()

        events = []
        for kind in kinds:
            event = GestureEvent(
                kind=kind,
                body_id=pose.body_id,
                frame_counter=counter,
                timestamp=now,
            )
            self._gesture_counts[kind.value] += 1
            self.dispatcher.dispatch(kind)
            events.append(event)

            for cb in self._callbacks:
                try:
                    cb(event)
                except Exception as e:
                    logger.error("Gesture callback error: %s", e)

        return events

    def run(self, source: Iterable[list[PoseFrame]]) -> int:
        """Consume a frame source until exhausted. Returns gestures recognized."""
        count = 0
        for bodies in source:
            count += len(self.process_frame(bodies))
        return count

    @property
    def stats(self) -> PipelineStats:
        if self._tick_times:
            avg_latency = sum(self._tick_times) / len(self._tick_times)
            fps = 1.0 / avg_latency if avg_latency > 0 else 0
        else:
            avg_latency = 0
            fps = 0

        return PipelineStats(
            fps=fps,
            avg_latency_ms=avg_latency * 1000,
            total_ticks=self._total_ticks,
            total_gestures=sum(self._gesture_counts.values()),
            tracked_bodies=len(self._tracked),
            gesture_counts=dict(self._gesture_counts),
            dispatch=self.dispatcher.stats,
        )

    def reset(self):
        """Clear all state."""
        self.motion.reset()
        self._tracked.clear()
        self._tick_times.clear()
        self._total_ticks = 0
        self._gesture_counts.clear()

    def close(self, timeout: Optional[float] = None):
        """Wait for in-flight actions to finish."""
        self.dispatcher.join(timeout)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
