"""Skeletal pose data model — joints, tracking states and pose frames."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Iterable, Iterator, Optional, Protocol

import numpy as np


class JointType(Enum):
    """The 20 joints reported in default (standing) tracking mode."""
    HIP_CENTER = "hip_center"
    SPINE = "spine"
    SHOULDER_CENTER = "shoulder_center"
    HEAD = "head"
    SHOULDER_LEFT = "shoulder_left"
    ELBOW_LEFT = "elbow_left"
    WRIST_LEFT = "wrist_left"
    HAND_LEFT = "hand_left"
    SHOULDER_RIGHT = "shoulder_right"
    ELBOW_RIGHT = "elbow_right"
    WRIST_RIGHT = "wrist_right"
    HAND_RIGHT = "hand_right"
    HIP_LEFT = "hip_left"
    KNEE_LEFT = "knee_left"
    ANKLE_LEFT = "ankle_left"
    FOOT_LEFT = "foot_left"
    HIP_RIGHT = "hip_right"
    KNEE_RIGHT = "knee_right"
    ANKLE_RIGHT = "ankle_right"
    FOOT_RIGHT = "foot_right"


# Row order used by the array conversions below
JOINT_ORDER: list[JointType] = list(JointType)
NUM_JOINTS = len(JOINT_ORDER)


class JointTrackingState(Enum):
    TRACKED = "tracked"
    INFERRED = "inferred"
    NOT_TRACKED = "not_tracked"


class BodyTrackingState(Enum):
    TRACKED = "tracked"
    POSITION_ONLY = "position_only"
    NOT_TRACKED = "not_tracked"


class FrameEdges(IntFlag):
    """Screen edges the body extends beyond. Only renderers care."""
    NONE = 0
    RIGHT = 1
    LEFT = 2
    TOP = 4
    BOTTOM = 8


@dataclass
class Joint:
    """A single joint measurement in sensor space."""
    type: JointType
    x: float
    y: float
    z: float
    state: JointTrackingState = JointTrackingState.TRACKED

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def is_available(self) -> bool:
        """Inferred joints still count; only NotTracked joints are unusable."""
        return self.state != JointTrackingState.NOT_TRACKED


@dataclass
class PoseFrame:
    """One snapshot of a tracked body.

    Joints missing from ``joints`` are treated as absent, never as a
    zero position.
    """
    body_id: int
    joints: dict[JointType, Joint] = field(default_factory=dict)
    state: BodyTrackingState = BodyTrackingState.TRACKED
    clipped_edges: FrameEdges = FrameEdges.NONE
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    timestamp: float = field(default_factory=time.monotonic)

    @property
    def is_tracked(self) -> bool:
        return self.state == BodyTrackingState.TRACKED

    def get(self, joint_type: JointType) -> Optional[Joint]:
        """Return the joint if present and usable, else None."""
        joint = self.joints.get(joint_type)
        if joint is None or not joint.is_available:
            return None
        return joint

    def y(self, joint_type: JointType) -> Optional[float]:
        joint = self.get(joint_type)
        return None if joint is None else joint.y

    def with_joint(
        self,
        joint_type: JointType,
        x: float,
        y: float,
        z: float = 0.0,
        state: JointTrackingState = JointTrackingState.TRACKED,
    ) -> PoseFrame:
        """Set a joint in place and return self (for chained construction)."""
        self.joints[joint_type] = Joint(joint_type, x, y, z, state)
        return self

    def to_array(self) -> np.ndarray:
        """Joint positions as a (20, 3) float32 array; absent rows are NaN."""
        arr = np.full((NUM_JOINTS, 3), np.nan, dtype=np.float32)
        for i, jt in enumerate(JOINT_ORDER):
            joint = self.joints.get(jt)
            if joint is not None:
                arr[i] = (joint.x, joint.y, joint.z)
        return arr

    def joint_states(self) -> list[Optional[JointTrackingState]]:
        return [
            self.joints[jt].state if jt in self.joints else None
            for jt in JOINT_ORDER
        ]

    @classmethod
    def from_array(
        cls,
        body_id: int,
        positions: np.ndarray,
        states: Optional[Iterable[Optional[JointTrackingState]]] = None,
        **kwargs,
    ) -> PoseFrame:
        """Build a frame from a (20, 3) array. NaN rows become absent joints."""
        positions = np.asarray(positions, dtype=np.float64)
        if positions.shape != (NUM_JOINTS, 3):
            raise ValueError(
                f"Expected positions of shape ({NUM_JOINTS}, 3), got {positions.shape}"
            )
        state_list = list(states) if states is not None else [None] * NUM_JOINTS

        joints = {}
        for jt, row, st in zip(JOINT_ORDER, positions, state_list):
            if np.isnan(row).any():
                continue
            joints[jt] = Joint(
                jt, float(row[0]), float(row[1]), float(row[2]),
                st or JointTrackingState.TRACKED,
            )
        return cls(body_id=body_id, joints=joints, **kwargs)

    def to_dict(self) -> dict:
        return {
            "body_id": self.body_id,
            "state": self.state.value,
            "clipped_edges": int(self.clipped_edges),
            "position": list(self.position),
            "timestamp": self.timestamp,
            "joints": {
                jt.value: {"position": [j.x, j.y, j.z], "state": j.state.value}
                for jt, j in self.joints.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> PoseFrame:
        joints = {}
        for name, entry in data.get("joints", {}).items():
            jt = JointType(name)
            x, y, z = entry["position"]
            joints[jt] = Joint(
                jt, float(x), float(y), float(z),
                JointTrackingState(entry.get("state", "tracked")),
            )
        return cls(
            body_id=int(data["body_id"]),
            joints=joints,
            state=BodyTrackingState(data.get("state", "tracked")),
            clipped_edges=FrameEdges(data.get("clipped_edges", 0)),
            position=tuple(data.get("position", (0.0, 0.0, 0.0))),
            timestamp=float(data.get("timestamp", 0.0)),
        )


class FrameSource(Protocol):
    """Anything that yields ticks of pose frames (one list per sensor tick)."""

    def __iter__(self) -> Iterator[list[PoseFrame]]:
        ...
