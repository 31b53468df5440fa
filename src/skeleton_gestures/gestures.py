"""Gesture kinds and the static pose classifier.

Static gestures are judged from a single frame using fixed geometric
thresholds on joint heights (sensor-space Y, larger is higher):

- arm raised: ``2 * shoulder_y - elbow_y - wrist_y < threshold``. An arm held
  out at shoulder height or above drives the signal towards zero or below.
- hands overhead: both hands higher than the head.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from skeleton_gestures.skeleton import JointType, PoseFrame

ARM_RAISE_THRESHOLD = 0.1


class GestureKind(Enum):
    ARM_RAISED_LEFT = "arm_raised_left"
    ARM_RAISED_RIGHT = "arm_raised_right"
    HANDS_OVERHEAD = "hands_overhead"
    JUMP = "jump"


class Side(Enum):
    LEFT = "left"
    RIGHT = "right"


_ARM_JOINTS = {
    Side.LEFT: (JointType.SHOULDER_LEFT, JointType.ELBOW_LEFT, JointType.WRIST_LEFT),
    Side.RIGHT: (JointType.SHOULDER_RIGHT, JointType.ELBOW_RIGHT, JointType.WRIST_RIGHT),
}


def arm_signal(pose: PoseFrame, side: Side) -> Optional[float]:
    """Return ``2*shoulder_y - elbow_y - wrist_y``, or None if a joint is missing."""
    shoulder, elbow, wrist = (pose.y(jt) for jt in _ARM_JOINTS[side])
    if shoulder is None or elbow is None or wrist is None:
        return None
    return 2 * shoulder - elbow - wrist


def arm_raised(
    pose: PoseFrame, side: Side, threshold: float = ARM_RAISE_THRESHOLD
) -> bool:
    signal = arm_signal(pose, side)
    if signal is None:
        return False
    return signal < threshold


def hands_overhead(pose: PoseFrame) -> bool:
    """Both hands above the head. A single raised hand never counts."""
    head = pose.y(JointType.HEAD)
    left = pose.y(JointType.HAND_LEFT)
    right = pose.y(JointType.HAND_RIGHT)
    if head is None or left is None or right is None:
        return False
    return left > head and right > head


class StaticPoseClassifier:
    """Evaluates all single-frame gestures for one pose.

    Results come back in a fixed order (right arm, left arm, overhead)
    so dispatch order within a frame is deterministic.
    """

    def __init__(self, arm_threshold: float = ARM_RAISE_THRESHOLD):
        self.arm_threshold = arm_threshold

    def classify(self, pose: PoseFrame) -> list[GestureKind]:
        if not pose.is_tracked:
            return []

        kinds = []
        if arm_raised(pose, Side.RIGHT, self.arm_threshold):
            kinds.append(GestureKind.ARM_RAISED_RIGHT)
        if arm_raised(pose, Side.LEFT, self.arm_threshold):
            kinds.append(GestureKind.ARM_RAISED_LEFT)
        if hands_overhead(pose):
            kinds.append(GestureKind.HANDS_OVERHEAD)
        return kinds
