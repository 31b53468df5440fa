"""Synthetic skeletons for demos, benchmarks and tests. No sensor required.

Heights are in metres in sensor space (Y up), roughly a 1.75 m adult
standing 2.5 m from the sensor.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from skeleton_gestures.skeleton import JointType, PoseFrame

# (x, y) of every joint for a relaxed standing pose, arms hanging
STANDING: dict[JointType, tuple[float, float]] = {
    JointType.HEAD: (0.0, 0.65),
    JointType.SHOULDER_CENTER: (0.0, 0.45),
    JointType.SPINE: (0.0, 0.10),
    JointType.HIP_CENTER: (0.0, 0.00),
    JointType.SHOULDER_LEFT: (-0.18, 0.42),
    JointType.ELBOW_LEFT: (-0.22, 0.15),
    JointType.WRIST_LEFT: (-0.24, -0.08),
    JointType.HAND_LEFT: (-0.25, -0.15),
    JointType.SHOULDER_RIGHT: (0.18, 0.42),
    JointType.ELBOW_RIGHT: (0.22, 0.15),
    JointType.WRIST_RIGHT: (0.24, -0.08),
    JointType.HAND_RIGHT: (0.25, -0.15),
    JointType.HIP_LEFT: (-0.10, -0.05),
    JointType.KNEE_LEFT: (-0.11, -0.48),
    JointType.ANKLE_LEFT: (-0.11, -0.88),
    JointType.FOOT_LEFT: (-0.11, -0.93),
    JointType.HIP_RIGHT: (0.10, -0.05),
    JointType.KNEE_RIGHT: (0.11, -0.48),
    JointType.ANKLE_RIGHT: (0.11, -0.88),
    JointType.FOOT_RIGHT: (0.11, -0.93),
}

_LEFT_ARM = (JointType.ELBOW_LEFT, JointType.WRIST_LEFT, JointType.HAND_LEFT)
_RIGHT_ARM = (JointType.ELBOW_RIGHT, JointType.WRIST_RIGHT, JointType.HAND_RIGHT)
_LEGS_AND_TRUNK = [jt for jt in STANDING if jt not in _LEFT_ARM + _RIGHT_ARM]


def standing_pose(
    body_id: int = 0,
    depth: float = 2.5,
    lift: float = 0.0,
    rng: Optional[np.random.Generator] = None,
    noise: float = 0.0,
) -> PoseFrame:
    """A standing body. ``lift`` raises every joint (mid-jump)."""
    pose = PoseFrame(body_id=body_id, position=(0.0, 0.0, depth))
    for jt, (x, y) in STANDING.items():
        dx = dy = 0.0
        if rng is not None and noise > 0:
            dx, dy = rng.normal(0.0, noise, size=2)
        pose.with_joint(jt, x + dx, y + lift + dy, depth)
    return pose


def raise_arm(pose: PoseFrame, left: bool = False) -> PoseFrame:
    """Hold one arm straight out at shoulder height."""
    shoulder = pose.joints[JointType.SHOULDER_LEFT if left else JointType.SHOULDER_RIGHT]
    sign = -1.0 if left else 1.0
    for i, jt in enumerate(_LEFT_ARM if left else _RIGHT_ARM, start=1):
        pose.with_joint(jt, shoulder.x + sign * 0.25 * i, shoulder.y, shoulder.z)
    return pose


def hands_up(pose: PoseFrame) -> PoseFrame:
    """Both arms straight up, hands above the head."""
    for shoulder_jt, arm in (
        (JointType.SHOULDER_LEFT, _LEFT_ARM),
        (JointType.SHOULDER_RIGHT, _RIGHT_ARM),
    ):
        shoulder = pose.joints[shoulder_jt]
        for i, jt in enumerate(arm, start=1):
            pose.with_joint(jt, shoulder.x, shoulder.y + 0.25 * i, shoulder.z)
    return pose


def jump_sequence(
    body_id: int = 0, window_size: int = 11, height: float = 0.12
) -> list[PoseFrame]:
    """One window of frames rising linearly to ``height`` by the last frame."""
    return [
        standing_pose(body_id, lift=height * i / (window_size - 1))
        for i in range(window_size)
    ]


def demo_session(body_id: int = 0, window_size: int = 11) -> list[list[PoseFrame]]:
    """Ticks containing idle, right arm raise, left arm raise, hands up and a jump.

    Each segment spans exactly one window so windows stay aligned.
    """
    ticks: list[list[PoseFrame]] = []
    for _ in range(window_size):
        ticks.append([standing_pose(body_id)])
    for _ in range(window_size):
        ticks.append([raise_arm(standing_pose(body_id))])
    for _ in range(window_size):
        ticks.append([raise_arm(standing_pose(body_id), left=True)])
    for _ in range(window_size):
        ticks.append([hands_up(standing_pose(body_id))])
    for pose in jump_sequence(body_id, window_size):
        ticks.append([pose])
    return ticks


def random_poses(n: int, bodies: int = 1, seed: int = 42, noise: float = 0.05) -> list[list[PoseFrame]]:
    """Noisy standing poses for benchmarking."""
    rng = np.random.default_rng(seed)
    return [
        [standing_pose(b, rng=rng, noise=noise) for b in range(bodies)]
        for _ in range(n)
    ]
