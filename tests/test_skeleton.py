"""Tests for the pose frame data model."""

import numpy as np
import pytest

from skeleton_gestures.skeleton import (
    NUM_JOINTS,
    BodyTrackingState,
    FrameEdges,
    JointTrackingState,
    JointType,
    PoseFrame,
)
from skeleton_gestures.synthetic import standing_pose


class TestPoseFrame:
    def test_twenty_joints(self):
        assert NUM_JOINTS == 20
        assert len(standing_pose().joints) == 20

    def test_get_absent_joint(self):
        assert PoseFrame(body_id=0).get(JointType.HEAD) is None
        assert PoseFrame(body_id=0).y(JointType.HEAD) is None

    def test_get_not_tracked_joint(self):
        pose = PoseFrame(body_id=0).with_joint(
            JointType.HEAD, 0.0, 0.6, state=JointTrackingState.NOT_TRACKED
        )
        assert pose.get(JointType.HEAD) is None

    def test_get_inferred_joint(self):
        pose = PoseFrame(body_id=0).with_joint(
            JointType.HEAD, 0.0, 0.6, state=JointTrackingState.INFERRED
        )
        assert pose.y(JointType.HEAD) == 0.6

    def test_is_tracked(self):
        pose = PoseFrame(body_id=0)
        assert pose.is_tracked
        for state in (BodyTrackingState.POSITION_ONLY, BodyTrackingState.NOT_TRACKED):
            pose.state = state
            assert not pose.is_tracked

    def test_to_array_marks_absent_rows(self):
        pose = standing_pose()
        del pose.joints[JointType.HEAD]
        arr = pose.to_array()
        assert arr.shape == (20, 3)
        assert arr.dtype == np.float32
        assert np.isnan(arr[3]).all()  # HEAD row
        assert not np.isnan(np.delete(arr, 3, axis=0)).any()

    def test_from_array_drops_nan_rows(self):
        arr = standing_pose().to_array()
        arr[0] = np.nan
        pose = PoseFrame.from_array(5, arr)
        assert pose.body_id == 5
        assert JointType.HIP_CENTER not in pose.joints
        assert len(pose.joints) == 19

    def test_from_array_shape_check(self):
        with pytest.raises(ValueError):
            PoseFrame.from_array(0, np.zeros((21, 3)))

    def test_dict_roundtrip(self):
        pose = standing_pose(body_id=2)
        pose.clipped_edges = FrameEdges.TOP
        pose.state = BodyTrackingState.POSITION_ONLY
        restored = PoseFrame.from_dict(pose.to_dict())
        assert restored.body_id == 2
        assert restored.clipped_edges == FrameEdges.TOP
        assert restored.state == BodyTrackingState.POSITION_ONLY
        assert restored.joints == pose.joints
