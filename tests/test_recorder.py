"""Tests for pose stream recording and replay."""

import json

import numpy as np
import pytest

from skeleton_gestures.actions import ActionMapper
from skeleton_gestures.dispatcher import GestureDispatcher
from skeleton_gestures.pipeline import GesturePipeline
from skeleton_gestures.recorder import PosePlayer, PoseRecorder
from skeleton_gestures.skeleton import BodyTrackingState, FrameEdges, JointTrackingState, JointType
from skeleton_gestures.synthetic import demo_session, raise_arm, standing_pose


def record(ticks, fps=30.0):
    rec = PoseRecorder()
    rec.start()
    for i, bodies in enumerate(ticks):
        rec.add_frame(bodies, timestamp=i / fps)
    rec.stop()
    return rec


class TestRecorder:
    def test_record_and_count(self):
        rec = PoseRecorder()
        rec.start()
        for _ in range(10):
            rec.add_frame([standing_pose()])
        assert rec.stop() == 10

    def test_not_recording_ignores_frames(self):
        rec = PoseRecorder()
        rec.add_frame([standing_pose()])
        assert rec.frame_count == 0

    def test_duration(self):
        rec = record([[standing_pose()]] * 31)
        assert rec.duration == pytest.approx(1.0)

    def test_json_file_layout(self, tmp_path):
        rec = record([[standing_pose()]])
        path = tmp_path / "s.json"
        rec.save(path)

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["frame_count"] == 1
        assert "head" in data["frames"][0]["bodies"][0]["joints"]


class TestPlayer:
    def test_json_roundtrip_preserves_details(self, tmp_path):
        pose = raise_arm(standing_pose(body_id=7))
        pose.with_joint(JointType.HAND_LEFT, -0.2, 0.1, 2.4, state=JointTrackingState.INFERRED)
        del pose.joints[JointType.FOOT_RIGHT]
        pose.clipped_edges = FrameEdges.LEFT | FrameEdges.BOTTOM
        other = standing_pose(body_id=8)
        other.state = BodyTrackingState.POSITION_ONLY

        path = tmp_path / "s.json"
        record([[pose, other], []]).save(path)
        player = PosePlayer.load(path)

        assert player.frame_count == 2
        first = player.get_frame(0).bodies
        assert [b.body_id for b in first] == [7, 8]
        assert first[0].joints[JointType.HAND_LEFT].state == JointTrackingState.INFERRED
        assert JointType.FOOT_RIGHT not in first[0].joints
        assert first[0].clipped_edges == FrameEdges.LEFT | FrameEdges.BOTTOM
        assert first[1].state == BodyTrackingState.POSITION_ONLY
        assert player.get_frame(1).bodies == []
        assert player.get_frame(5) is None

    def test_npz_roundtrip(self, tmp_path):
        pose = standing_pose(body_id=3)
        pose.with_joint(JointType.HEAD, 0.0, 0.65, 2.5, state=JointTrackingState.INFERRED)
        del pose.joints[JointType.FOOT_LEFT]

        written = record([[pose], [pose, standing_pose(body_id=4)]]).save_compact(tmp_path / "s.npz")
        player = PosePlayer.load(written)

        ticks = list(player.play())
        assert [len(t) for t in ticks] == [1, 2]
        restored = ticks[0][0]
        assert restored.body_id == 3
        assert restored.joints[JointType.HEAD].state == JointTrackingState.INFERRED
        assert JointType.FOOT_LEFT not in restored.joints
        np.testing.assert_allclose(
            restored.joints[JointType.KNEE_LEFT].position,
            pose.joints[JointType.KNEE_LEFT].position,
            atol=1e-6,
        )

    def test_save_compact_forces_suffix(self, tmp_path):
        written = record([[standing_pose()]]).save_compact(tmp_path / "s.bin")
        assert written.suffix == ".npz"
        assert written.exists()

    def test_empty_recording(self, tmp_path):
        rec = record([])
        rec.save(tmp_path / "e.json")
        written = rec.save_compact(tmp_path / "e.npz")
        assert PosePlayer.load(tmp_path / "e.json").frame_count == 0
        assert PosePlayer.load(written).frame_count == 0

    def test_unsupported_version(self, tmp_path):
        path = tmp_path / "future.json"
        path.write_text(json.dumps({"version": 99, "frames": []}))
        with pytest.raises(ValueError):
            PosePlayer.load(path)

    def test_play_realtime_speed(self, tmp_path):
        path = tmp_path / "s.json"
        record([[standing_pose()]] * 3, fps=100.0).save(path)
        ticks = list(PosePlayer.load(path).play_realtime(speed=10.0))
        assert len(ticks) == 3

    @pytest.mark.parametrize("suffix", [".json", ".npz"])
    def test_replay_through_pipeline(self, tmp_path, suffix):
        rec = record(demo_session())
        if suffix == ".json":
            path = tmp_path / "demo.json"
            rec.save(path)
        else:
            path = rec.save_compact(tmp_path / "demo.npz")

        pipeline = GesturePipeline(dispatcher=GestureDispatcher(mapper=ActionMapper()))
        assert pipeline.run(PosePlayer.load(path)) == 56
        assert pipeline.stats.gesture_counts["jump"] == 1

    def test_npz_file_closed_after_load(self, tmp_path, monkeypatch):
        written = record([[standing_pose()]]).save_compact(tmp_path / "s.npz")
        opened = []
        real_load = np.load

        def tracking_load(*args, **kwargs):
            archive = real_load(*args, **kwargs)
            opened.append(archive)
            return archive

        monkeypatch.setattr(np, "load", tracking_load)
        player = PosePlayer.load(written)

        assert player.frame_count == 1
        assert len(opened) == 1
        assert opened[0].zip is None
