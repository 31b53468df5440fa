"""Tests for YAML configuration loading."""

import pytest
import yaml

from skeleton_gestures.actions import ActionName, KeyboardSink, LogSink, ShellSink, SinkType
from skeleton_gestures.config import ConfigError, EngineConfig, TrackingMode, load_config, save_config
from skeleton_gestures.gestures import GestureKind


def write_yaml(path, data):
    path.write_text(yaml.dump(data))
    return path


class TestEngineConfig:
    def test_defaults(self):
        config = load_config()
        assert config.window_size == 11
        assert config.arm_raise_threshold == 0.1
        assert config.jump_knee_threshold == 0.06
        assert config.tracking_mode == TrackingMode.DEFAULT
        assert not config.coalesce_actions
        assert config.sink == SinkType.LOG
        assert len(config.mapper) == 4

    def test_save_and_load(self, tmp_path):
        config = EngineConfig(window_size=15, sink=SinkType.KEYBOARD, coalesce_actions=True)
        config.keys[ActionName.JUMP] = "space"
        path = tmp_path / "nested" / "config.yml"
        save_config(config, path)

        loaded = load_config(path)
        assert loaded.window_size == 15
        assert loaded.sink == SinkType.KEYBOARD
        assert loaded.coalesce_actions
        assert loaded.keys[ActionName.JUMP] == "space"
        assert loaded.mapper.request_for(GestureKind.HANDS_OVERHEAD).hold == 5.0

    def test_partial_file_uses_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "c.yml", {"jump_knee_threshold": 0.08})
        config = load_config(path)
        assert config.jump_knee_threshold == 0.08
        assert config.window_size == 11
        assert len(config.mapper) == 4

    def test_partial_keys_merge_with_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "c.yml", {"keys": {"jump": "space"}})
        config = load_config(path)
        assert config.keys[ActionName.JUMP] == "space"
        assert config.keys[ActionName.MOVE_LEFT] == "Left"

    def test_custom_bindings(self, tmp_path):
        path = write_yaml(tmp_path / "c.yml", {
            "bindings": [{"gesture": "jump", "action": "run", "hold": 0.2}],
        })
        config = load_config(path)
        assert len(config.mapper) == 1
        request = config.mapper.request_for(GestureKind.JUMP)
        assert request.action == ActionName.RUN
        assert config.mapper.request_for(GestureKind.ARM_RAISED_LEFT) is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config(path).window_size == 11

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = write_yaml(tmp_path / "c.yml", {"frobnicate": True})
        load_config(path)
        assert "frobnicate" in caplog.text

    @pytest.mark.parametrize("data", [
        {"tracking_mode": "lying_down"},
        {"sink": "telepathy"},
        {"window_size": 1},
        {"window_size": "eleven"},
        {"bindings": [{"gesture": "wave", "action": "jump"}]},
        {"bindings": [{"action": "jump"}]},
        {"keys": {"fly": "F"}},
    ])
    def test_invalid_values(self, tmp_path, data):
        path = write_yaml(tmp_path / "bad.yml", data)
        with pytest.raises(ConfigError):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_build_sink(self):
        assert isinstance(EngineConfig().build_sink(), LogSink)
        assert isinstance(EngineConfig(sink=SinkType.KEYBOARD).build_sink(), KeyboardSink)
        sink = EngineConfig(sink=SinkType.SHELL, commands={ActionName.JUMP: "true"}).build_sink()
        assert isinstance(sink, ShellSink)
        assert sink.commands[ActionName.JUMP] == "true"
