"""Engine configuration management (YAML)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from skeleton_gestures.actions import (
    DEFAULT_KEYS,
    ActionMapper,
    ActionName,
    ActionSink,
    SinkType,
    build_sink,
)
from skeleton_gestures.gestures import ARM_RAISE_THRESHOLD
from skeleton_gestures.motion import JUMP_KNEE_THRESHOLD, WINDOW_SIZE

logger = logging.getLogger("skeleton_gestures.config")


class ConfigError(ValueError):
    """Raised when a configuration file holds invalid values."""


class TrackingMode(Enum):
    DEFAULT = "default"
    SEATED = "seated"


@dataclass
class EngineConfig:
    window_size: int = WINDOW_SIZE
    arm_raise_threshold: float = ARM_RAISE_THRESHOLD
    jump_knee_threshold: float = JUMP_KNEE_THRESHOLD
    tracking_mode: TrackingMode = TrackingMode.DEFAULT
    coalesce_actions: bool = False
    sink: SinkType = SinkType.LOG
    keys: dict[ActionName, str] = field(default_factory=lambda: dict(DEFAULT_KEYS))
    commands: dict[ActionName, str] = field(default_factory=dict)
    mapper: ActionMapper = field(default_factory=ActionMapper.with_defaults)

    def __post_init__(self):
        if self.window_size < 2:
            raise ConfigError(f"window_size must be at least 2, got {self.window_size}")

    def build_sink(self) -> ActionSink:
        return build_sink(self.sink, keys=self.keys, commands=self.commands)

    def to_dict(self) -> dict:
        return {
            "window_size": self.window_size,
            "arm_raise_threshold": self.arm_raise_threshold,
            "jump_knee_threshold": self.jump_knee_threshold,
            "tracking_mode": self.tracking_mode.value,
            "coalesce_actions": self.coalesce_actions,
            "sink": self.sink.value,
            "keys": {a.value: k for a, k in self.keys.items()},
            "commands": {a.value: c for a, c in self.commands.items()},
            "bindings": self.mapper.to_list(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> EngineConfig:
        known = {f.name for f in fields(cls)} - {"mapper"} | {"bindings"}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

        kwargs = {}
        try:
            if "window_size" in data:
                kwargs["window_size"] = int(data["window_size"])
            for name in ("arm_raise_threshold", "jump_knee_threshold"):
                if name in data:
                    kwargs[name] = float(data[name])
            if "coalesce_actions" in data:
                kwargs["coalesce_actions"] = bool(data["coalesce_actions"])
            if "tracking_mode" in data:
                kwargs["tracking_mode"] = TrackingMode(data["tracking_mode"])
            if "sink" in data:
                kwargs["sink"] = SinkType(data["sink"])
            if "keys" in data:
                keys = dict(DEFAULT_KEYS)
                keys.update({ActionName(a): str(k) for a, k in (data["keys"] or {}).items()})
                kwargs["keys"] = keys
            if "commands" in data:
                kwargs["commands"] = {
                    ActionName(a): str(c) for a, c in (data["commands"] or {}).items()
                }
            if "bindings" in data:
                kwargs["mapper"] = ActionMapper.from_list(data["bindings"] or [])
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        return cls(**kwargs)


def load_config(path: Optional[str | Path] = None) -> EngineConfig:
    """Load configuration from a YAML file, or defaults if no path is given."""
    if path is None:
        return EngineConfig()

    path = Path(path)
    data = yaml.safe_load(path.read_text()) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    config = EngineConfig.from_dict(data)
    logger.info("Loaded config from %s", path)
    return config


def save_config(config: EngineConfig, path: str | Path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False))
