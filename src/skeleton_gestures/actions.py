"""Gesture-to-action mapping and action sinks.

Each recognized gesture resolves to one of four symbolic actions with a
hold duration. An action sink turns the request into a real effect:

- Keyboard key hold (via xdotool keydown / keyup)
- Shell commands
- Log lines (dry run)

Sinks run inside the dispatcher's worker threads and are expected to
block for the hold duration.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from skeleton_gestures.gestures import GestureKind

logger = logging.getLogger("skeleton_gestures.actions")


class ActionName(Enum):
    MOVE_LEFT = "move_left"
    MOVE_RIGHT = "move_right"
    RUN = "run"
    JUMP = "jump"


class SinkType(Enum):
    KEYBOARD = "keyboard"
    SHELL = "shell"
    LOG = "log"


@dataclass(frozen=True)
class ActionRequest:
    """What the sink is asked to do, and for how long (seconds)."""
    action: ActionName
    hold: float


@dataclass
class ActionBinding:
    """Maps a gesture kind to an action and its hold duration."""
    gesture: GestureKind
    action: ActionName
    hold: float = 1.0
    enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "gesture": self.gesture.value,
            "action": self.action.value,
            "hold": self.hold,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ActionBinding:
        return cls(
            gesture=GestureKind(data["gesture"]),
            action=ActionName(data["action"]),
            hold=float(data.get("hold", 1.0)),
            enabled=data.get("enabled", True),
        )


DEFAULT_KEYS: dict[ActionName, str] = {
    ActionName.MOVE_LEFT: "Left",
    ActionName.MOVE_RIGHT: "Right",
    ActionName.RUN: "Up",
    ActionName.JUMP: "Up",
}


class ActionMapper:
    """Resolves gesture kinds to action requests.

    Load bindings from YAML:
        mapper = ActionMapper.from_yaml("bindings.yml")

    Resolve:
        request = mapper.request_for(GestureKind.JUMP)
    """

    def __init__(self, bindings: Optional[list[ActionBinding]] = None):
        self._bindings: dict[GestureKind, ActionBinding] = {}
        for binding in bindings or []:
            self.add_binding(binding)

    def add_binding(self, binding: ActionBinding):
        self._bindings[binding.gesture] = binding

    def request_for(self, gesture: GestureKind) -> Optional[ActionRequest]:
        binding = self._bindings.get(gesture)
        if binding is None or not binding.enabled:
            return None
        return ActionRequest(action=binding.action, hold=binding.hold)

    @property
    def bindings(self) -> list[ActionBinding]:
        return list(self._bindings.values())

    def to_list(self) -> list[dict]:
        return [b.to_dict() for b in self._bindings.values()]

    @classmethod
    def from_list(cls, entries: list[dict]) -> ActionMapper:
        return cls([ActionBinding.from_dict(e) for e in entries])

    @classmethod
    def from_yaml(cls, path: str | Path) -> ActionMapper:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
        return cls.from_list(config.get("bindings", []))

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.dump({"bindings": self.to_list()}, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def with_defaults(cls) -> ActionMapper:
        """Arrow-key game bindings: arms steer, hands overhead runs, jump jumps."""
        return cls([
            ActionBinding(GestureKind.ARM_RAISED_RIGHT, ActionName.MOVE_RIGHT, hold=1.2),
            ActionBinding(GestureKind.ARM_RAISED_LEFT, ActionName.MOVE_LEFT, hold=1.2),
            ActionBinding(GestureKind.HANDS_OVERHEAD, ActionName.RUN, hold=5.0),
            ActionBinding(GestureKind.JUMP, ActionName.JUMP, hold=1.0),
        ])

    def __len__(self) -> int:
        return len(self._bindings)


class ActionSink(ABC):
    """Receives action requests and produces the external effect."""

    @abstractmethod
    def execute(self, request: ActionRequest) -> bool:
        """Perform the action, blocking for its hold duration. True on success."""


class LogSink(ActionSink):
    """Logs requests instead of acting on them. Does not block."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def execute(self, request: ActionRequest) -> bool:
        logger.log(self.level, "Action %s (hold %.2fs)", request.action.value, request.hold)
        return True


class KeyboardSink(ActionSink):
    """Presses and holds a key for the request's duration via xdotool."""

    def __init__(self, keys: Optional[dict[ActionName, str]] = None, tool: str = "xdotool"):
        self.keys = dict(DEFAULT_KEYS)
        if keys:
            self.keys.update(keys)
        self.tool = tool

    def execute(self, request: ActionRequest) -> bool:
        key = self.keys.get(request.action)
        if not key:
            return False

        if not self._send("keydown", key):
            return False
        try:
            time.sleep(request.hold)
        finally:
            released = self._send("keyup", key)
        return released

    def _send(self, verb: str, key: str) -> bool:
        proc = subprocess.run(
            [self.tool, verb, key],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )
        if proc.returncode != 0:
            logger.warning("%s %s failed: %s", self.tool, verb, proc.stderr.decode().strip())
            return False
        return True


class ShellSink(ActionSink):
    """Runs a configured shell command per action.

    The hold duration is exported to the command as ``GESTURE_HOLD``.
    """

    def __init__(self, commands: dict[ActionName, str], timeout: float = 10.0):
        self.commands = dict(commands)
        self.timeout = timeout

    def execute(self, request: ActionRequest) -> bool:
        command = self.commands.get(request.action)
        if not command:
            return False

        try:
            proc = subprocess.run(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.timeout + request.hold,
                env=_hold_env(request.hold),
            )
        except subprocess.TimeoutExpired:
            logger.warning("Shell command timed out: %s", command)
            return False

        logger.debug("Shell [%s] → rc=%d", command, proc.returncode)
        return proc.returncode == 0


def _hold_env(hold: float) -> dict[str, str]:
    env = dict(os.environ)
    env["GESTURE_HOLD"] = f"{hold:g}"
    return env


def build_sink(
    sink_type: SinkType,
    keys: Optional[dict[ActionName, str]] = None,
    commands: Optional[dict[ActionName, str]] = None,
) -> ActionSink:
    """Construct the sink named in the configuration."""
    if sink_type == SinkType.KEYBOARD:
        return KeyboardSink(keys)
    if sink_type == SinkType.SHELL:
        return ShellSink(commands or {})
    return LogSink()
